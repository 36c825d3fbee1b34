import logging
from dataclasses import dataclass
from typing import List

from option_binding import BindingError, BindingParser, Field, Uint64


@dataclass
class TestOptions:

    L_workers: int = Field(default=1, help='Number of workers.')
    min_size: Uint64 = Field(
        default=0, option='--min-size', help='Minimum size, e.g. 10K or 1.5G.'
    )
    S_v: bool = False
    A_files: List[str] = None


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    parser = BindingParser(TestOptions)

    try:
        options = parser.parse_into(TestOptions())
    except BindingError as err:
        parser.error(str(err))

    print(options)
