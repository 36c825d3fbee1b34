'''
An ArgumentParser which declares the options of dataclasses and produces the option map to bind.
'''
from argparse import ArgumentParser, HelpFormatter
from dataclasses import is_dataclass
from typing import Any, Dict, Optional, Sequence, Type

from .binder import bind
from .errors import ShapeError
from .types import BindingType, DataclassType, Role
from .utils import analysis_dataclass


class BindingParser(ArgumentParser):
    '''
        A command-line argument parser which declares one argument per field of the
        given data classes, and returns the parsed values as an option map keyed
        `<name>` for positional arguments, `-x` for short flags and `--name` for
        long flags. Values are kept as strings and are coerced by `bind`.

        Parameters:
        - clz (`iterable[type]`): The data classes whose fields declare the arguments.

        Example:
        ```python
        from dataclasses import dataclass

        @dataclass
        class Options:
            L_size: Uint32 = 0
            S_v: bool = False
            A_files: List[str] = None

        parser = BindingParser(Options)

        options = parser.parse_into(Options(), ['--size', '4K', '-v', 'a.txt'])

        print(options.L_size, options.S_v, options.A_files)
        ```
    '''

    def __init__(
        self,
        *clz: Type[DataclassType],
        prog: Optional[str] = None,
        usage: Optional[str] = None,
        description: Optional[str] = None,
        epilog: Optional[str] = None,
        parents: Sequence[ArgumentParser] = [],
        formatter_class=HelpFormatter,
        prefix_chars: str = "-",
        fromfile_prefix_chars: Optional[str] = None,
        argument_default: Any = None,
        conflict_handler: str = "error",
        add_help: bool = True,
        allow_abbrev: bool = True
    ) -> None:
        super(BindingParser, self).__init__(
            prog=prog,
            usage=usage,
            description=description,
            epilog=epilog,
            parents=parents,
            formatter_class=formatter_class,
            prefix_chars=prefix_chars,
            fromfile_prefix_chars=fromfile_prefix_chars,
            argument_default=argument_default,
            conflict_handler=conflict_handler,
            add_help=add_help,
            allow_abbrev=allow_abbrev
        )
        self._option_dests: Dict[str, str] = {}

        for cls in clz:
            self.add_dataclass(cls)

    def add_dataclass(self, cls: Type[DataclassType]) -> Type[DataclassType]:
        '''
            Declare the arguments for the fields of a data class.

            Fields binding a key which is already declared share the existing argument.

            Parameters:
            - cls (`Type[DataclassType]`): The data class to be added to the parser.

            Raises:
            - `ShapeError`: if `cls` is not a data class.
        '''
        if not isinstance(cls, type) or not is_dataclass(cls):
            raise ShapeError(f'BindingParser: expected a dataclass, got {cls!r}')
        for binding in analysis_dataclass(cls):
            if binding.key in self._option_dests:
                continue
            dest = f'option_{len(self._option_dests)}'
            self._option_dests[binding.key] = dest
            self._add_binding(binding, dest)

        return cls

    def _add_binding(self, binding: BindingType, dest: str) -> None:
        kwargs = {'help': binding.help or None}
        if binding.role is Role.Argument:
            if binding.is_sequence:
                kwargs['nargs'] = '*'
            elif not binding.required:
                kwargs['nargs'] = '?'
            self.add_argument(dest, metavar=binding.key, **kwargs)
            return

        if binding.is_switch and not binding.is_sequence:
            kwargs['action'] = 'store_true'
        else:
            if binding.is_sequence:
                kwargs['action'] = 'append'
            kwargs['default'] = None
            kwargs['metavar'] = binding.key.lstrip('-').upper()
        self.add_argument(binding.key, dest=dest, **kwargs)

    def parse_option_map(
        self, args: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        '''
            Parse the command-line arguments into an option map.

            Parameters:
            - args (`Optional[Sequence[str]]`, optional):
                Command-line arguments to be parsed. If not provided, sys.argv is used.

            Returns:
            - `Dict[str, Any]`: the value of every declared key, `None` for flags not given.
        '''
        namespace = self.parse_args(args=args)
        return {
            key: getattr(namespace, dest)
            for key, dest in self._option_dests.items()
        }

    def parse_into(
        self,
        destination: DataclassType,
        args: Optional[Sequence[str]] = None
    ) -> DataclassType:
        '''
            Parse the command-line arguments and bind them to the destination.

            Raises:
            - `BindingError`: if some fields could not be bound, see `bind`.
        '''
        return bind(destination, self.parse_option_map(args))


def parse_args(
    destination: DataclassType,
    args: Optional[Sequence[str]] = None
) -> DataclassType:
    if isinstance(destination, type):
        raise ShapeError(
            'parse_args: expected a dataclass instance for destination, got class'
        )
    parser = BindingParser(type(destination))
    return parser.parse_into(destination, args)
