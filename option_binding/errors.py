'''
exceptions raised while binding an option map to a dataclass.
'''
from typing import List, Optional

INVALID_SYNTAX = 'invalid syntax'
OUT_OF_RANGE = 'value out of range'


class NumberParseError(ValueError):
    '''
        Raised when a string can not be parsed as a number of the requested width.

        Attributes:
        - func (`str`): the parse function which failed, e.g. `parse_int`.
        - text (`str`): the input string.
        - reason (`str`): `invalid syntax` or `value out of range`.
    '''

    def __init__(self, func: str, text: str, reason: str) -> None:
        self.func = func
        self.text = text
        self.reason = reason
        super(NumberParseError, self).__init__(
            f'{func}: parsing {text!r}: {reason}'
        )


class ShapeError(TypeError):
    '''
        The destination is not a writable dataclass instance.
    '''


class FieldError(Exception):
    '''
        Base class of the errors recorded for a single field.
    '''

    def __init__(
        self, field: str, message: str, key: Optional[str] = None
    ) -> None:
        self.field = field
        self.key = key
        super(FieldError, self).__init__(message)


class FieldResolutionError(FieldError):
    pass


class KeyNotFoundError(FieldError):
    pass


class ConversionError(FieldError, ValueError):
    pass


class BindingError(Exception):
    '''
        Aggregate of every field error collected by one `bind` call.

        The message is each field error on its own line, in field declaration order.
    '''

    def __init__(self, errors: List[FieldError]) -> None:
        self.errors = list(errors)
        super(BindingError,
              self).__init__('\n'.join(str(err) for err in self.errors))
