'''
Bind the option map of a command-line parser to the typed fields of a dataclass.
'''
from .binder import bind
from .errors import (
    BindingError,
    ConversionError,
    FieldError,
    FieldResolutionError,
    KeyNotFoundError,
    NumberParseError,
    ShapeError,
)
from .parser import BindingParser, parse_args
from .types import (
    BindingField,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Role,
    TargetKind,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from .utils import parse_sized

Field = BindingField
