'''
defined the types to describe how a dataclass field binds to an option.
'''
from collections import deque
from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Mapping,
    NewType,
    Optional,
    TypeVar,
    Union,
)

DataclassType = TypeVar('DataclassType')

OptionMap = Mapping[str, Any]

Int8 = NewType('Int8', int)
Int16 = NewType('Int16', int)
Int32 = NewType('Int32', int)
Int64 = NewType('Int64', int)
Uint8 = NewType('Uint8', int)
Uint16 = NewType('Uint16', int)
Uint32 = NewType('Uint32', int)
Uint64 = NewType('Uint64', int)
Float32 = NewType('Float32', float)
Float64 = NewType('Float64', float)


class Role(Enum):
    '''
        The kind of command-line element a field binds to.

        - Argument: a positional argument, keyed as `<name>`.
        - Short: a single dash flag, keyed as `-x`.
        - Long: a double dash flag, keyed as `--name`.
    '''
    Argument = 'argument'
    Short = 'short'
    Long = 'long'

    def option(self, name: str) -> str:
        if self is Role.Argument:
            return f'<{name}>'
        if self is Role.Short:
            return '-' + name
        return '--' + name

    @staticmethod
    def from_option(option: str) -> Optional['Role']:
        '''
            Detect the role from the textual form of an option key.

            Returns None if the key is none of `<name>`, `-x` or `--name`.
        '''
        if option.startswith('<') and option.endswith('>'):
            return Role.Argument if len(option) > 2 else None
        if option.startswith('--'):
            return Role.Long if len(option) > 2 else None
        if option.startswith('-'):
            return Role.Short if len(option) > 1 else None
        return None


FIELD_PREFIXES: Dict[str, Role] = {
    'A_': Role.Argument,
    'S_': Role.Short,
    'L_': Role.Long,
}


class TargetKind(Enum):
    '''
        The scalar kind a field value is coerced into.

        Integer and float kinds carry their bit width in the name; `Unknown` is any
        other annotation, which only accepts values that are already instances of it.
    '''
    Bool = 'bool'
    Str = 'str'
    Int8 = 'int8'
    Int16 = 'int16'
    Int32 = 'int32'
    Int64 = 'int64'
    Uint8 = 'uint8'
    Uint16 = 'uint16'
    Uint32 = 'uint32'
    Uint64 = 'uint64'
    Float32 = 'float32'
    Float64 = 'float64'
    Unknown = 'unknown'

    @property
    def is_signed(self) -> bool:
        return self.value.startswith('int')

    @property
    def is_unsigned(self) -> bool:
        return self.value.startswith('uint')

    @property
    def is_integer(self) -> bool:
        return self.is_signed or self.is_unsigned

    @property
    def is_float(self) -> bool:
        return self.value.startswith('float')

    @property
    def bits(self) -> int:
        digits = ''.join(c for c in self.value if c.isdigit())
        return int(digits) if digits else 0

    @property
    def zero(self) -> Any:
        if self is TargetKind.Bool:
            return False
        if self is TargetKind.Str:
            return ''
        if self.is_integer:
            return 0
        if self.is_float:
            return 0.0
        return None


class DataWrapperType(Enum):
    '''
        The container a field value is wrapped in.

        `Basic` is a single scalar, the others are sequences built element by element.
    '''
    Basic = 'basic'
    List = 'list'
    Tuple = 'tuple'
    Set = 'set'
    Deque = 'deque'

    @property
    def is_collection(self) -> bool:
        return self is not DataWrapperType.Basic

    def wrap(self, items: Iterable[Any]) -> Any:
        if self is DataWrapperType.Tuple:
            return tuple(items)
        if self is DataWrapperType.Set:
            return set(items)
        if self is DataWrapperType.Deque:
            return deque(items)
        return list(items)


@dataclass
class BindingType:
    '''
        The resolved binding of one dataclass field.

        Attributes:
        - name (str): the field name.
        - key (str): the option key looked up in the option map, e.g. `--min-size`.
        - role (Role): whether the key is a positional argument, a short or a long flag.
        - kind (TargetKind): the scalar kind of the field, or of its elements for sequences.
        - wrapper_type (DataWrapperType): the container of the field value.
        - annotation (Any): the declared scalar type, used for `TargetKind.Unknown`.
        - help (str): help text shown by `BindingParser`.
        - required (bool): the field has neither a default nor a default factory.
    '''
    name: str
    key: str
    role: Role
    kind: TargetKind = TargetKind.Unknown
    wrapper_type: DataWrapperType = DataWrapperType.Basic
    annotation: Any = Any
    help: str = ''
    required: bool = False

    @property
    def is_sequence(self) -> bool:
        return self.wrapper_type.is_collection

    @property
    def is_switch(self) -> bool:
        return self.kind is TargetKind.Bool and self.role is not Role.Argument

    @property
    def type_name(self) -> str:
        if self.kind is not TargetKind.Unknown:
            return self.kind.value
        return getattr(self.annotation, '__name__', str(self.annotation))


def BindingField(
    default: Optional[Any] = MISSING,
    default_factory: Optional[Callable] = MISSING,
    option: Optional[str] = None,
    kind: Optional[Union[str, TargetKind]] = None,
    help: Optional[str] = None
):
    '''
        Create a dataclass field with explicit binding information.

        Fields created without an `option` fall back to the name convention,
        `A_name` for `<name>`, `S_x` for `-x` and `L_name` for `--name`.

        Parameters:
        - default (`Optional[Any]`, optional):
            Default value for the field. Defaults to MISSING.
        - default_factory (`Optional[Callable]`, optional):
            Default factory for the field. Defaults to MISSING.
        - option (`Optional[str]`, optional):
            The option key to bind, e.g. `<values>`, `-b` or `--min-size`.
        - kind (`Optional[Union[str, TargetKind]]`, optional):
            The target kind, e.g. `uint32`. Use the type hint if this is not provided.
        - help (`Optional[str]`, optional):
            Help text for the field.

        Returns:
        - `dataclasses.Field`:
            A dataclass field with the specified metadata.

        Raises:
        - `ValueError`: if `option` is not a valid option key or `kind` is unknown.
    '''
    meta_info = {}
    if option is not None:
        if Role.from_option(option) is None:
            raise ValueError(
                f'The option {option!r} is not of format <name>, -x or --name.'
            )
        meta_info['option'] = option
    if kind is not None:
        meta_info['kind'] = TargetKind(kind)
    if help is not None:
        meta_info['help'] = help

    if default is not MISSING:
        return field(default=default, metadata=meta_info)
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=meta_info)
    return field(metadata=meta_info)
