'''
methods to analyse dataclass fields and coerce option values into them.
'''
import math
import re
import struct
import types
import warnings
from collections import deque
from dataclasses import MISSING, Field, fields
from inspect import isclass
from typing import (
    Any,
    List,
    Optional,
    Tuple,
    Type,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import (
    INVALID_SYNTAX,
    OUT_OF_RANGE,
    ConversionError,
    FieldResolutionError,
    NumberParseError,
)
from .types import (
    FIELD_PREFIXES,
    BindingType,
    DataclassType,
    DataWrapperType,
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

SIZE_MULTIPLIERS = {
    'B': 1,
    'K': 1 << 10,
    'M': 1 << 20,
    'G': 1 << 30,
    'T': 1 << 40,
}

_INT_PATTERN = re.compile(r'[+-]?[0-9]+')
_UINT_PATTERN = re.compile(r'[0-9]+')
_FLOAT_PATTERN = re.compile(
    r'[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)',
    re.IGNORECASE
)
_HEX_FLOAT_PATTERN = re.compile(
    r'[+-]?0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+'
)

_SCALAR_KINDS = {
    bool: TargetKind.Bool,
    str: TargetKind.Str,
    int: TargetKind.Int64,
    float: TargetKind.Float64,
    Int8: TargetKind.Int8,
    Int16: TargetKind.Int16,
    Int32: TargetKind.Int32,
    Int64: TargetKind.Int64,
    Uint8: TargetKind.Uint8,
    Uint16: TargetKind.Uint16,
    Uint32: TargetKind.Uint32,
    Uint64: TargetKind.Uint64,
    Float32: TargetKind.Float32,
    Float64: TargetKind.Float64,
}

_COLLECTIONS = (
    (list, DataWrapperType.List),
    (tuple, DataWrapperType.Tuple),
    (set, DataWrapperType.Set),
    (deque, DataWrapperType.Deque),
)


def int_range(bits: int, signed: bool = True) -> Tuple[int, int]:
    '''
        The inclusive bounds of an integer with the given bit width.
    '''
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def parse_int(s: str, bits: int = 64) -> int:
    '''
        Parse a base-10 signed integer which must fit in `bits` bits.

        Raises:
        - `NumberParseError`: if the string is not a plain decimal integer or out of range.
    '''
    if not _INT_PATTERN.fullmatch(s):
        raise NumberParseError('parse_int', s, INVALID_SYNTAX)
    val = int(s)
    low, high = int_range(bits)
    if not low <= val <= high:
        raise NumberParseError('parse_int', s, OUT_OF_RANGE)
    return val


def parse_uint(s: str, bits: int = 64) -> int:
    '''
        Parse a base-10 unsigned integer, no sign allowed, which must fit in `bits` bits.
    '''
    if not _UINT_PATTERN.fullmatch(s):
        raise NumberParseError('parse_uint', s, INVALID_SYNTAX)
    val = int(s)
    if val > int_range(bits, signed=False)[1]:
        raise NumberParseError('parse_uint', s, OUT_OF_RANGE)
    return val


def _to_float32(val: float) -> float:
    try:
        return struct.unpack('f', struct.pack('f', val))[0]
    except OverflowError:
        # older interpreters refuse to pack instead of rounding to inf
        return math.copysign(math.inf, val)


def parse_float(s: str, bits: int = 64) -> float:
    '''
        Parse a base-10 float, or a hexadecimal float such as `0x1.8p1`, rounded to
        single precision when `bits` is 32.

        A finite literal too large for the width is a range error; `inf` and `nan`
        literals are accepted.
    '''
    if _HEX_FLOAT_PATTERN.fullmatch(s):
        try:
            val = float.fromhex(s)
        except OverflowError:
            raise NumberParseError('parse_float', s, OUT_OF_RANGE)
    elif _FLOAT_PATTERN.fullmatch(s):
        val = float(s)
    else:
        raise NumberParseError('parse_float', s, INVALID_SYNTAX)
    if math.isinf(val) and 'inf' not in s.lower():
        raise NumberParseError('parse_float', s, OUT_OF_RANGE)
    if bits == 32:
        single = _to_float32(val)
        if math.isinf(single) and not math.isinf(val):
            raise NumberParseError('parse_float', s, OUT_OF_RANGE)
        val = single
    return val


def has_size_suffix(s: str) -> bool:
    return s[-1:].upper() in SIZE_MULTIPLIERS


def parse_sized(s: str) -> int:
    '''
        Parse a number with an optional size unit into a signed 64-bit magnitude.

        The unit is one of B, K, M, G or T (case-insensitive), multiplying by
        1024 to the power 0 to 4. The number may be an integer or a decimal; a
        decimal is scaled first and then truncated toward zero. Without a unit
        the whole string is parsed as a plain integer.

        Example:
        ```python
        parse_sized('10K')   # 10240
        parse_sized('3.5k')  # 3584
        parse_sized('-10')   # -10
        ```

        Raises:
        - `NumberParseError`: if the number is malformed or the result leaves int64.
    '''
    if not has_size_suffix(s):
        return parse_int(s)
    multiplier = SIZE_MULTIPLIERS[s[-1].upper()]
    number = s[:-1]
    try:
        val = parse_int(number) * multiplier
    except NumberParseError:
        scaled = parse_float(number) * multiplier
        if not math.isfinite(scaled):
            raise NumberParseError('parse_sized', s, OUT_OF_RANGE)
        val = int(scaled)
    low, high = int_range(64)
    if not low <= val <= high:
        raise NumberParseError('parse_sized', s, OUT_OF_RANGE)
    return val


def _parse_sized_fallback(s: str, bits: int, signed: bool) -> int:
    val = parse_sized(s)
    low, high = int_range(bits, signed)
    if not low <= val <= high:
        raise NumberParseError('parse_sized', s, OUT_OF_RANGE)
    return val


def _is_instance(value: Any, annotation: Any) -> bool:
    if annotation is Any:
        return True
    origin = get_origin(annotation) or annotation
    return isclass(origin) and isinstance(value, origin)


def is_assignable(value: Any, kind: TargetKind, annotation: Any = Any) -> bool:
    '''
        Check whether the value can be stored as is, without any conversion.

        Integers must fit the width of the kind, and floats must be exact in single
        precision for `float32`.
    '''
    if kind is TargetKind.Bool:
        return isinstance(value, bool)
    if kind is TargetKind.Str:
        return isinstance(value, str)
    if kind.is_integer:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        low, high = int_range(kind.bits, kind.is_signed)
        return low <= value <= high
    if kind.is_float:
        if not isinstance(value, float):
            return False
        if kind.bits == 64 or math.isnan(value):
            return True
        return _to_float32(value) == value
    return _is_instance(value, annotation)


def coerce(value: Any, binding: BindingType, index: Optional[int] = None) -> Any:
    '''
        Coerce a scalar option value into the kind of the binding.

        Values already assignable are returned unchanged. Only strings are converted:
        integers are parsed at the target width and, on failure, retried through the
        size suffix grammar; floats are parsed at the target width.

        Parameters:
        - value (`Any`): the scalar option value.
        - binding (`BindingType`): the field binding, for sequences the element kind is used.
        - index (`Optional[int]`): the position of the value inside a sequence, for messages.

        Raises:
        - `ConversionError`: if the value can not be converted.
    '''
    kind = binding.kind
    label = binding.key if index is None else f'{binding.key}[{index}]'
    if is_assignable(value, kind, binding.annotation):
        return value
    if not isinstance(value, str):
        raise ConversionError(
            binding.name,
            f"{label}: don't know how to convert {type(value).__name__} to {binding.type_name}",
            key=binding.key
        )

    try:
        if kind.is_signed:
            try:
                return parse_int(value, kind.bits)
            except NumberParseError:
                if not has_size_suffix(value):
                    raise
                return _parse_sized_fallback(value, kind.bits, signed=True)
        if kind.is_unsigned:
            try:
                return parse_uint(value, kind.bits)
            except NumberParseError:
                if not has_size_suffix(value):
                    raise
                return _parse_sized_fallback(value, kind.bits, signed=False)
        if kind.is_float:
            return parse_float(value, kind.bits)
    except NumberParseError as err:
        raise ConversionError(
            binding.name, f'{label}: {err}', key=binding.key
        ) from err

    raise ConversionError(
        binding.name,
        f'{label}: unhandled destination kind: {binding.type_name}',
        key=binding.key
    )


def _unwrap_optional(dtype: Any) -> Any:
    origin = get_origin(dtype)
    union_type = getattr(types, 'UnionType', None)
    if origin is Union or (union_type is not None and isinstance(dtype, union_type)):
        dtype_generics = [x for x in get_args(dtype) if x is not type(None)]
        if len(dtype_generics) == 1:
            return dtype_generics[0]
    return dtype


def _scalar_kind(dtype: Any) -> TargetKind:
    try:
        return _SCALAR_KINDS.get(dtype, TargetKind.Unknown)
    except TypeError:
        # unhashable annotation
        return TargetKind.Unknown


def _analysis_type(dtype: Any) -> Tuple[TargetKind, DataWrapperType, Any]:
    dtype = _unwrap_optional(dtype)
    kind = _scalar_kind(dtype)
    if kind is not TargetKind.Unknown:
        return kind, DataWrapperType.Basic, dtype

    origin = get_origin(dtype) or dtype
    if isclass(origin) and not hasattr(origin, '_fields'):
        for container, wrapper_type in _COLLECTIONS:
            if not issubclass(origin, container):
                continue
            dtype_generics = [x for x in get_args(dtype) if x is not Ellipsis]
            if len(dtype_generics) > 1:
                # fixed-shape tuples only take values which already match
                return TargetKind.Unknown, DataWrapperType.Basic, origin
            element = _unwrap_optional(dtype_generics[0]) if dtype_generics else Any
            return _scalar_kind(element), wrapper_type, element

    return TargetKind.Unknown, DataWrapperType.Basic, dtype


def _value_family(kind: TargetKind) -> Any:
    if kind.is_integer:
        return int
    if kind.is_float:
        return float
    return kind


def analysis_field(field: Field, dtype: Any = MISSING) -> BindingType:
    '''
        Resolve the binding of a dataclass field.

        The option key comes from the `option` metadata written by `BindingField`,
        otherwise from the `A_`, `S_` or `L_` prefix of the field name.

        Parameters:
        - field (`dataclasses.Field`): the field to resolve.
        - dtype (`Any`, optional): the resolved type hint, `field.type` if not provided.

        Raises:
        - `FieldResolutionError`: if no option key can be derived for the field.
    '''
    if dtype is MISSING:
        dtype = field.type

    option = field.metadata.get('option', None)
    if option is not None:
        role = Role.from_option(option)
        if role is None:
            raise FieldResolutionError(
                field.name,
                f"field '{field.name}' has an invalid option '{option}'"
            )
    else:
        role = FIELD_PREFIXES.get(field.name[:2], None)
        bare_name = field.name[2:]
        if role is None or not bare_name:
            raise FieldResolutionError(
                field.name,
                f"field '{field.name}' not of format A_*, S_* or L_*"
            )
        option = role.option(bare_name)

    kind, wrapper_type, annotation = _analysis_type(dtype)
    meta_kind = field.metadata.get('kind', None)
    if meta_kind is not None:
        meta_kind = TargetKind(meta_kind)
        if kind is not TargetKind.Unknown and _value_family(
            kind
        ) is not _value_family(meta_kind):
            warnings.warn(
                f'The kind for "{field.name}" will be occupied with meta.',
                UserWarning
            )
        kind = meta_kind

    return BindingType(
        name=field.name,
        key=option,
        role=role,
        kind=kind,
        wrapper_type=wrapper_type,
        annotation=annotation,
        help=field.metadata.get('help', ''),
        required=field.default is MISSING
        and field.default_factory is MISSING
    )


def analysis_dataclass(clz: Type[DataclassType]) -> List[BindingType]:
    '''
        Resolve the bindings of all the fields of a dataclass, in declaration order.

        Fields which can not be resolved are skipped with a warning.
    '''
    hints = get_type_hints(clz)
    bindings: List[BindingType] = []
    for field in fields(clz):
        try:
            bindings.append(
                analysis_field(field, hints.get(field.name, field.type))
            )
        except FieldResolutionError as err:
            warnings.warn(f'{err}, the field is skipped.', UserWarning)

    return bindings
