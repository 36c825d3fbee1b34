from collections import deque
from dataclasses import dataclass, fields
from typing import Any, Deque, List, Optional, Set, Tuple

import pytest

from ..errors import ConversionError, FieldResolutionError, NumberParseError
from ..types import (
    BindingField,
    BindingType,
    DataWrapperType,
    Float32,
    Int8,
    Role,
    TargetKind,
    Uint8,
    Uint32,
)
from ..utils import (
    analysis_dataclass,
    analysis_field,
    coerce,
    is_assignable,
    parse_float,
    parse_int,
    parse_sized,
    parse_uint,
)

MULTIPLIERS = {'': 1, 'B': 1, 'K': 1024, 'M': 1024**2, 'G': 1024**3, 'T': 1024**4}


@pytest.mark.parametrize('unit', list(MULTIPLIERS))
@pytest.mark.parametrize('n', [0, 1, 7, 512, 1000])
def test_parse_sized_units(n, unit):
    assert parse_sized(f'{n}{unit}') == n * MULTIPLIERS[unit]
    assert parse_sized(f'{n}{unit.lower()}') == n * MULTIPLIERS[unit]


def test_parse_sized_fraction():
    assert parse_sized('3.5k') == 3584
    assert parse_sized('0.5K') == 512
    assert parse_sized('1.9B') == 1
    assert parse_sized('-1.5k') == -1536
    assert parse_sized('-10') == -10


def test_parse_sized_errors():
    with pytest.raises(NumberParseError) as info:
        parse_sized('12x')
    assert info.value.func == 'parse_int'
    assert info.value.reason == 'invalid syntax'

    with pytest.raises(NumberParseError):
        parse_sized('K')
    with pytest.raises(NumberParseError):
        parse_sized('')
    with pytest.raises(NumberParseError) as info:
        parse_sized('10000000T')
    assert info.value.reason == 'value out of range'


def test_parse_int_width():
    assert parse_int('-128', 8) == -128
    assert parse_int('+127', 8) == 127
    with pytest.raises(NumberParseError) as info:
        parse_int('128', 8)
    assert str(info.value) == "parse_int: parsing '128': value out of range"
    for text in (' 1', '1_000', '0x10', '1.0', ''):
        with pytest.raises(NumberParseError):
            parse_int(text)


def test_parse_uint_width():
    assert parse_uint('255', 8) == 255
    assert parse_uint('18446744073709551615') == 2**64 - 1
    with pytest.raises(NumberParseError):
        parse_uint('256', 8)
    with pytest.raises(NumberParseError):
        parse_uint('-1')
    with pytest.raises(NumberParseError):
        parse_uint('+1')


def test_parse_float():
    assert parse_float('1.234') == 1.234
    assert parse_float('1e3') == 1000.0
    assert parse_float('.5') == 0.5
    assert parse_float('-inf') == float('-inf')
    assert parse_float('1.234', 32) == pytest.approx(1.234, rel=1e-6)
    assert parse_float('1.234', 32) != 1.234
    with pytest.raises(NumberParseError):
        parse_float('1e39', 32)
    with pytest.raises(NumberParseError):
        parse_float('1e400')
    with pytest.raises(NumberParseError):
        parse_float('1.2.3')


def test_parse_float_single_precision_overflow():
    for text in ('1e39', '-1e39', '3.5e38'):
        with pytest.raises(NumberParseError) as info:
            parse_float(text, 32)
        assert info.value.reason == 'value out of range'
    assert parse_float('3.4e38', 32) == pytest.approx(3.4e38, rel=1e-6)
    assert parse_float('1e39') == 1e39
    assert parse_float('inf', 32) == float('inf')

    assert not is_assignable(1e39, TargetKind.Float32)
    assert is_assignable(1e39, TargetKind.Float64)
    assert is_assignable(float('-inf'), TargetKind.Float32)


def test_parse_float_hex():
    assert parse_float('0x1.8p1') == 3.0
    assert parse_float('-0X1P-2') == -0.25
    assert parse_float('0x1.8p1', 32) == 3.0
    with pytest.raises(NumberParseError) as info:
        parse_float('0x1p1024')
    assert info.value.reason == 'value out of range'
    with pytest.raises(NumberParseError) as info:
        parse_float('0x1p128', 32)
    assert info.value.reason == 'value out of range'
    with pytest.raises(NumberParseError) as info:
        parse_float('0x1.8')
    assert info.value.reason == 'invalid syntax'


def _binding(kind, annotation=Any, key='--value'):
    return BindingType(
        name='L_value', key=key, role=Role.Long, kind=kind, annotation=annotation
    )


def test_is_assignable():
    assert is_assignable(True, TargetKind.Bool)
    assert not is_assignable(1, TargetKind.Bool)
    assert not is_assignable(True, TargetKind.Int64)
    assert is_assignable(200, TargetKind.Uint8)
    assert not is_assignable(300, TargetKind.Uint8)
    assert is_assignable(0.5, TargetKind.Float32)
    assert not is_assignable(0.1, TargetKind.Float32)
    assert is_assignable([1], TargetKind.Unknown, Any)
    assert is_assignable([1], TargetKind.Unknown, list)
    assert not is_assignable('x', TargetKind.Unknown, list)


def test_coerce_numbers():
    assert coerce('-10', _binding(TargetKind.Int64)) == -10
    assert coerce('10K', _binding(TargetKind.Int64)) == 10240
    assert coerce('3.5k', _binding(TargetKind.Uint32)) == 3584
    assert coerce('1000000000000000000',
                  _binding(TargetKind.Uint64)) == 1000000000000000000
    assert coerce('2.5', _binding(TargetKind.Float64)) == 2.5
    assert coerce(7, _binding(TargetKind.Int8)) == 7


def test_coerce_suffix_keeps_width():
    with pytest.raises(ConversionError) as info:
        coerce('1K', _binding(TargetKind.Int8))
    assert 'value out of range' in str(info.value)

    with pytest.raises(ConversionError) as info:
        coerce('-1K', _binding(TargetKind.Uint64))
    assert 'value out of range' in str(info.value)


def test_coerce_keeps_original_error_without_unit():
    with pytest.raises(ConversionError) as info:
        coerce('300', _binding(TargetKind.Int8))
    assert str(info.value) == "--value: parse_int: parsing '300': value out of range"
    assert isinstance(info.value.__cause__, NumberParseError)

    with pytest.raises(ConversionError) as info:
        coerce('+5', _binding(TargetKind.Uint8))
    assert "parse_uint: parsing '+5': invalid syntax" in str(info.value)


def test_coerce_unsupported():
    with pytest.raises(ConversionError) as info:
        coerce(True, _binding(TargetKind.Int64))
    assert str(info.value) == "--value: don't know how to convert bool to int64"

    with pytest.raises(ConversionError) as info:
        coerce(1.5, _binding(TargetKind.Int64))
    assert "don't know how to convert float" in str(info.value)

    with pytest.raises(ConversionError) as info:
        coerce('true', _binding(TargetKind.Bool))
    assert str(info.value) == '--value: unhandled destination kind: bool'


def test_coerce_float32_with_index():
    assert coerce('1.0', _binding(TargetKind.Float32), index=2) == 1.0
    with pytest.raises(ConversionError) as info:
        coerce('x', _binding(TargetKind.Float32), index=2)
    assert str(info.value).startswith('--value[2]: parse_float')


@dataclass
class Declared:
    A_values: List[int] = None
    S_b: bool = False
    L_name: Optional[str] = None
    L_size: Uint32 = 0
    L_ratio: Float32 = 0.0
    L_level: Int8 = 0
    L_tags: Tuple[str, ...] = ()
    L_ids: Set[Uint8] = None
    L_queue: Deque[float] = None
    L_anything: Any = None
    min_size: int = BindingField(default=0, option='--min-size', help='Minimum size.')
    L_limit: int = BindingField(default=0, kind='uint32')
    plain: int = 0


def test_analysis_field():
    declared = {f.name: f for f in fields(Declared)}

    binding = analysis_field(declared['A_values'])
    assert binding.key == '<values>'
    assert binding.role is Role.Argument
    assert binding.kind is TargetKind.Int64
    assert binding.wrapper_type is DataWrapperType.List

    assert analysis_field(declared['S_b']).key == '-b'
    assert analysis_field(declared['L_name']).kind is TargetKind.Str
    assert analysis_field(declared['L_size']).kind is TargetKind.Uint32
    assert analysis_field(declared['L_ratio']).kind is TargetKind.Float32
    assert analysis_field(declared['L_level']).kind is TargetKind.Int8

    tags = analysis_field(declared['L_tags'])
    assert tags.wrapper_type is DataWrapperType.Tuple
    assert tags.kind is TargetKind.Str
    ids = analysis_field(declared['L_ids'])
    assert ids.wrapper_type is DataWrapperType.Set
    assert ids.kind is TargetKind.Uint8
    assert analysis_field(declared['L_queue']).wrapper_type is DataWrapperType.Deque
    assert analysis_field(declared['L_anything']).kind is TargetKind.Unknown

    min_size = analysis_field(declared['min_size'])
    assert min_size.key == '--min-size'
    assert min_size.role is Role.Long
    assert min_size.help == 'Minimum size.'

    assert analysis_field(declared['L_limit']).kind is TargetKind.Uint32

    with pytest.raises(FieldResolutionError) as info:
        analysis_field(declared['plain'])
    assert str(info.value) == "field 'plain' not of format A_*, S_* or L_*"


def test_analysis_field_bare_prefix():

    @dataclass
    class Bare:
        L_: int = 0

    with pytest.raises(FieldResolutionError):
        analysis_field(fields(Bare)[0])


def test_kind_override_warns():

    @dataclass
    class Override:
        L_count: str = BindingField(default='', kind='int32')

    with pytest.warns(UserWarning):
        binding = analysis_field(fields(Override)[0])
    assert binding.kind is TargetKind.Int32


def test_binding_field_rejects_bad_option():
    with pytest.raises(ValueError):
        BindingField(default=0, option='min-size')
    with pytest.raises(ValueError):
        BindingField(default=0, kind='int128')


def test_analysis_dataclass_skips_unresolved():
    with pytest.warns(UserWarning):
        bindings = analysis_dataclass(Declared)
    names = [b.name for b in bindings]
    assert 'plain' not in names
    assert names[0] == 'A_values'
    assert names[-1] == 'L_limit'


def test_wrap_containers():
    assert DataWrapperType.Deque.wrap([1, 2]) == deque([1, 2])
    assert DataWrapperType.Set.wrap([1, 1]) == {1}
