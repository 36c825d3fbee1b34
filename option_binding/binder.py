'''
Bind an option map produced by a command-line parser to the fields of a dataclass.
'''
import logging
from dataclasses import fields, is_dataclass
from typing import Any, List, get_type_hints

from .errors import (
    BindingError,
    ConversionError,
    FieldError,
    KeyNotFoundError,
    ShapeError,
)
from .types import BindingType, DataclassType, OptionMap
from .utils import analysis_field, coerce, is_assignable

logger = logging.getLogger(__name__)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _check_destination(destination: Any) -> None:
    if isinstance(destination, type) or not is_dataclass(destination):
        kind = 'class' if isinstance(destination, type) else type(
            destination
        ).__name__
        raise ShapeError(
            f'bind: expected a dataclass instance for destination, got {kind}'
        )
    params = getattr(type(destination), '__dataclass_params__', None)
    if params is not None and params.frozen:
        raise ShapeError(
            f'bind: destination {type(destination).__name__} is frozen and can not be set'
        )


def _bind_sequence(
    destination: DataclassType, binding: BindingType, value: Any,
    errors: List[FieldError]
) -> None:
    items = []
    for index, item in enumerate(value):
        try:
            items.append(coerce(item, binding, index))
        except ConversionError as err:
            errors.append(err)
            items.append(binding.kind.zero)
    setattr(destination, binding.name, binding.wrapper_type.wrap(items))


def _bind_field(
    destination: DataclassType, binding: BindingType, options: OptionMap,
    errors: List[FieldError]
) -> None:
    if binding.key not in options:
        raise KeyNotFoundError(
            binding.name,
            f"'{binding.key}' not found in option map",
            key=binding.key
        )

    value = options[binding.key]
    if value is None:
        logger.debug('%s is unset, keep %s unchanged', binding.key, binding.name)
        return

    if not binding.is_sequence and is_assignable(
        value, binding.kind, binding.annotation
    ):
        setattr(destination, binding.name, value)
        return

    if not _is_sequence(value):
        if binding.is_sequence:
            raise ConversionError(
                binding.name,
                f'{binding.key}: unhandled destination kind: {binding.wrapper_type.value}',
                key=binding.key
            )
        setattr(destination, binding.name, coerce(value, binding))
        return

    if binding.is_sequence:
        _bind_sequence(destination, binding, value, errors)
    elif len(value) == 1:
        setattr(destination, binding.name, coerce(value[0], binding))
    else:
        # ambiguous shape, the field is left as is without an error
        logger.debug(
            '%s has %d values for the single field %s, not bound',
            binding.key, len(value), binding.name
        )


def bind(destination: DataclassType, options: OptionMap) -> DataclassType:
    '''
        Populate the fields of a dataclass instance from an option map.

        Each field binds to one key of the option map, either from the `option` given
        to `BindingField` or from its name: `A_name` binds `<name>`, `S_x` binds `-x`
        and `L_name` binds `--name`. Values already of the field type are assigned
        as is, strings are coerced to integer and float fields, where integers also
        accept a size unit (`10K` is 10240). A `None` value leaves the field unchanged.

        All the fields are processed even if some of them fail; fields bound before or
        after a failure keep their new values.

        Parameters:
        - destination (`DataclassType`): the dataclass instance to populate in place.
        - options (`OptionMap`): the option map, it is never modified.

        Returns:
        - `DataclassType`: the destination.

        Raises:
        - `ShapeError`: if the destination is not a mutable dataclass instance, before
            any field is touched.
        - `BindingError`: if any field failed, with one line per failure.

        Example:
        ```python
        @dataclass
        class Options:
            L_size: Uint32 = 0
            S_v: bool = False
            A_files: List[str] = None

        options = bind(Options(), {'--size': '4K', '-v': True, '<files>': ['a', 'b']})
        ```
    '''
    _check_destination(destination)

    hints = get_type_hints(type(destination))
    errors: List[FieldError] = []
    for field in fields(destination):
        try:
            binding = analysis_field(field, hints.get(field.name, field.type))
            _bind_field(destination, binding, options, errors)
        except FieldError as err:
            errors.append(err)

    if errors:
        logger.debug(
            'bind: %d error(s) for %s', len(errors),
            type(destination).__name__
        )
        raise BindingError(errors)

    return destination
