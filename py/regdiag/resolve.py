"""Layout resolution.

Walks a raw field tree, assigns byte offsets, bit ranges, alignment classes
and fully-qualified names, and checks every cross-field invariant. The input
tree is never modified: :func:`resolve` returns a new, fully resolved tree.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Mapping

from .errors import (
    AlignmentError,
    BitfieldWidthMismatchError,
    DuplicateNameError,
    EmptyFieldError,
    EnumRangeError,
    InvalidNameError,
    NestedStructUnsupportedError,
    OffsetMismatchError,
    UnionMemberConstraintError,
    UnsupportedWordWidthError,
    UnusedMetadataError,
)
from .helpers import enum_constant_name
from .model import (
    WORD_WIDTHS,
    BitField,
    BitFieldItem,
    Field,
    OpaqueField,
    StructField,
    UnionField,
    WordField,
)

__all__ = [ 'resolve', 'compute_align', 'check_duplicate_names', ]

logger = logging.getLogger(__name__)

# Names of anonymous fields are made from this pattern
_INTERNAL_NAME_RE = re.compile(r'^f[0-9]+$')


def compute_align(byte_offset: int) -> int:
    """Largest power of two dividing byte_offset, capped at 64."""
    i = 1
    while i < 128:
        if byte_offset % i:
            return i >> 1
        i <<= 1
    return 64


def _mk_name(obj: Field | BitFieldItem, path: tuple[str, ...], number: int) -> tuple[str, tuple[str, ...]]:
    """Return (fqn, path for children) of obj.

    Named objects skip the positional markers of anonymous ancestors. Anonymous
    objects keep the whole path so that their fqn stays unique.
    """
    if obj.name:
        for n in (obj.name, obj.short_name):
            if n and _INTERNAL_NAME_RE.match(n):
                raise InvalidNameError('_'.join(path), f'The name {n} collides with internal naming system, '
                                       'please use a different name')
        label = obj.short_name or obj.name
        fqn = '_'.join([n for n in path if not _INTERNAL_NAME_RE.match(n)] + [label])
        return fqn, path + (label,)

    new_path = path + (f'f{number}',)
    fqn = '_'.join(new_path)
    if obj.short_name:
        raise InvalidNameError(fqn, f'has a short name {obj.short_name} but no name')
    return fqn, new_path


def _check_enum(values: Mapping[str, int], min_val: int, max_val: int, fqn: str) -> None:
    for name, value in values.items():
        if value < min_val:
            raise EnumRangeError(fqn, f'Enum has {name} = {value} which is < min val {min_val}')
        if value > max_val:
            raise EnumRangeError(fqn, f'Enum has {name} = {value} which is > max val {max_val}')


def _resolve_bitfield_item(obj: BitFieldItem, path: tuple[str, ...], number: int,
                           end_bit: int, byte_offset: int, align: int) -> BitFieldItem:
    """Resolve a bitfield item occupying the bits just below end_bit."""
    fqn, _ = _mk_name(obj, path, number)

    if not obj.name and obj.enum is not None:
        raise UnusedMetadataError(fqn, 'Bitfield item has an enum despite being nameless (unused)')

    if isinstance(obj.bits, bool) or not isinstance(obj.bits, int) or obj.bits < 1:
        raise BitfieldWidthMismatchError(fqn, f'bits is invalid ({obj.bits!r}), must be a positive whole number')

    if obj.enum is not None:
        _check_enum(obj.enum, 0, (1 << obj.bits) - 1, fqn)

    return replace(obj, fqn=fqn, align=align, byte_offset=byte_offset,
                   bitrange=tuple(range(end_bit - obj.bits, end_bit)))


def _resolve_bitfield(obj: BitField, fqn: str, path: tuple[str, ...], byte_offset: int,
                      align: int) -> tuple[BitField, int]:
    if obj.bits not in WORD_WIDTHS:
        raise UnsupportedWordWidthError(fqn, f'Bitfield width {obj.bits} is not one of {WORD_WIDTHS}')

    bit_offset = obj.bits
    items = []
    for i, item in enumerate(obj.fields):
        resolved = _resolve_bitfield_item(item, path, i, bit_offset, byte_offset, align)
        bit_offset -= resolved.bits
        items.append(resolved)

    if bit_offset != 0:
        raise BitfieldWidthMismatchError(fqn, f'bit field widths do not add up to word size, off by {bit_offset}',
                                         shortfall=bit_offset)

    resolved = replace(obj, fqn=fqn, align=align, byte_offset=byte_offset, fields=tuple(items))
    return resolved, byte_offset + obj.bits // 8


def _resolve_word(obj: WordField, fqn: str, byte_offset: int, align: int) -> tuple[WordField, int]:
    if obj.bits not in WORD_WIDTHS:
        raise UnsupportedWordWidthError(fqn, f'Word width {obj.bits} is not one of {WORD_WIDTHS}')

    if byte_offset % (obj.bits // 8):
        raise AlignmentError(fqn, f'{obj.bits} bit word at byte offset {byte_offset} does not have required alignment')

    if not obj.name:
        if obj.enum is not None:
            raise UnusedMetadataError(fqn, 'has an enum despite being nameless (unused)')
        if obj.typedef is not None:
            raise UnusedMetadataError(fqn, 'has a typedef despite being nameless (unused)')
        if obj.signed is not None:
            raise UnusedMetadataError(fqn, 'has a signed attribute despite being nameless (unused)')

    if obj.enum is not None:
        if obj.signed:
            half = 1 << (obj.bits - 1)
            _check_enum(obj.enum, -half, half - 1, fqn)
        else:
            _check_enum(obj.enum, 0, (1 << obj.bits) - 1, fqn)

    resolved = replace(obj, fqn=fqn, align=align, byte_offset=byte_offset)
    return resolved, byte_offset + obj.bits // 8


def _resolve_struct(obj: StructField, fqn: str, path: tuple[str, ...], byte_offset: int,
                    align: int) -> tuple[StructField, int]:
    start = byte_offset
    fields = []
    for i, field in enumerate(obj.fields):
        if isinstance(field, StructField):
            raise NestedStructUnsupportedError(fqn, f'Field {field.name or i} is a struct, '
                                               'nested structs are currently not supported')
        if field.offset is not None and field.offset != byte_offset:
            raise OffsetMismatchError(fqn, f'Handling field {field.name or i} - Specified offset is '
                                      f'{field.offset} but there are {byte_offset} bytes of '
                                      'other fields behind this one')
        resolved, byte_offset = _resolve_obj(field, byte_offset, path, i)
        fields.append(resolved)

    resolved = replace(obj, fqn=fqn, align=align, byte_offset=start, fields=tuple(fields))
    return resolved, byte_offset


def _resolve_union(obj: UnionField, fqn: str, path: tuple[str, ...], byte_offset: int,
                   align: int) -> tuple[UnionField, int]:
    # The C declaration needs a member name for the union
    if not obj.name:
        raise InvalidNameError(fqn, 'Unions must have a name')
    if not obj.fields:
        raise EmptyFieldError(fqn, 'Union has no members')

    max_offset = byte_offset
    members = []
    for i, field in enumerate(obj.fields):
        resolved, end = _resolve_obj(field, byte_offset, path, i)
        if field.offset is not None:
            raise UnionMemberConstraintError(resolved.fqn, f'Member of union {fqn} has an offset, '
                                             'which is illegal for union members')
        if isinstance(field, OpaqueField):
            if field.decl is None:
                raise UnionMemberConstraintError(resolved.fqn, f'Opaque member of union {fqn} has no '
                                                 "'decl' property, which is required for union members")
        elif not field.name:
            raise UnionMemberConstraintError(resolved.fqn, f'Member of union {fqn} has no '
                                             "'name' property, which is required for union members")
        max_offset = max(max_offset, end)
        members.append(resolved)

    resolved = replace(obj, fqn=fqn, align=align, byte_offset=byte_offset, fields=tuple(members))
    return resolved, max_offset


def _resolve_obj(obj: Field, byte_offset: int, path: tuple[str, ...], number: int) -> tuple[Field, int]:
    fqn, path = _mk_name(obj, path, number)
    align = compute_align(byte_offset)

    if isinstance(obj, OpaqueField):
        if isinstance(obj.bytes, bool) or not isinstance(obj.bytes, int) or obj.bytes < 1:
            raise EmptyFieldError(fqn, f'bytes is invalid ({obj.bytes!r}), must be a positive whole number')
        resolved, end = replace(obj, fqn=fqn, align=align, byte_offset=byte_offset), byte_offset + obj.bytes
    elif isinstance(obj, UnionField):
        resolved, end = _resolve_union(obj, fqn, path, byte_offset, align)
    elif isinstance(obj, WordField):
        resolved, end = _resolve_word(obj, fqn, byte_offset, align)
    elif isinstance(obj, BitField):
        resolved, end = _resolve_bitfield(obj, fqn, path, byte_offset, align)
    elif isinstance(obj, StructField):
        resolved, end = _resolve_struct(obj, fqn, path, byte_offset, align)
    else:
        raise TypeError(f'Unknown field type: {type(obj).__name__}')

    logger.debug('%s: %s at byte %d, %d bits, align %d', fqn, obj.kind, byte_offset, resolved.size_bits, align)
    return resolved, end


def _check_dup_names(obj: Field | BitFieldItem, names: set[str]) -> None:
    if obj.fqn in names:
        raise DuplicateNameError(obj.fqn, f'Multiple items resolve to fully-qualified name "{obj.fqn}". '
                                 'Please use more distinct names in your structure or avoid anonymous bitfields')
    names.add(obj.fqn)

    enum = getattr(obj, 'enum', None)
    if enum:
        for key in enum:
            ename = enum_constant_name(obj.fqn, key)
            if ename in names:
                raise DuplicateNameError(obj.fqn, f'Enum entry {key} resolves to {ename} '
                                         'which is used in multiple places')
            names.add(ename)

    for field in getattr(obj, 'fields', ()):
        _check_dup_names(field, names)


def check_duplicate_names(root: Field) -> None:
    """Check that fqns and enum constant names are unique over the whole tree."""
    _check_dup_names(root, set())


def resolve(root: Field) -> Field:
    """Resolve a raw field tree.

    Returns a new tree where every node carries its fqn, alignment class and
    byte offset, and every bitfield item its bit range. Raises a LayoutError
    subclass on the first violated invariant.
    """
    if root.offset is not None and root.offset != 0:
        raise OffsetMismatchError(root.label or '', f'Specified offset is {root.offset} but the root '
                                  'object always starts at 0')

    resolved, end = _resolve_obj(root, 0, (), 0)
    check_duplicate_names(resolved)

    logger.debug('%s: resolved, %d bytes total', resolved.fqn, end)
    return resolved
