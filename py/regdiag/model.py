"""Field kinds of a register/packet layout model.

A model is a tree of frozen dataclasses. The loader produces raw nodes where
the computed attributes (``fqn``, ``align``, ``byte_offset`` and, for bitfield
items, ``bitrange``) are ``None``. The resolver returns a new tree with those
attributes filled in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar, Mapping

__all__ = [
    'FieldBase',
    'WordField',
    'BitFieldItem',
    'BitField',
    'StructField',
    'OpaqueField',
    'UnionField',
    'Field',
    'WORD_WIDTHS',
]

# Widths usable for words and bitfield backing words
WORD_WIDTHS = (8, 16, 32, 64)


def _freeze_enum(obj, values: Mapping[str, int] | None) -> None:
    if values is not None and not isinstance(values, MappingProxyType):
        object.__setattr__(obj, 'enum', MappingProxyType(dict(values)))


def _freeze_fields(obj) -> None:
    if not isinstance(obj.fields, tuple):
        object.__setattr__(obj, 'fields', tuple(obj.fields))


@dataclass(frozen=True, kw_only=True)
class FieldBase:
    name: str | None = None
    short_name: str | None = None
    desc: str | None = None
    offset: int | None = None

    # Computed by the resolver
    fqn: str | None = None
    align: int | None = None
    byte_offset: int | None = None

    kind: ClassVar[str] = ''

    @property
    def label(self) -> str | None:
        return self.short_name or self.name

    @property
    def is_resolved(self) -> bool:
        return self.fqn is not None

    @property
    def size_bits(self) -> int:
        raise NotImplementedError()

    @property
    def size(self) -> int:
        """Size in bytes."""
        return self.size_bits // 8


@dataclass(frozen=True, kw_only=True)
class WordField(FieldBase):
    bits: int
    signed: bool | None = None
    typedef: str | None = None
    enum: Mapping[str, int] | None = None

    kind: ClassVar[str] = 'word'

    def __post_init__(self) -> None:
        _freeze_enum(self, self.enum)

    @property
    def size_bits(self) -> int:
        return self.bits


@dataclass(frozen=True, kw_only=True)
class BitFieldItem(FieldBase):
    bits: int
    enum: Mapping[str, int] | None = None
    only: str | None = None

    # Bit indices covered by the item, lowest first
    bitrange: tuple[int, ...] | None = None

    kind: ClassVar[str] = 'bit'

    def __post_init__(self) -> None:
        _freeze_enum(self, self.enum)
        if self.bitrange is not None and not isinstance(self.bitrange, tuple):
            object.__setattr__(self, 'bitrange', tuple(self.bitrange))

    @property
    def size_bits(self) -> int:
        return self.bits

    @property
    def high(self) -> int:
        return self.bitrange[-1]

    @property
    def low(self) -> int:
        return self.bitrange[0]


@dataclass(frozen=True, kw_only=True)
class BitField(FieldBase):
    bits: int
    fields: tuple[BitFieldItem, ...] = field(default_factory=tuple)

    kind: ClassVar[str] = 'bitfield'

    def __post_init__(self) -> None:
        _freeze_fields(self)

    @property
    def size_bits(self) -> int:
        return self.bits


@dataclass(frozen=True, kw_only=True)
class OpaqueField(FieldBase):
    bytes: int
    decl: str | None = None

    kind: ClassVar[str] = 'opaque'

    @property
    def size_bits(self) -> int:
        return self.bytes * 8


@dataclass(frozen=True, kw_only=True)
class StructField(FieldBase):
    fields: tuple[Field, ...] = field(default_factory=tuple)

    kind: ClassVar[str] = 'struct'

    def __post_init__(self) -> None:
        _freeze_fields(self)

    @property
    def size_bits(self) -> int:
        return sum(f.size_bits for f in self.fields)


@dataclass(frozen=True, kw_only=True)
class UnionField(FieldBase):
    fields: tuple[Field, ...] = field(default_factory=tuple)

    kind: ClassVar[str] = 'union'

    def __post_init__(self) -> None:
        _freeze_fields(self)

    @property
    def size_bits(self) -> int:
        return max((f.size_bits for f in self.fields), default=0)


Field = WordField | BitField | StructField | OpaqueField | UnionField
