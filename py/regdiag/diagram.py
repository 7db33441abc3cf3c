"""Bit diagram layout.

Turns a resolved field tree into rows of 32 bit wide diagram cells and a list
of description lines. Every field gets a short label that fits its cell, see
:func:`abbreviate_name`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping

from .errors import (
    AbbreviationExhaustedError,
    BitfieldTooWideError,
    StraddleError,
    UnalignedBlobWidthError,
    UnsupportedWordWidthError,
)
from .helpers import as_struct, sizeof
from .model import (
    BitField,
    BitFieldItem,
    Field,
    OpaqueField,
    StructField,
    UnionField,
    WordField,
)

__all__ = [
    'DescLine',
    'DiagramContext',
    'DiagramLayout',
    'abbreviate_name',
    'layout',
    'max_letters',
    'mk_padding',
    'pad_name',
    'push_blob',
]

logger = logging.getLogger(__name__)

ROW_BITS = 32

# Words which are too ambiguous to be used as labels
RESERVED = frozenset(['rs', 'rsv', 'rsvd', 'rsrvd', 'reserv', 'reservd', 'reserved'])
UNKNOWN = frozenset(['un', 'unk', 'unkn', 'unkno', 'unknow', 'unknown'])

# 'r' could be read as reserved and 'u' as unknown
_STRIP_BAD_ONE_LETTERS = re.compile(r'[^ABCDEFGHIJKLMNOPQSTVWXYZabcdefghijklmnopqstvwxyz]')
_ONE_LETTER_FALLBACK = 'ABCDEFGHIJKLMNOPQSTUVWXYZabcdefghijklmnopqstuvwxyz'
_STRIP_VOWELS = re.compile(r'[^BCDFGHJKLMNPQSTVWXZbcdfghjklmnpqstvwxz]')


@dataclass
class DescLine:
    name: str
    bits: str
    brief: str | None = None
    enum: Mapping[str, int] | None = None
    typedef: str | None = None
    desc: str | None = None
    tab: int = 0


@dataclass
class DiagramContext:
    """Per-invocation layout state. Never share between models."""
    bit_diagram: list[list[str]] = field(default_factory=list)
    description_lines: list[DescLine] = field(default_factory=list)
    used_names: set[str] = field(default_factory=set)
    unused_ctr: int = 0
    bit_offset: int = 0
    bitfield_ctr: int = 0


@dataclass(frozen=True)
class DiagramLayout:
    title: str
    cells: tuple[tuple[str, ...], ...]
    lines: tuple[DescLine, ...]
    total_bits: int


def max_letters(bits: int) -> int:
    return bits * 2 - 1


def mk_padding(bits: int) -> str:
    return ' ' * max_letters(bits)


def abbreviate_name(name: str, max_len: int, existing: set[str]) -> str:
    """Find a label for name no longer than max_len and not in existing."""
    if len(name) <= max_len and name not in existing:
        return name

    spl_name = name.split('_')

    if max_len == 1:
        for attempt in (
            _STRIP_BAD_ONE_LETTERS.sub('', spl_name[-1]).upper(),
            _STRIP_BAD_ONE_LETTERS.sub('', ''.join(spl_name)).upper(),
            _ONE_LETTER_FALLBACK,
        ):
            for letter in attempt:
                if letter not in existing:
                    return letter
        raise AbbreviationExhaustedError(name, 'Impossible to represent as 1 letter')

    def usable(candidate: str) -> bool:
        return (len(candidate) <= max_len and candidate not in RESERVED
                and candidate not in UNKNOWN and candidate not in existing)

    last = spl_name[-1]
    acronym = ''.join(x[:1] for x in spl_name[:-1])
    candidates = (
        ''.join(spl_name),
        _STRIP_VOWELS.sub('', ''.join(spl_name)),
        (acronym + last)[:max_len],
        (acronym + _STRIP_VOWELS.sub('', last))[:max_len],
        acronym + last,
    )
    for candidate in candidates:
        candidate = candidate.lower()
        if usable(candidate):
            return candidate

    raise AbbreviationExhaustedError(name, f'Out of ideas for how to make a short name of at most {max_len} letters')


def pad_name(brief: str, bits: int) -> str:
    """Center brief in a cell bits wide, cells wider than a row are one row."""
    ml = max_letters(min(bits, ROW_BITS))
    if len(brief) > ml:
        raise AbbreviationExhaustedError(brief, f'Brief name is not short enough (max letters: {ml})')
    i = 0
    while len(brief) < ml:
        if i % 2:
            brief = brief + ' '
        else:
            brief = ' ' + brief
        i += 1
    return brief


def _select_name(ctx: DiagramContext, obj: Field | BitFieldItem) -> tuple[str, str]:
    if obj.name:
        name = obj.name
    else:
        name = f'unused_{ctx.unused_ctr}'
        ctx.unused_ctr += 1
    brief = abbreviate_name(name, max_letters(min(sizeof(obj), ROW_BITS)), ctx.used_names)
    ctx.used_names.add(brief)
    return brief, name


def _row_of(bit: int) -> int:
    return bit // ROW_BITS


def push_blob(ctx: DiagramContext, brief: str, fqn: str, bits: int) -> None:
    """Place an undivided run of bits in the diagram."""
    if bits < ROW_BITS:
        if _row_of(ctx.bit_offset) != _row_of(ctx.bit_offset + bits - 1):
            # TODO: draw small byte arrays which cross a word boundary
            raise StraddleError(fqn, 'straddles a 32 bit boundary and this is currently not supported. '
                                f'({ctx.bit_offset} -> {ctx.bit_offset + bits})')
        ctx.bit_offset += bits
        ctx.bit_diagram.append([pad_name(brief, bits)])
        return

    if bits % ROW_BITS:
        raise UnalignedBlobWidthError(fqn, 'not an even number of 32 bit words in size and this is '
                                      f'currently not supported. Width: {bits}')
    if ctx.bit_offset % ROW_BITS:
        raise StraddleError(fqn, f'{bits} bit object starts at bit {ctx.bit_offset % ROW_BITS} of a 32 bit word '
                            'and this is currently not supported')
    ctx.bit_offset += bits

    # Include internal separators
    total_lines = (bits // ROW_BITS) * 2 - 1
    begin_space = []
    end_space = []
    for i in range(total_lines - 1):
        if i % 2:
            begin_space.append(mk_padding(ROW_BITS))
        else:
            end_space.append(mk_padding(ROW_BITS))
    ctx.bit_diagram.append(begin_space + [pad_name(brief, bits)] + end_space)


def _parse_bitfield(ctx: DiagramContext, obj: BitField) -> None:
    if obj.bits > ROW_BITS:
        raise BitfieldTooWideError(obj.fqn, 'Bitfields over 32 bits wide are not currently supported')
    if _row_of(ctx.bit_offset) != _row_of(ctx.bit_offset + obj.bits - 1):
        raise StraddleError(obj.fqn, 'bitfield straddles a 32 bit boundary and this is currently not supported. '
                            f'({ctx.bit_offset} -> {ctx.bit_offset + obj.bits})')

    if obj.name:
        name = obj.name
    else:
        name = f'bitfield_{ctx.bitfield_ctr}'
        ctx.bitfield_ctr += 1
    ctx.description_lines.append(DescLine(name=name, bits=f'{obj.bits} bit', desc=obj.desc))

    for item in obj.fields:
        brief, item_name = _select_name(ctx, item)
        ctx.bit_offset += item.bits
        ctx.bit_diagram.append([pad_name(brief, item.bits)])
        if obj.bits == ROW_BITS:
            if len(item.bitrange) == 1:
                bits = f'bit {item.low}'
            else:
                bits = f'bits {item.high}..{item.low}'
        else:
            bits = f'{item.bits} bit'
        ctx.description_lines.append(DescLine(
            brief=brief,
            name=item_name,
            bits=bits,
            enum=item.enum,
            desc=item.desc,
            tab=1,
        ))


def _parse_blob(ctx: DiagramContext, obj: OpaqueField | UnionField) -> None:
    bits = sizeof(obj)
    brief, name = _select_name(ctx, obj)
    ctx.description_lines.append(DescLine(brief=brief, name=name, bits=f'{bits} bit', desc=obj.desc))
    push_blob(ctx, brief, obj.fqn, bits)


def _parse_word(ctx: DiagramContext, obj: WordField) -> None:
    if obj.bits > 64:
        raise UnsupportedWordWidthError(obj.fqn, f'Word has size {obj.bits} which is unsupported')
    brief, name = _select_name(ctx, obj)
    ctx.description_lines.append(DescLine(
        brief=brief,
        name=name,
        bits=f'{obj.bits} bit',
        enum=obj.enum,
        typedef=obj.typedef,
        desc=obj.desc,
    ))
    push_blob(ctx, brief, obj.fqn, obj.bits)


def _parse_struct(ctx: DiagramContext, obj: StructField) -> None:
    for f in obj.fields:
        if isinstance(f, BitField):
            _parse_bitfield(ctx, f)
        elif isinstance(f, StructField):
            _parse_struct(ctx, f)
        elif isinstance(f, (OpaqueField, UnionField)):
            _parse_blob(ctx, f)
        elif isinstance(f, WordField):
            _parse_word(ctx, f)
        else:
            raise TypeError(f'Unknown field type: {type(f).__name__}')


def layout(root: Field) -> DiagramLayout:
    """Lay out a resolved field tree as diagram cells and description lines."""
    if not root.is_resolved:
        raise ValueError('layout() needs a resolved tree, call resolve() first')

    ctx = DiagramContext()
    _parse_struct(ctx, as_struct(root))

    title = root.name or root.fqn
    if root.desc:
        title += ' - ' + root.desc

    logger.debug('%s: %d cells, %d description lines, %d bits', root.fqn, len(ctx.bit_diagram),
                 len(ctx.description_lines), ctx.bit_offset)
    return DiagramLayout(
        title=title,
        cells=tuple(tuple(c) for c in ctx.bit_diagram),
        lines=tuple(ctx.description_lines),
        total_bits=ctx.bit_offset,
    )
