"""Tabulated dump of a resolved field tree."""

from __future__ import annotations

import tabulate

from .helpers import genmask
from .model import BitFieldItem, Field

__all__ = [ 'layout_rows', 'layout_table', ]

HEADERS = ['FQN', 'Kind', 'Offset', 'Bits', 'Align', 'Bit range', 'Mask']


def format_hex(val):
    """Format integer as hex string."""
    return f'0x{val:x}'


def _format_bitrange(item: BitFieldItem) -> str:
    if len(item.bitrange) == 1:
        return str(item.low)
    return f'{item.high}:{item.low}'


def layout_rows(root: Field, depth: int = 0) -> list[list]:
    """One row per node, children indented below their parent.

    Bitfield items also show their mask within the backing word.
    """
    is_item = isinstance(root, BitFieldItem)
    rows = [[
        '  ' * depth + root.fqn,
        root.kind,
        format_hex(root.byte_offset),
        root.size_bits,
        root.align,
        _format_bitrange(root) if is_item else '',
        format_hex(genmask(root.high, root.low)) if is_item else '',
    ]]
    for f in getattr(root, 'fields', ()):
        rows.extend(layout_rows(f, depth + 1))
    return rows


def layout_table(root: Field) -> str:
    if not root.is_resolved:
        raise ValueError('layout_table() needs a resolved tree, call resolve() first')
    # Keep the indentation of nested fqns
    return tabulate.tabulate(layout_rows(root), HEADERS, preserve_whitespace=True)
