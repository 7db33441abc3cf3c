from __future__ import annotations

import math

from .model import Field, StructField

def genmask(high: int, low: int):
    return ((1 << (high + 1)) - 1) & ~((1 << low) - 1)

def type_for_bits(bits: int) -> str:
    """Smallest unsigned C type (u8..u64) able to hold ``bits`` bits."""
    if bits <= 0 or bits > 64:
        raise ValueError(f'No word type with {bits} bits')
    if bits < 8:
        return 'u8'
    return f'u{2 ** math.ceil(math.log2(bits))}'

def sizeof(obj) -> int:
    return obj.size_bits

def as_struct(obj: Field) -> StructField:
    """Wrap any field in an anonymous struct so it can be walked as one."""
    if isinstance(obj, StructField):
        return obj
    return StructField(fields=(obj,), fqn='', align=1024, byte_offset=0)

def enum_constant_name(fqn: str, key: str) -> str:
    return f'{fqn}_{key}'.upper()
