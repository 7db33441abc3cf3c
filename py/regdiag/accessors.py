"""C struct and accessor generation from a resolved field tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, TextIO

from .errors import NestedStructUnsupportedError, UnsupportedRootError
from .helpers import enum_constant_name, type_for_bits
from .model import BitField, Field, OpaqueField, StructField, UnionField, WordField

__all__ = [ 'AccessorConfig', 'generate_accessors', 'tabbed', ]

logger = logging.getLogger(__name__)

TAB_LEN = 56


@dataclass(frozen=True)
class AccessorConfig:
    # Emit /** desc */ comments for described members and accessors
    doc_comments: bool = False
    # Skip setters of read-only items and getters of write-only items
    honor_access: bool = True


@dataclass
class _Accessors:
    members: list[str]
    accessors: list[str]


def tabbed(left: str, right: str) -> str:
    """Join left and right, aligning right to column TAB_LEN with tabs."""
    llen = len(left.replace('\t', ' ' * 8))
    tabllen = llen // 8
    tabs = ' '
    if tabllen < TAB_LEN // 8:
        tabs = '\t' * (TAB_LEN // 8 - tabllen)
    return f'{left}{tabs}{right}'


def _print_enum(fqn: str, values: Mapping[str, int]) -> list[str]:
    out = [f'enum {fqn} {{']
    for name, value in values.items():
        out.append(tabbed('\t' + enum_constant_name(fqn, name), f'= {value},'))
    out.append('};')
    return out


def _bitfield_accessors(obj: BitField, parent_struct: str, parent_fieldname: str,
                        config: AccessorConfig) -> list[str]:
    struct = parent_struct
    fieldname = parent_fieldname
    out = []
    enums: list[str] = []
    defines: list[str] = []
    accessors: list[str] = []

    if obj.name:
        struct = obj.name
        out.append(f'struct {obj.name} {{ u{obj.bits} word; }};')
        fieldname = 'word'
    else:
        out.append(f'/* {parent_struct} {fieldname} */')

    for f in obj.fields:
        if not f.name:
            continue
        if f.enum:
            enums.extend(_print_enum(f.fqn, f.enum))

        mask = f'{f.fqn.upper()}_MASK'
        isget = 'get'
        ctype = type_for_bits(f.bits)
        if f.bits == 1:
            mask = f.fqn.upper()
            defines.append(tabbed(f'#define {mask}', f'BIT({f.low})'))
            isget = 'is'
            ctype = 'bool'
        else:
            defines.append(tabbed(f'#define {mask}', f'GENMASK({f.high}, {f.low})'))
            if f.enum:
                ctype = f'enum {f.fqn}'

        if config.doc_comments and f.desc:
            accessors.append(f'/** {f.desc} */')
        if not (config.honor_access and f.only == 'write'):
            accessors.extend([
                f'static inline {ctype} {isget}_{f.fqn}(struct {struct} *x) {{',
                f'\treturn FIELD_GET({mask}, x->{fieldname});',
                '}',
            ])
        if not (config.honor_access and f.only == 'read'):
            accessors.extend([
                f'static inline void set_{f.fqn}(struct {struct} *x, {ctype} v) {{',
                f'\tx->{fieldname} = FIELD_SET(x->{fieldname}, {mask}, v);',
                '}',
            ])

    if enums:
        out.extend(['', *enums])
    if defines:
        out.extend(['', *defines])
    if accessors:
        out.extend(['', *accessors])
    out.append('')
    return out


def _accessors_struct(obj: StructField | UnionField, tabs: str, struct_name: str,
                      config: AccessorConfig) -> _Accessors:
    fn = 0
    bf = 0
    accessors: list[str] = []
    members: list[str] = []

    for f in obj.fields:
        if config.doc_comments and f.desc:
            members.append(f'{tabs}/** {f.desc} */')

        if isinstance(f, WordField):
            ctype = f.typedef if f.typedef else ('s' if f.signed else 'u') + str(f.bits)
            if f.name:
                name = f.name
            else:
                name = f'unused_{fn}'
                fn += 1
            members.append(f'{tabs}{ctype} {name};')
        elif isinstance(f, OpaqueField):
            if f.decl:
                members.append(tabs + f.decl)
            else:
                members.append(f'{tabs}u8 unused_{fn}[{f.bytes}];')
                fn += 1
        elif isinstance(f, UnionField):
            members.append(tabs + 'union {')
            sub = _accessors_struct(f, tabs + '\t', struct_name, config)
            accessors.extend(sub.accessors)
            members.extend(sub.members)
            members.append(f'{tabs}}} {f.name};')
        elif isinstance(f, BitField):
            if f.name:
                name = f.name
            else:
                name = f'bitfield_{bf}'
                bf += 1
            accessors.extend(_bitfield_accessors(f, struct_name, name, config))
            members.append(f'{tabs}u{f.bits} {name};')
        elif isinstance(f, StructField):
            raise NestedStructUnsupportedError(f.fqn, 'nested structs are currently not supported')
        else:
            raise TypeError(f'Unknown field type: {type(f).__name__}')

    return _Accessors(members=members, accessors=accessors)


def generate_accessors(root: Field, out: TextIO, config: AccessorConfig | None = None) -> None:
    """Write the struct declaration and bitfield accessors of root to out."""
    if config is None:
        config = AccessorConfig()
    if not isinstance(root, StructField):
        raise UnsupportedRootError(root.fqn or '', f'Type {root.kind} not supported yet, the root must be a struct')
    if not root.name:
        raise UnsupportedRootError(root.fqn or '', 'The root struct needs a name')
    if not root.is_resolved:
        raise ValueError('generate_accessors() needs a resolved tree, call resolve() first')

    res = _accessors_struct(root, '\t', root.name, config)
    logger.debug('%s: %d members, %d accessor lines', root.fqn, len(res.members), len(res.accessors))

    out.write('\n'.join([f'struct {root.name} {{', *res.members, '};']) + '\n')
    out.write('\n')
    out.write('\n'.join(res.accessors) + '\n')
