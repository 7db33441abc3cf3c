#!/usr/bin/env python3

import io
import unittest

import regdiag as rd
from regdiag.accessors import tabbed


def _regs():
    return rd.resolve(rd.StructField(name='regs', fields=[
        rd.BitField(name='ctrl', bits=32, fields=[
            rd.BitFieldItem(name='en', bits=1, desc='Enable'),
            rd.BitFieldItem(name='mode', bits=3, enum={'off': 0, 'on': 1}),
            rd.BitFieldItem(bits=28),
        ]),
        rd.WordField(name='count', bits=16, desc='Number of entries'),
        rd.WordField(bits=16),
        rd.BitField(bits=32, fields=[
            rd.BitFieldItem(name='busy', bits=1, only='read'),
            rd.BitFieldItem(name='level', bits=31, only='write'),
        ]),
        rd.OpaqueField(bytes=4),
    ]))


def _generate(root, config=None):
    f = io.StringIO()
    rd.generate_accessors(root, f, config)
    return f.getvalue()


class TabbedTests(unittest.TestCase):
    def test_tabbed(self):
        self.assertEqual(tabbed('#define REGS_BUSY', 'BIT(31)'), '#define REGS_BUSY\t\t\t\t\tBIT(31)')
        self.assertEqual(tabbed('\tREGS_CTRL_MODE_OFF', '= 0,'), '\tREGS_CTRL_MODE_OFF\t\t\t\t= 0,')

    def test_long_left(self):
        left = '#define ' + 'X' * 60
        self.assertEqual(tabbed(left, 'BIT(0)'), left + ' BIT(0)')


class AccessorTests(unittest.TestCase):
    def test_struct(self):
        out = _generate(_regs())

        self.assertTrue(out.startswith(
            'struct regs {\n'
            '\tu32 ctrl;\n'
            '\tu16 count;\n'
            '\tu16 unused_0;\n'
            '\tu32 bitfield_0;\n'
            '\tu8 unused_1[4];\n'
            '};\n'
            '\n'
        ))

    def test_named_bitfield(self):
        lines = _generate(_regs()).splitlines()

        self.assertIn('struct ctrl { u32 word; };', lines)
        self.assertIn('#define REGS_CTRL_EN\t\t\t\t\tBIT(31)', lines)
        self.assertIn('#define REGS_CTRL_MODE_MASK\t\t\t\tGENMASK(30, 28)', lines)
        self.assertIn('static inline bool is_regs_ctrl_en(struct ctrl *x) {', lines)
        self.assertIn('\treturn FIELD_GET(REGS_CTRL_EN, x->word);', lines)
        self.assertIn('static inline void set_regs_ctrl_en(struct ctrl *x, bool v) {', lines)
        self.assertIn('\tx->word = FIELD_SET(x->word, REGS_CTRL_EN, v);', lines)

    def test_enum(self):
        out = _generate(_regs())
        lines = out.splitlines()

        self.assertIn('enum regs_ctrl_mode {\n'
                      '\tREGS_CTRL_MODE_OFF\t\t\t\t= 0,\n'
                      '\tREGS_CTRL_MODE_ON\t\t\t\t= 1,\n'
                      '};\n', out)
        self.assertIn('static inline enum regs_ctrl_mode get_regs_ctrl_mode(struct ctrl *x) {', lines)
        self.assertIn('static inline void set_regs_ctrl_mode(struct ctrl *x, enum regs_ctrl_mode v) {', lines)

    def test_anonymous_bitfield(self):
        lines = _generate(_regs()).splitlines()

        self.assertIn('/* regs bitfield_0 */', lines)
        self.assertIn('#define REGS_BUSY\t\t\t\t\tBIT(31)', lines)
        self.assertIn('#define REGS_LEVEL_MASK\t\t\t\t\tGENMASK(30, 0)', lines)
        self.assertIn('static inline bool is_regs_busy(struct regs *x) {', lines)
        self.assertIn('\treturn FIELD_GET(REGS_BUSY, x->bitfield_0);', lines)
        self.assertIn('static inline void set_regs_level(struct regs *x, u32 v) {', lines)
        self.assertIn('\tx->bitfield_0 = FIELD_SET(x->bitfield_0, REGS_LEVEL_MASK, v);', lines)

    def test_honor_access(self):
        out = _generate(_regs())

        self.assertNotIn('set_regs_busy', out)
        self.assertNotIn('get_regs_level', out)
        # Anonymous items get no accessors at all
        self.assertNotIn('regs_ctrl_f2', out)
        self.assertNotIn('REGS_CTRL_F2', out)

    def test_ignore_access(self):
        out = _generate(_regs(), rd.AccessorConfig(honor_access=False))

        self.assertIn('static inline void set_regs_busy(struct regs *x, bool v) {', out)
        self.assertIn('static inline u32 get_regs_level(struct regs *x) {', out)

    def test_doc_comments(self):
        plain = _generate(_regs())
        self.assertNotIn('/**', plain)

        lines = _generate(_regs(), rd.AccessorConfig(doc_comments=True)).splitlines()
        i = lines.index('\tu16 count;')
        self.assertEqual(lines[i - 1], '\t/** Number of entries */')
        i = lines.index('static inline bool is_regs_ctrl_en(struct ctrl *x) {')
        self.assertEqual(lines[i - 1], '/** Enable */')

    def test_word_types(self):
        root = rd.resolve(rd.StructField(name='pkt', fields=[
            rd.WordField(name='a', bits=32, signed=True),
            rd.WordField(name='b', bits=32, typedef='my_t'),
            rd.WordField(name='c', bits=64, signed=False),
        ]))
        out = _generate(root)

        self.assertTrue(out.startswith('struct pkt {\n\ts32 a;\n\tmy_t b;\n\tu64 c;\n};\n'))

    def test_opaque_decl(self):
        root = rd.resolve(rd.StructField(name='pkt', fields=[
            rd.OpaqueField(name='key', bytes=16, decl='u8 key[16];'),
            rd.OpaqueField(bytes=2),
            rd.OpaqueField(bytes=2),
        ]))
        out = _generate(root)

        self.assertTrue(out.startswith('struct pkt {\n\tu8 key[16];\n\tu8 unused_0[2];\n\tu8 unused_1[2];\n};\n'))

    def test_union(self):
        root = rd.resolve(rd.StructField(name='pkt', fields=[
            rd.WordField(name='hdr', bits=32),
            rd.UnionField(name='u', fields=[
                rd.WordField(name='a', bits=32),
                rd.OpaqueField(bytes=4, decl='u8 raw[4];'),
                rd.BitField(name='bf', bits=32, fields=[
                    rd.BitFieldItem(name='x', bits=32),
                ]),
            ]),
        ]))
        out = _generate(root)
        lines = out.splitlines()

        self.assertTrue(out.startswith(
            'struct pkt {\n'
            '\tu32 hdr;\n'
            '\tunion {\n'
            '\t\tu32 a;\n'
            '\t\tu8 raw[4];\n'
            '\t\tu32 bf;\n'
            '\t} u;\n'
            '};\n'
        ))
        self.assertIn('struct bf { u32 word; };', lines)
        self.assertIn('#define PKT_U_BF_X_MASK\t\t\t\t\tGENMASK(31, 0)', lines)
        self.assertIn('static inline u32 get_pkt_u_bf_x(struct bf *x) {', lines)

    def test_struct_in_union(self):
        root = rd.resolve(rd.StructField(name='pkt', fields=[
            rd.UnionField(name='u', fields=[
                rd.StructField(name='inner', fields=[rd.WordField(name='a', bits=32)]),
            ]),
        ]))

        with self.assertRaises(rd.NestedStructUnsupportedError):
            _generate(root)

    def test_unsupported_roots(self):
        with self.assertRaises(rd.UnsupportedRootError):
            _generate(rd.resolve(rd.WordField(name='reg', bits=32)))

        with self.assertRaises(rd.UnsupportedRootError):
            _generate(rd.resolve(rd.StructField(fields=[rd.WordField(name='a', bits=32)])))

    def test_unresolved(self):
        with self.assertRaises(ValueError):
            _generate(rd.StructField(name='pkt', fields=[rd.WordField(name='a', bits=32)]))


if __name__ == '__main__':
    unittest.main()
