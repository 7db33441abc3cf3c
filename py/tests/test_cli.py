#!/usr/bin/env python3

import contextlib
import io
import logging
import os
import tempfile
import unittest

from regdiag.cli import main, parse_args
from regdiag.logger import setup_logging

MODEL_PATH = os.path.dirname(os.path.abspath(__file__)) + '/../examples/models/qdma_desc.yaml'

BAD_OFFSET_YAML = """
type: struct
name: pkt
fields:
  - {type: word, name: a, bits: 32}
  - {type: word, name: b, bits: 16, offset: 0}
"""

BAD_SCHEMA_YAML = """
type: struct
name: pkt
fields:
  - {type: word, name: a}
"""


def _run(argv):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        ret = main(argv)
    return ret, out.getvalue()


class ParseArgsTests(unittest.TestCase):
    def test_defaults(self):
        args = parse_args(['a.yaml'])

        self.assertEqual(args.models, ['a.yaml'])
        self.assertEqual(args.style, 'comment')
        self.assertFalse(args.no_diagram)
        self.assertFalse(args.no_accessors)
        self.assertFalse(args.doc_comments)
        self.assertFalse(args.ignore_access)
        self.assertFalse(args.table)
        self.assertIsNone(args.output)

    def test_bad_style(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parse_args(['--style', 'html', 'a.yaml'])


class MainTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def write_model(self, text):
        path = os.path.join(self.tmpdir.name, 'model.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def test_default_output(self):
        ret, out = _run(['-q', MODEL_PATH])

        self.assertEqual(ret, 0)
        self.assertTrue(out.startswith('/**\n * qdma_desc - Transmit/receive descriptor'))
        self.assertIn(' */\n', out)
        self.assertIn('struct qdma_desc {\n', out)
        self.assertIn('\tunion {\n\t\tu32 tx_msg[2];\n\t\tu64 rx_msg;\n\t} msg;\n', out)
        self.assertIn('static inline bool is_qdma_desc_ctrl_done(struct ctrl *x) {', out)
        self.assertNotIn('set_qdma_desc_ctrl_done', out)
        self.assertIn('QDMA_DESC_CHANNEL_PPE', out)

    def test_markdown_only(self):
        ret, out = _run(['-q', '--style', 'markdown', '--no-accessors', MODEL_PATH])

        self.assertEqual(ret, 0)
        self.assertTrue(out.startswith('```\n'))
        self.assertIn('- `ctrl` (32 bit):', out)
        self.assertNotIn('struct qdma_desc', out)

    def test_accessors_only(self):
        ret, out = _run(['-q', '--no-diagram', '--ignore-access', '--doc-comments', MODEL_PATH])

        self.assertEqual(ret, 0)
        self.assertTrue(out.startswith('struct qdma_desc {\n'))
        self.assertIn('set_qdma_desc_ctrl_done', out)
        self.assertIn('\t/** Physical address of the packet buffer */\n\tu32 addr;\n', out)

    def test_table(self):
        ret, out = _run(['-q', '--table', '--no-diagram', '--no-accessors', MODEL_PATH])

        self.assertEqual(ret, 0)
        self.assertTrue(out.startswith('FQN'))
        self.assertIn('qdma_desc_msg_rx_msg', out)

    def test_output_file(self):
        path = os.path.join(self.tmpdir.name, 'out.h')
        ret, out = _run(['-q', '-o', path, MODEL_PATH])

        self.assertEqual(ret, 0)
        self.assertEqual(out, '')
        with open(path, encoding='utf-8') as f:
            self.assertIn('struct qdma_desc {', f.read())

    def test_missing_file(self):
        with self.assertLogs('regdiag', 'ERROR') as cm:
            ret, out = _run([os.path.join(self.tmpdir.name, 'nope.yaml')])

        self.assertEqual(ret, 1)
        self.assertEqual(out, '')
        self.assertIn('no such file', cm.output[0])

    def test_layout_error(self):
        path = self.write_model(BAD_OFFSET_YAML)
        with self.assertLogs('regdiag', 'ERROR') as cm:
            ret, out = _run([path])

        self.assertEqual(ret, 1)
        self.assertEqual(out, '')
        self.assertIn('Specified offset is 0', cm.output[0])
        self.assertIn('Exiting because there were errors', cm.output[-1])

    def test_schema_error(self):
        path = self.write_model(BAD_SCHEMA_YAML)
        with self.assertLogs('regdiag', 'ERROR') as cm:
            ret, out = _run([path])

        self.assertEqual(ret, 1)
        self.assertEqual(out, '')
        self.assertIn(path, cm.output[0])
        self.assertIn('Exiting because there were errors', cm.output[-1])


class LoggingTests(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self.saved = (root.level, list(root.handlers))

    def tearDown(self):
        root = logging.getLogger()
        root.setLevel(self.saved[0])
        root.handlers[:] = self.saved[1]

    def test_levels(self):
        root = logging.getLogger()

        setup_logging()
        self.assertEqual(root.level, logging.WARNING)
        setup_logging(verbose=True)
        self.assertEqual(root.level, logging.DEBUG)
        setup_logging(quiet=True)
        self.assertEqual(root.level, logging.ERROR)
        self.assertEqual(len(root.handlers), 1)

    def test_format(self):
        setup_logging()
        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord('regdiag.cli', logging.ERROR, __file__, 1, 'broken', None, None)

        self.assertEqual(handler.format(record), '[ERROR] regdiag.cli: broken')

        setup_logging(quiet=True)
        handler = logging.getLogger().handlers[0]
        self.assertEqual(handler.format(record), 'broken')


if __name__ == '__main__':
    unittest.main()
