"""Command-line interface for regdiag."""

from __future__ import annotations

import argparse
import io
import logging
import os
import sys
from typing import TextIO

from .accessors import AccessorConfig, generate_accessors
from .diagram import layout
from .errors import LayoutError, SchemaViolationError
from .loader import load_model
from .logger import setup_logging
from .render import STYLES, render_to_string
from .resolve import resolve
from .table import layout_table

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='regdiag',
        description='Generate bit diagrams and C accessors from register/packet layout models',
    )
    parser.add_argument('models', metavar='MODEL', nargs='+', help='YAML or JSON model file')
    parser.add_argument('--style', choices=STYLES, default='comment',
                        help='Diagram style (default: comment)')
    parser.add_argument('--no-diagram', action='store_true', help='Do not print the bit diagram')
    parser.add_argument('--no-accessors', action='store_true', help='Do not print the struct and accessors')
    parser.add_argument('--doc-comments', action='store_true',
                        help='Add field descriptions as comments to the struct and accessors')
    parser.add_argument('--ignore-access', action='store_true',
                        help="Generate both getters and setters regardless of 'only'")
    parser.add_argument('--table', action='store_true', help='Print a table of the resolved layout')
    parser.add_argument('-o', '--output', metavar='FILE', help='Write output to FILE instead of stdout')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log errors')

    return parser.parse_args(argv)


def process_model(path: str, args: argparse.Namespace, out: TextIO) -> None:
    """Run one model through the whole pipeline."""
    root = resolve(load_model(path))
    logger.info('%s: %s resolved, %d bytes', path, root.fqn, root.size)

    # Build everything first so that a failing model produces no output
    chunks = []
    if args.table:
        chunks.append(layout_table(root) + '\n')
    if not args.no_diagram:
        chunks.append(render_to_string(layout(root), args.style))
    if not args.no_accessors:
        config = AccessorConfig(doc_comments=args.doc_comments, honor_access=not args.ignore_access)
        with io.StringIO() as s:
            generate_accessors(root, s, config)
            chunks.append(s.getvalue())

    out.write('\n'.join(chunks))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    setup_logging(verbose=args.verbose, quiet=args.quiet)

    for path in args.models:
        if not os.path.isfile(path):
            logger.error('%s: no such file', path)
            return 1

    out = open(args.output, 'w', encoding='utf-8') if args.output else sys.stdout
    try:
        for path in args.models:
            try:
                process_model(path, args, out)
            except SchemaViolationError as e:
                for msg in e.messages:
                    logger.error('%s: %s', path, msg)
                logger.error('Exiting because there were errors')
                return 1
            except LayoutError as e:
                logger.error('%s: %s', path, e)
                logger.error('Exiting because there were errors')
                return 1
    finally:
        if out is not sys.stdout:
            out.close()

    return 0
