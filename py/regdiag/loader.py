"""Loading of layout model documents.

A model document is YAML (or JSON, which YAML accepts). It is validated
against :data:`regdiag.schema.MODEL_SCHEMA` before being turned into raw
model nodes.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import jsonschema
from jsonschema.exceptions import best_match
import yaml

from .errors import SchemaViolationError
from .model import BitField, BitFieldItem, Field, OpaqueField, StructField, UnionField, WordField
from .schema import MODEL_SCHEMA

__all__ = [ 'parse_document', 'validate_document', 'find_node', 'build_field', 'load_model', ]

logger = logging.getLogger(__name__)

_BASE_KEYS = ('name', 'short_name', 'desc', 'offset')


def parse_document(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaViolationError([f'Error parsing YAML: {e}']) from e


def _format_path(path) -> str:
    return '/' + '/'.join(str(p) for p in path)


def find_node(root: yaml.Node | None, path) -> yaml.Node | None:
    """Follow an instance path through a composed YAML node tree.

    Returns the deepest node reached, so a path ending in a missing key
    gives the mapping which lacks it.
    """
    node = root
    for p in path:
        child = None
        if isinstance(node, yaml.MappingNode):
            for key, value in node.value:
                if isinstance(key, yaml.ScalarNode) and key.value == str(p):
                    child = value
                    break
        elif isinstance(node, yaml.SequenceNode) and isinstance(p, int) and p < len(node.value):
            child = node.value[p]
        if child is None:
            break
        node = child
    return node


def _position(text: str, root: yaml.Node | None, path) -> str:
    node = find_node(root, path)
    if node is None:
        return ''
    mark = node.start_mark
    lines = text.splitlines()
    snippet = lines[mark.line].strip() if mark.line < len(lines) else ''
    return f' ({mark.line + 1}:{mark.column + 1}: {snippet})'


def validate_document(data: Any, text: str | None = None) -> None:
    """Check data against the model schema, reporting every violation.

    When the document text is given, each message also carries the line and
    column of the offending node and the source line itself.
    """
    validator = jsonschema.Draft202012Validator(MODEL_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
    if not errors:
        return

    root = yaml.compose(text, Loader=yaml.SafeLoader) if text is not None else None

    messages = []
    for err in errors:
        # oneOf failures are clearer when reported through the closest sub-error
        best = best_match([err])
        msg = f'{best.message} at {_format_path(best.absolute_path)}'
        if text is not None:
            msg += _position(text, root, best.absolute_path)
        messages.append(msg)
    raise SchemaViolationError(messages)


def _base_kwargs(data: dict) -> dict:
    return {k: data[k] for k in _BASE_KEYS if k in data}


def _build_item(data: dict) -> BitFieldItem:
    return BitFieldItem(bits=data['bits'], enum=data.get('enum'), only=data.get('only'), **_base_kwargs(data))


def build_field(data: dict) -> Field:
    """Build raw model nodes from a validated document."""
    kind = data['type']
    kwargs = _base_kwargs(data)

    if kind == 'word':
        return WordField(bits=data['bits'], signed=data.get('signed'), typedef=data.get('typedef'),
                         enum=data.get('enum'), **kwargs)
    elif kind == 'bitfield':
        return BitField(bits=data['bits'], fields=tuple(_build_item(f) for f in data['fields']), **kwargs)
    elif kind == 'struct':
        return StructField(fields=tuple(build_field(f) for f in data['fields']), **kwargs)
    elif kind == 'opaque':
        return OpaqueField(bytes=data['bytes'], decl=data.get('decl'), **kwargs)
    elif kind == 'union':
        return UnionField(fields=tuple(build_field(f) for f in data['fields']), **kwargs)

    raise ValueError(f'Unknown field type: {kind}')


def load_model(source: str | os.PathLike) -> Field:
    """Load a raw model from a file path or from document text.

    Strings containing a newline, and strings which are not an existing file,
    are treated as document text.
    """
    if isinstance(source, os.PathLike) or ('\n' not in source and os.path.isfile(source)):
        logger.debug('loading model from %s', source)
        with open(source, encoding='utf-8') as f:
            text = f.read()
    else:
        text = source

    data = parse_document(text)
    validate_document(data, text)
    return build_field(data)
