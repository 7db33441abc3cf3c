"""JSON Schema of a layout model document.

The schema only checks document structure. Cross-field layout rules (offsets,
widths adding up, unique names...) are enforced by the resolver.
"""

from __future__ import annotations

__all__ = [ 'MODEL_SCHEMA', ]

_NAME = {'type': 'string', 'pattern': '^[A-Za-z_][A-Za-z0-9_]*$'}

_ENUM = {
    'type': 'object',
    'additionalProperties': {'type': 'integer'},
}

_BASE_PROPERTIES = {
    'name': _NAME,
    'short_name': _NAME,
    'desc': {'type': 'string'},
    'offset': {'type': 'integer', 'minimum': 0},
}

_WIDTH = {'enum': [8, 16, 32, 64]}

MODEL_SCHEMA = {
    '$schema': 'https://json-schema.org/draft/2020-12/schema',
    '$ref': '#/$defs/object',
    '$defs': {
        'object': {
            'type': 'object',
            'required': ['type'],
            'properties': {
                'type': {'enum': ['word', 'bitfield', 'struct', 'opaque', 'union']},
            },
            'oneOf': [
                {'$ref': '#/$defs/word'},
                {'$ref': '#/$defs/bitfield'},
                {'$ref': '#/$defs/struct'},
                {'$ref': '#/$defs/opaque'},
                {'$ref': '#/$defs/union'},
            ],
        },
        'word': {
            'type': 'object',
            'required': ['type', 'bits'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'word'},
                'bits': _WIDTH,
                'signed': {'type': 'boolean'},
                'typedef': {'type': 'string'},
                'enum': _ENUM,
            },
        },
        'bit': {
            'type': 'object',
            'required': ['bits'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'bit'},
                'bits': {'type': 'integer', 'minimum': 1, 'maximum': 64},
                'enum': _ENUM,
                'only': {'enum': ['read', 'write']},
            },
        },
        'bitfield': {
            'type': 'object',
            'required': ['type', 'bits', 'fields'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'bitfield'},
                'bits': _WIDTH,
                'fields': {'type': 'array', 'items': {'$ref': '#/$defs/bit'}},
            },
        },
        'struct': {
            'type': 'object',
            'required': ['type', 'fields'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'struct'},
                'fields': {'type': 'array', 'items': {'$ref': '#/$defs/object'}},
            },
        },
        'opaque': {
            'type': 'object',
            'required': ['type', 'bytes'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'opaque'},
                'bytes': {'type': 'integer', 'minimum': 1},
                'decl': {'type': 'string'},
            },
        },
        'union': {
            'type': 'object',
            'required': ['type', 'name', 'fields'],
            'additionalProperties': False,
            'properties': {
                **_BASE_PROPERTIES,
                'type': {'const': 'union'},
                'fields': {'type': 'array', 'minItems': 1, 'items': {'$ref': '#/$defs/object'}},
            },
        },
    },
}
