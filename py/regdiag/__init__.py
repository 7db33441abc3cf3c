"""Register and packet layout compiler.

Resolves a declarative field layout into exact byte and bit placement, and
derives ASCII bit diagrams and C accessors from it.
"""

from __future__ import annotations

from .accessors import AccessorConfig, generate_accessors
from .diagram import DescLine, DiagramLayout, abbreviate_name, layout
from .errors import *
from .loader import load_model
from .model import (
    BitField,
    BitFieldItem,
    Field,
    OpaqueField,
    StructField,
    UnionField,
    WordField,
)
from .render import render, render_to_string
from .resolve import compute_align, resolve
