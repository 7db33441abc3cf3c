#!/usr/bin/env python3
"""
regdiag Example: Bit diagram and accessor generation

This example builds a small layout model in Python, resolves it and prints
the bit diagram, the C accessors and the resolved layout table.
"""

import io
import os

import regdiag as rd
from regdiag.table import layout_table


def create_status_model():
    """Create the model of a 64 bit status block."""
    return rd.StructField(name='status_blk', desc='Status block', fields=[
        rd.BitField(name='stat', bits=32, fields=[
            rd.BitFieldItem(name='ready', bits=1, desc='Device ready'),
            rd.BitFieldItem(name='error_code', bits=7, enum={'none': 0, 'timeout': 1, 'crc': 2}),
            rd.BitFieldItem(bits=8),
            rd.BitFieldItem(name='temp', bits=16, desc='Temperature in 1/16 degrees'),
        ]),
        rd.WordField(name='counter', bits=32, desc='Free running event counter'),
    ])


def main():
    root = rd.resolve(create_status_model())

    print(rd.render_to_string(rd.layout(root), 'markdown'))

    with io.StringIO() as f:
        rd.generate_accessors(root, f, rd.AccessorConfig(doc_comments=True))
        print(f.getvalue())

    print(layout_table(root))

    # Models are usually loaded from YAML
    model_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'models', 'qdma_desc.yaml')
    qdma = rd.resolve(rd.load_model(model_path))
    print(rd.render_to_string(rd.layout(qdma), 'comment'))


if __name__ == '__main__':
    main()
