"""Text rendering of a diagram layout.

Two styles are supported: ``'comment'`` wraps the diagram and the field
descriptions in a C documentation comment, ``'markdown'`` produces a fenced
diagram followed by a bullet list.
"""

from __future__ import annotations

import io
from typing import Sequence, TextIO

from .diagram import DescLine, DiagramLayout

__all__ = [ 'STYLES', 'render', 'render_to_string', ]

STYLES = ('comment', 'markdown')

PAD = '    '
RULER = (
    ' 3                     2                   1                   0',
    ' 1 0 9 8 7 6 5 4 3 2 1 0 9 8 7 6 5 4 3 2 1 0 9 8 7 6 5 4 3 2 1 0',
)
BORDER = '+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+'
ROW_LEN = len(BORDER)
WRAP = 80


def _emit(out: TextIO, line: str) -> None:
    out.write(line.rstrip() + '\n')


def _word_label(word: int) -> str:
    return f'{word} '.rjust(len(PAD))


def _diagram_lines(cells: Sequence[Sequence[str]]) -> list[str]:
    out = [PAD + RULER[0], PAD + RULER[1], PAD + BORDER]
    line = '|'
    word = 0
    for elem in cells:
        if len(line) >= ROW_LEN:
            out.append(_word_label(word) + line)
            out.append(PAD + BORDER)
            line = '|'
            word += 4
        line = line + elem[0] + '|'
        for i in range(1, len(elem)):
            if line[0] == '+':
                out.append(PAD + line)
            else:
                out.append(_word_label(word) + line)
            if i % 2:
                line = '+' + elem[i] + '+'
            else:
                line = '|' + elem[i] + '|'
                word += 4
    out.append(_word_label(word) + line)
    out.append(PAD + BORDER)
    word += 4
    out.append(_word_label(word))
    return out


def _describe_comment(out: TextIO, lines: Sequence[DescLine]) -> None:
    for desc in lines:
        line = ' * ' + '  ' * desc.tab + f'@{desc.name} '
        if desc.brief and desc.name != desc.brief:
            line += f'"{desc.brief}" '
        line += f'({desc.bits}):'
        pfx = ' * ' + ' ' * (len(line) - 3)

        for word in (desc.desc or '').split(' '):
            nl = line + ' ' + word
            if len(nl) > WRAP:
                _emit(out, line)
                line = pfx + ' ' + word
            else:
                line = nl
        _emit(out, line)


def _describe_markdown(out: TextIO, lines: Sequence[DescLine]) -> None:
    for desc in lines:
        line = [f'- `{desc.brief or desc.name}` ']
        if desc.brief and desc.name != desc.brief:
            line.append(f'"`{desc.name}`" ')
        line.append(f'({desc.bits}): ')
        if desc.typedef:
            line.append(f'typedef {desc.typedef} ')
        if desc.desc:
            line.append(desc.desc)
        _emit(out, ''.join(line))


def render(layout: DiagramLayout, style: str, out: TextIO) -> None:
    """Write layout to out in the given style."""
    if style not in STYLES:
        raise ValueError(f'Unknown diagram style {style!r}, expected one of {STYLES}')

    prefix = ''
    if style == 'comment':
        _emit(out, '/**')
        _emit(out, ' * ' + layout.title)
        prefix = ' * '
        _emit(out, prefix)
    else:
        _emit(out, '```')

    for line in _diagram_lines(layout.cells):
        _emit(out, prefix + line)

    if style != 'comment':
        _emit(out, '```')
    _emit(out, prefix)

    if style == 'comment':
        _describe_comment(out, layout.lines)
        _emit(out, ' */')
    else:
        _describe_markdown(out, layout.lines)


def render_to_string(layout: DiagramLayout, style: str = 'comment') -> str:
    with io.StringIO() as f:
        render(layout, style, f)
        return f.getvalue()
