"""
Block Scanning Helpers

Shared text-scanning primitives for the PROTO preprocessor and the scene
extractor. VRML nests node bodies in ``{ }`` and multi-valued fields in
``[ ]``; all span matching here is plain depth counting over characters.

Offsets follow Python slicing: a span is ``[start, end)``.
"""

import re
from typing import Iterator, List, Optional, Tuple

# Float literal as written in VRML files (sign, optional fraction, exponent)
FLOAT_PATTERN = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')
INT_PATTERN = re.compile(r'[-+]?\d+')
COMMENT_PATTERN = re.compile(r'#[^\n]*')

OPENERS = {'{': '}', '[': ']'}


def find_matching(text: str, open_index: int) -> Optional[int]:
    """
    Find the index just past the delimiter closing the one at ``open_index``.

    Only the delimiter kind found at ``open_index`` is counted, so braces
    inside brackets (and the reverse) do not affect the depth.

    Args:
        text: Text to scan
        open_index: Index of an opening ``{`` or ``[``

    Returns:
        Index after the matching closer, or None if unmatched
    """
    opener = text[open_index]
    closer = OPENERS[opener]
    depth = 1
    index = open_index + 1
    length = len(text)

    while index < length and depth > 0:
        char = text[index]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
        index += 1

    if depth != 0:
        return None
    return index


def iter_node_blocks(text: str, node_name: str) -> Iterator[Tuple[int, int, int]]:
    """
    Yield every brace-matched ``<node_name> { ... }`` block in ``text``.

    Nested occurrences are yielded as well; unmatched blocks are skipped.

    Yields:
        (start, body_start, end) where ``text[body_start:end - 1]`` is the
        block body without the outer braces
    """
    pattern = re.compile(r'\b' + re.escape(node_name) + r'\s*\{')
    for match in pattern.finditer(text):
        brace_index = match.end() - 1
        end = find_matching(text, brace_index)
        if end is None:
            continue
        yield match.start(), brace_index + 1, end


def find_bracket_list(text: str, keyword: str) -> Optional[str]:
    """
    Return the content of the first ``<keyword> [ ... ]`` list, or None.
    """
    match = re.search(r'\b' + re.escape(keyword) + r'\s*\[', text)
    if not match:
        return None
    end = find_matching(text, match.end() - 1)
    if end is None:
        return None
    return text[match.end():end - 1]


def mask_nested_blocks(text: str) -> str:
    """
    Blank out every ``{ ... }`` sub-block, keeping offsets stable.

    Used to read a node's own fields without picking up fields that belong to
    nodes nested inside it.
    """
    chars = list(text)
    index = 0
    while index < len(text):
        if text[index] == '{':
            end = find_matching(text, index)
            if end is None:
                end = len(text)
            for pos in range(index, end):
                if chars[pos] != '\n':
                    chars[pos] = ' '
            index = end
        else:
            index += 1
    return ''.join(chars)


def strip_comments(text: str) -> str:
    """Remove ``#`` comments, including the ``#VRML V2.0 utf8`` header."""
    return COMMENT_PATTERN.sub('', text)


def scan_floats(text: str, count: Optional[int] = None) -> List[float]:
    """
    Collect float literals in order, commas tolerated.

    Args:
        text: Text to scan
        count: Stop after this many values (None for all)
    """
    values: List[float] = []
    for match in FLOAT_PATTERN.finditer(text):
        values.append(float(match.group(0)))
        if count is not None and len(values) >= count:
            break
    return values


def scan_ints(text: str) -> List[int]:
    """Collect integer literals in order (coordIndex lists)."""
    return [int(m.group(0)) for m in INT_PATTERN.finditer(text)]


def field_floats(text: str, field_name: str, count: int) -> Optional[List[float]]:
    """
    Read up to ``count`` floats following the word-bounded ``field_name``.

    The values must directly follow the field name; the first non-numeric
    token ends the value list.

    Returns:
        The values found (possibly fewer than ``count``), or None when the
        field is absent or carries no numeric value
    """
    number = FLOAT_PATTERN.pattern
    pattern = re.compile(
        r'\b' + re.escape(field_name) + r'\b((?:[\s,]+' + number + r'){1,' + str(count) + r'})'
    )
    match = pattern.search(text)
    if not match:
        return None
    return scan_floats(match.group(1), count)
