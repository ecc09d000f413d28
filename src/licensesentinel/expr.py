# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""License expression parser for real-world manifest strings.

Turns a license string such as ``"(MIT OR Apache-2.0) AND BSD-3-Clause"``
into a small tree of :class:`Leaf` tokens joined by :class:`Combinator`
nodes.  Leaves are *raw* tokens; resolving them to canonical identifiers
is the normalizer's job.

Grammar (simplified, not SPDX Annex B)::

    expression = "(" expression ")"
               / part *( " AND " part )      ; tried first
               / part *( " OR " part )       ; tried only if no top-level AND
               / token

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept              │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ OR (disjunctive)     │ User may choose either license.             │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ AND (conjunctive)    │ User must comply with ALL licenses.         │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Split order          │ AND is split first, OR only when no         │
    │                      │ top-level AND exists.  ``A AND B OR C``     │
    │                      │ is ``AND(A, OR(B, C))``.  This is NOT       │
    │                      │ textbook precedence; mixed operators are    │
    │                      │ rare in manifests and have no agreed        │
    │                      │ reading, so the split order is kept stable. │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Separators           │ ``/`` and any-case ``and``/``or`` between   │
    │                      │ spaces are operators.  "or later" is part   │
    │                      │ of a license name, not an operator.         │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Malformed input      │ Never raises.  Unbalanced parentheses, an   │
    │                      │ empty operand or a dangling operator make   │
    │                      │ the text one opaque Leaf marked malformed.  │
    └─────────────────────┴──────────────────────────────────────────────┘

Usage::

    from licensesentinel.expr import Combinator, Leaf, Operator, parse

    node = parse('(MIT OR Apache-2.0) AND GPL-3.0-only')
    assert isinstance(node, Combinator)
    assert node.operator is Operator.AND
    assert node.children[1] == Leaf('GPL-3.0-only')
"""

from __future__ import annotations

import enum
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from licensesentinel.logging import get_logger

__all__ = [
    'Combinator',
    'ExprNode',
    'Leaf',
    'Operator',
    'leaves',
    'parse',
]

log = get_logger('licensesentinel.expr')


class Operator(str, enum.Enum):
    """Boolean operator joining license terms."""

    AND = 'AND'
    OR = 'OR'


@dataclass(frozen=True)
class Leaf:
    """A single raw license token, e.g. ``"Apache Software License"``.

    Attributes:
        token: The raw text.
        malformed: ``True`` when the text could not be split structurally
            (unbalanced parentheses, an empty operand or a dangling
            operator).  Not part of equality.
    """

    token: str
    malformed: bool = field(default=False, compare=False, repr=False)

    def __str__(self) -> str:
        """Return the raw token."""
        return self.token


@dataclass(frozen=True)
class Combinator:
    """Two or more terms joined by one operator.

    Attributes:
        operator: ``AND`` or ``OR``.
        children: Operands in input order.
    """

    operator: Operator
    children: tuple[ExprNode, ...]

    def __str__(self) -> str:
        """Return the expression text, parenthesizing nested combinators."""
        parts = [f'({c})' if isinstance(c, Combinator) else str(c) for c in self.children]
        return f' {self.operator.value} '.join(parts)


# Union of all tree node types.
ExprNode = Leaf | Combinator


# Separators are matched on the raw text so leaf tokens keep their spelling.
# OR also covers ``/``, except next to ``:`` or another slash (``https://``),
# and never "or later" / "or any later", which is part of a license name.
_SEPARATORS: dict[Operator, re.Pattern[str]] = {
    Operator.AND: re.compile(r'\s+and\s+', re.IGNORECASE),
    Operator.OR: re.compile(
        r'\s*(?<![:/])/(?!/)\s*|\s+or(?!\s+(?:any\s+)?later\b)\s+',
        re.IGNORECASE,
    ),
}

# Split order: AND first, then OR.
_SPLIT_ORDER = (Operator.AND, Operator.OR)

# An operator word with nothing on one side, e.g. "MIT OR".
_DANGLING_RE = re.compile(r'^(?:and|or)(?:\s|$)|\s(?:and|or)$', re.IGNORECASE)


class _Malformed(Exception):
    """Internal signal: the text cannot be split structurally."""


def _closing_index(text: str, open_pos: int) -> int:
    """Return the index of the paren closing ``text[open_pos]``, or ``-1``."""
    depth = 0
    for i in range(open_pos, len(text)):
        if text[i] == '(':
            depth += 1
        elif text[i] == ')':
            depth -= 1
            if depth == 0:
                return i
    return -1


def _strip_outer_parens(text: str) -> str:
    text = text.strip()
    while text.startswith('(') and _closing_index(text, 0) == len(text) - 1:
        text = text[1:-1].strip()
    return text


def _split_top_level(text: str, op: Operator) -> list[str]:
    """Split *text* on *op* separators that sit outside any parentheses."""
    sep = _SEPARATORS[op]
    parts: list[str] = []
    depth = 0
    start = 0
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth < 0:
                raise _Malformed
        elif depth == 0 and (ch.isspace() or ch == '/'):
            m = sep.match(text, pos)
            if m is not None:
                parts.append(text[start:pos])
                start = pos = m.end()
                continue
        pos += 1
    if depth != 0:
        raise _Malformed
    parts.append(text[start:])
    return parts


def _parse(text: str, atomic: Callable[[str], bool] | None) -> ExprNode:
    text = _strip_outer_parens(text)
    if atomic is not None and atomic(text):
        return Leaf(text)
    if _DANGLING_RE.search(text):
        log.debug('expression_degraded', expression=text, reason='dangling operator')
        return Leaf(text, malformed=True)
    for op in _SPLIT_ORDER:
        try:
            parts = _split_top_level(text, op)
        except _Malformed:
            log.debug('expression_degraded', expression=text, reason='unbalanced parentheses')
            return Leaf(text, malformed=True)
        if len(parts) == 1:
            continue
        if any(not p.strip() for p in parts):
            log.debug('expression_degraded', expression=text, reason='empty operand')
            return Leaf(text, malformed=True)
        return Combinator(op, tuple(_parse(p, atomic) for p in parts))
    return Leaf(text)


def parse(expression: str, *, atomic: Callable[[str], bool] | None = None) -> ExprNode:
    """Parse a license string into an expression tree.

    Never raises: text that cannot be split structurally becomes a single
    :class:`Leaf`, which the normalizer will then resolve as best it can.

    Args:
        expression: The raw license string (e.g. ``"MIT OR Apache-2.0"``,
            ``"MIT/Apache-2.0"``, ``"(MIT)"``).
        atomic: Optional predicate; any sub-expression for which it
            returns ``True`` is kept whole as a Leaf.  Used to protect
            license names that contain ``/``, ``and`` or ``or``
            (e.g. ``"zlib/libpng license"``).

    Returns:
        The root :data:`ExprNode`.

    Examples::

        >>> parse('MIT OR Apache-2.0')
        Combinator(operator=<Operator.OR: 'OR'>, children=(Leaf(token='MIT'), Leaf(token='Apache-2.0')))

        >>> parse('(MIT)')
        Leaf(token='MIT')
    """
    return _parse(expression, atomic)


def leaves(node: ExprNode) -> Iterator[Leaf]:
    """Yield every :class:`Leaf` of *node* in input order."""
    if isinstance(node, Leaf):
        yield node
        return
    for child in node.children:
        yield from leaves(child)
