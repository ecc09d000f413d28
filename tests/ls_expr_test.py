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

"""Tests for the license expression parser."""

from __future__ import annotations

import pytest
from licensesentinel.expr import (
    Combinator,
    Leaf,
    Operator,
    leaves,
    parse,
)

# ── Leaves ───────────────────────────────────────────────────────────


class TestLeaf:
    """Tests for single-token input."""

    def test_bare_token(self) -> None:
        """A bare string is a Leaf."""
        assert parse('MIT') == Leaf('MIT')

    def test_whitespace_stripped(self) -> None:
        """Surrounding whitespace is dropped."""
        assert parse('  Apache-2.0  ') == Leaf('Apache-2.0')

    def test_outer_parens(self) -> None:
        """Redundant outer parentheses are removed."""
        assert parse('(MIT)') == Leaf('MIT')
        assert parse('((MIT))') == Leaf('MIT')

    def test_name_with_spaces(self) -> None:
        """Multi-word names without operators stay whole."""
        assert parse('Apache Software License') == Leaf('Apache Software License')

    def test_or_later_is_not_an_operator(self) -> None:
        """"or later" belongs to the license name."""
        assert parse('GPL-2.0 or later') == Leaf('GPL-2.0 or later')
        assert parse('GPL-3.0 or any later version') == Leaf('GPL-3.0 or any later version')

    def test_url_slashes_kept(self) -> None:
        """A double slash is not a separator."""
        node = parse('see https://example.com')
        assert node == Leaf('see https://example.com')


# ── Operators ────────────────────────────────────────────────────────


class TestOperators:
    """Tests for AND / OR splitting."""

    def test_or(self) -> None:
        """OR yields an OR node with children in input order."""
        assert parse('MIT OR Apache-2.0') == Combinator(Operator.OR, (Leaf('MIT'), Leaf('Apache-2.0')))

    def test_and(self) -> None:
        """AND yields an AND node."""
        assert parse('MIT AND BSD-3-Clause') == Combinator(Operator.AND, (Leaf('MIT'), Leaf('BSD-3-Clause')))

    def test_parenthesized_group(self) -> None:
        """Splitting respects parentheses."""
        node = parse('(MIT OR Apache-2.0) AND GPL-3.0-only')
        assert isinstance(node, Combinator)
        assert node.operator is Operator.AND
        assert node.children[0] == Combinator(Operator.OR, (Leaf('MIT'), Leaf('Apache-2.0')))
        assert node.children[1] == Leaf('GPL-3.0-only')

    def test_n_ary(self) -> None:
        """Repeated operators produce one node."""
        node = parse('MIT OR ISC OR Zlib')
        assert isinstance(node, Combinator)
        assert [str(c) for c in node.children] == ['MIT', 'ISC', 'Zlib']

    def test_and_split_first(self) -> None:
        """Mixed operators split on AND first."""
        node = parse('A AND B OR C')
        assert node == Combinator(
            Operator.AND,
            (Leaf('A'), Combinator(Operator.OR, (Leaf('B'), Leaf('C')))),
        )

    def test_or_then_and(self) -> None:
        """AND still splits first when OR comes first."""
        node = parse('A OR B AND C')
        assert node == Combinator(
            Operator.AND,
            (Combinator(Operator.OR, (Leaf('A'), Leaf('B'))), Leaf('C')),
        )

    @pytest.mark.parametrize('text', ['mit or apache-2.0', 'mit Or apache-2.0', 'mit OR apache-2.0'])
    def test_case_insensitive(self, text: str) -> None:
        """Operators are matched in any case."""
        node = parse(text)
        assert isinstance(node, Combinator)
        assert node.operator is Operator.OR
        assert node.children == (Leaf('mit'), Leaf('apache-2.0'))

    @pytest.mark.parametrize('text', ['MIT/Apache-2.0', 'MIT / Apache-2.0'])
    def test_slash_is_or(self, text: str) -> None:
        """A slash separator is an OR."""
        assert parse(text) == Combinator(Operator.OR, (Leaf('MIT'), Leaf('Apache-2.0')))

    def test_operator_needs_whitespace(self) -> None:
        """Operator words inside names do not split."""
        assert parse('Ornament-License') == Leaf('Ornament-License')
        assert parse('BSD-ORIGINAL') == Leaf('BSD-ORIGINAL')


# ── Malformed input ──────────────────────────────────────────────────


class TestMalformed:
    """Malformed input degrades to a single Leaf."""

    def test_unbalanced_open(self) -> None:
        """A missing close paren makes the whole text a Leaf."""
        assert parse('(MIT OR Apache-2.0') == Leaf('(MIT OR Apache-2.0')

    def test_unbalanced_close(self) -> None:
        """A stray close paren makes the whole text a Leaf."""
        assert parse('MIT) OR (Apache-2.0') == Leaf('MIT) OR (Apache-2.0')

    def test_degraded_leaf_is_marked(self) -> None:
        """Leaves the parser gave up on carry the malformed flag."""
        assert parse('(MIT OR Apache-2.0').malformed
        assert parse('MIT OR /').malformed

    @pytest.mark.parametrize('text', ['MIT OR', 'MIT and', 'OR MIT', 'AND'])
    def test_dangling_operator(self, text: str) -> None:
        """An operator with nothing on one side is malformed."""
        node = parse(text)
        assert node == Leaf(text)
        assert isinstance(node, Leaf)
        assert node.malformed

    def test_well_formed_not_marked(self) -> None:
        """Ordinary leaves are not flagged."""
        node = parse('MIT OR Apache-2.0')
        assert isinstance(node, Combinator)
        assert not any(leaf.malformed for leaf in leaves(node))
        assert not parse('GPL-2.0 or later').malformed

    def test_never_raises(self) -> None:
        """Odd input never raises."""
        for text in ['', '()', ')(', 'AND', ' OR ', '(((']:
            assert parse(text) is not None


# ── Atomic names ─────────────────────────────────────────────────────


class TestAtomic:
    """Tests for the atomic predicate."""

    def test_atomic_keeps_name_whole(self) -> None:
        """Names flagged atomic are not split."""
        known = {'zlib/libpng license'}
        node = parse('zlib/libpng license', atomic=lambda t: t.lower() in known)
        assert node == Leaf('zlib/libpng license')

    def test_atomic_inside_expression(self) -> None:
        """Atomic names are kept whole inside larger expressions."""
        known = {'historical permission notice and disclaimer'}
        node = parse(
            '(Historical Permission Notice and Disclaimer) OR MIT',
            atomic=lambda t: t.lower() in known,
        )
        assert node == Combinator(
            Operator.OR,
            (Leaf('Historical Permission Notice and Disclaimer'), Leaf('MIT')),
        )

    def test_without_atomic_splits(self) -> None:
        """Without the predicate the slash splits."""
        node = parse('zlib/libpng license')
        assert isinstance(node, Combinator)


class TestHelpers:
    """Tests for leaves() and str()."""

    def test_leaves_in_order(self) -> None:
        """leaves() walks the tree left to right."""
        node = parse('(MIT OR Apache-2.0) AND (BSD-3-Clause OR ISC)')
        assert [leaf.token for leaf in leaves(node)] == ['MIT', 'Apache-2.0', 'BSD-3-Clause', 'ISC']

    def test_str_round_trip(self) -> None:
        """str() renders nested combinators with parentheses."""
        node = parse('(MIT OR Apache-2.0) AND GPL-3.0-only')
        assert str(node) == '(MIT OR Apache-2.0) AND GPL-3.0-only'
