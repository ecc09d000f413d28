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

"""Tests for the allow/deny policy."""

from __future__ import annotations

import pytest
from licensesentinel.policy import Policy, canonical_policy_id, split_alternatives


class TestCreate:
    """Tests for Policy.create()."""

    def test_lowercases(self) -> None:
        """Ids are lowercased and trimmed."""
        policy = Policy.create(allowed=['MIT', ' Apache-2.0 '], denied=['AGPL-3.0-only'], main_license='GPL-3.0-only')
        assert policy.allowed == frozenset({'mit', 'apache-2.0'})
        assert policy.denied == frozenset({'agpl-3.0-only'})
        assert policy.main_license == 'gpl-3.0-only'

    def test_blank_entries_dropped(self) -> None:
        """Blank entries are ignored."""
        policy = Policy.create(allowed=['', '  ', 'mit'], main_license='  ')
        assert policy.allowed == frozenset({'mit'})
        assert policy.main_license is None

    def test_empty_default(self) -> None:
        """The default policy allows and denies nothing."""
        policy = Policy()
        assert not policy.allowed
        assert not policy.denied
        assert policy.main_license is None

    def test_frozen(self) -> None:
        """Policies are immutable."""
        policy = Policy()
        with pytest.raises(AttributeError):
            policy.main_license = 'mit'  # type: ignore[misc]


class TestMatching:
    """Tests for denial_for() and allowance_for()."""

    def test_exact(self) -> None:
        """Exact ids match."""
        policy = Policy.create(allowed=['mit'], denied=['agpl-3.0-only'])
        assert policy.allowance_for('mit') == 'mit'
        assert policy.allowance_for('MIT') == 'mit'
        assert policy.denial_for('agpl-3.0-only') == 'agpl-3.0-only'
        assert policy.denial_for('mit') is None
        assert policy.allowance_for('isc') is None

    @pytest.mark.parametrize(
        'license_id',
        ['gpl-2.0-only', 'gpl-2.0-or-later', 'gpl-3.0-only', 'gpl-3.0-or-later', 'gpl-3.0'],
    )
    def test_denied_or_later_family(self, license_id: str) -> None:
        """A denied -or-later entry covers every later version of the family."""
        policy = Policy.create(denied=['gpl-2.0-or-later'])
        assert policy.denial_for(license_id) == 'gpl-2.0-or-later'

    @pytest.mark.parametrize('license_id', ['lgpl-3.0-only', 'agpl-3.0-only', 'gpl-1.0-only', 'mit'])
    def test_denied_family_boundaries(self, license_id: str) -> None:
        """Other families and earlier versions are not covered."""
        policy = Policy.create(denied=['gpl-2.0-or-later'])
        assert policy.denial_for(license_id) is None

    def test_allowed_or_later_family(self) -> None:
        """An allowed -or-later entry covers later versions."""
        policy = Policy.create(allowed=['lgpl-2.1-or-later'])
        assert policy.allowance_for('lgpl-3.0-only') == 'lgpl-2.1-or-later'
        assert policy.allowance_for('lgpl-2.0-only') is None

    def test_only_entry_is_exact(self) -> None:
        """An -only entry never widens to later versions."""
        policy = Policy.create(denied=['gpl-2.0-only'])
        assert policy.denial_for('gpl-3.0-only') is None

    def test_multi_part_versions(self) -> None:
        """Versions compare numerically, part by part."""
        policy = Policy.create(allowed=['lgpl-2.1-or-later'])
        assert policy.allowance_for('lgpl-2.10-only') == 'lgpl-2.1-or-later'
        assert policy.allowance_for('lgpl-2.0-or-later') is None


class TestAllowDeny:
    """Tests for allow() and deny()."""

    def test_allow_returns_new_policy(self) -> None:
        """allow() never mutates the original."""
        base = Policy()
        updated = base.allow('MIT')
        assert updated is not base
        assert updated.allowed == frozenset({'mit'})
        assert base.allowed == frozenset()

    def test_allow_expression(self) -> None:
        """Every alternative of an OR expression is allowed."""
        policy = Policy().allow('MIT OR Apache Software License')
        assert policy.allowed == frozenset({'mit', 'apache-2.0'})

    def test_deny_slash(self) -> None:
        """Slash-separated alternatives are split."""
        policy = Policy().deny('(GPL-3.0)/AGPL-3.0')
        assert policy.denied == frozenset({'gpl-3.0-only', 'agpl-3.0-only'})

    def test_invalid_is_noop(self) -> None:
        """Invalid input returns the same policy."""
        policy = Policy.create(allowed=['mit'])
        assert policy.allow('N/A') is policy
        assert policy.deny('') is policy
        assert policy.deny('Error: registry timeout') is policy

    def test_unchanged_is_same_object(self) -> None:
        """Adding an id already present returns the same policy."""
        policy = Policy.create(allowed=['mit'])
        assert policy.allow('MIT License') is policy

    def test_keeps_main_license(self) -> None:
        """Other fields survive an update."""
        policy = Policy.create(main_license='apache-2.0').deny('agpl-3.0-only')
        assert policy.main_license == 'apache-2.0'

    def test_unrecognized_kept_lowercase(self) -> None:
        """Names that do not resolve exactly are kept as written."""
        policy = Policy().allow('Acme Widget Terms')
        assert policy.allowed == frozenset({'acme widget terms'})


class TestHelpers:
    """Tests for module helpers."""

    def test_canonical_policy_id(self) -> None:
        """Direct and regex matches are canonicalized."""
        assert canonical_policy_id('The MIT License') == 'mit'
        assert canonical_policy_id('Apache License Version 2') == 'apache-2.0'
        assert canonical_policy_id('GPL-2.0+') == 'gpl-2.0-or-later'

    def test_fuzzy_not_canonicalized(self) -> None:
        """Fuzzy guesses never widen a policy."""
        assert canonical_policy_id('Apche License 2.0') == 'apche license 2.0'

    @pytest.mark.parametrize(
        ('expression', 'expected'),
        [
            ('MIT OR Apache-2.0', ['MIT', 'Apache-2.0']),
            ('MIT/Apache-2.0', ['MIT', 'Apache-2.0']),
            ('(MIT) or (ISC)', ['MIT', 'ISC']),
            ('MIT', ['MIT']),
        ],
    )
    def test_split_alternatives(self, expression: str, expected: list[str]) -> None:
        """OR and slash separate alternatives."""
        assert split_alternatives(expression) == expected
