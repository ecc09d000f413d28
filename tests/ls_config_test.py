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

"""Tests for policy configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from licensesentinel._types import ComplianceStatus
from licensesentinel.config import SentinelConfig, build_policy, config_from_mapping, load_config
from licensesentinel.errors import ConfigError


class TestLoadConfig:
    """Tests for load_config()."""

    def test_pyproject_table(self, tmp_path: Path) -> None:
        """The [tool.license-sentinel] table is read from pyproject.toml."""
        path = tmp_path / 'pyproject.toml'
        path.write_text(
            '[project]\nname = "demo"\n\n'
            '[tool.license-sentinel]\n'
            'allowed = ["MIT", "Apache License 2.0"]\n'
            'denied = ["GPL-2.0+"]\n'
            'project-license = "Apache-2.0"\n'
        )
        config = load_config(path)
        assert config.policy.allowed == frozenset({'mit', 'apache-2.0'})
        assert config.policy.denied == frozenset({'gpl-2.0-or-later'})
        assert config.policy.main_license == 'apache-2.0'
        assert config.catalog_overrides is None

    def test_pyproject_without_table(self, tmp_path: Path) -> None:
        """A pyproject.toml without the table gives the empty config."""
        path = tmp_path / 'pyproject.toml'
        path.write_text('[project]\nname = "demo"\n')
        config = load_config(path)
        assert config == SentinelConfig()

    def test_standalone_file(self, tmp_path: Path) -> None:
        """A standalone file is read from its top level."""
        path = tmp_path / 'license-sentinel.toml'
        path.write_text('allowed = ["ISC"]\ndenied = ["AGPL-3.0"]\n')
        config = load_config(path)
        assert config.policy.allowed == frozenset({'isc'})
        assert config.policy.denied == frozenset({'agpl-3.0-only'})

    def test_unresolved_names_kept(self, tmp_path: Path) -> None:
        """Names that do not resolve exactly are only lowercased."""
        path = tmp_path / 'license-sentinel.toml'
        path.write_text('allowed = ["Acme Widget Terms"]\n')
        config = load_config(path)
        assert config.policy.allowed == frozenset({'acme widget terms'})

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ConfigError."""
        with pytest.raises(ConfigError, match='file not found'):
            load_config(tmp_path / 'nope.toml')

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Syntax errors raise ConfigError."""
        path = tmp_path / 'license-sentinel.toml'
        path.write_text('allowed = [\n')
        with pytest.raises(ConfigError):
            load_config(path)

    def test_catalog_overrides(self, tmp_path: Path) -> None:
        """catalog-overrides feeds the catalog and the matrix."""
        (tmp_path / 'extra.toml').write_text(
            '[licenses."Acme-1.0"]\n'
            'name = "Acme License"\n'
            'category = "permissive"\n'
            'aliases = ["acme license"]\n\n'
            '[[rule]]\n'
            'from = "Acme-1.0"\n'
            'to = ["@permissive"]\n'
        )
        path = tmp_path / 'license-sentinel.toml'
        path.write_text('allowed = ["acme-1.0", "mit"]\nproject-license = "acme-1.0"\ncatalog-overrides = "extra.toml"\n')
        config = load_config(path)
        assert config.catalog_overrides == (tmp_path / 'extra.toml').resolve()

        evaluator = config.build_evaluator()
        result = evaluator.evaluate('Acme License', config.policy)
        assert result.status is ComplianceStatus.COMPLIANT
        assert result.trace[0].license_id == 'acme-1.0'

        result = evaluator.evaluate('MIT', config.policy)
        assert result.compatibility_issues == ()


class TestConfigFromMapping:
    """Tests for config_from_mapping()."""

    def test_wrong_types_collected(self) -> None:
        """Every type problem is reported at once."""
        with pytest.raises(ConfigError) as exc_info:
            config_from_mapping({'allowed': 'MIT', 'denied': [1], 'project-license': 3})
        assert len(exc_info.value.errors) == 3

    def test_unknown_key(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ConfigError, match='unknown key'):
            config_from_mapping({'alowed': ['MIT']})

    def test_missing_overrides_file(self, tmp_path: Path) -> None:
        """catalog-overrides must point to a file."""
        with pytest.raises(ConfigError, match='not found'):
            config_from_mapping({'catalog-overrides': 'missing.toml'}, base_dir=tmp_path)

    def test_error_message_lists_problems(self) -> None:
        """The message is a bulleted list."""
        with pytest.raises(ConfigError) as exc_info:
            config_from_mapping({'allowed': 'MIT'})
        assert 'Policy configuration has 1 validation error(s)' in str(exc_info.value)
        assert '  - "allowed" must be a list of strings' in str(exc_info.value)


class TestBuildPolicy:
    """Tests for build_policy()."""

    def test_canonicalizes(self) -> None:
        """Names are canonicalized through the normalizer."""
        policy = build_policy(['The MIT License'], ['GNU Affero GPL'], 'Apache Software License')
        assert policy.allowed == frozenset({'mit'})
        assert policy.denied == frozenset({'agpl-3.0-only'})
        assert policy.main_license == 'apache-2.0'

    def test_empty(self) -> None:
        """No input gives the empty policy."""
        policy = build_policy()
        assert not policy.allowed
        assert policy.main_license is None
