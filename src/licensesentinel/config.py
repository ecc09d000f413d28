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

"""Policy configuration loaded from TOML.

Two layouts are accepted:

``pyproject.toml``::

    [tool.license-sentinel]
    allowed = ["MIT", "Apache-2.0", "BSD-3-Clause"]
    denied = ["GPL-2.0-or-later", "AGPL-3.0-only"]
    project-license = "Apache-2.0"
    catalog-overrides = "licenses-extra.toml"

``license-sentinel.toml``: the same keys at the top level.

License names are canonicalized through the normalizer when they match
a catalog alias or a high-precision pattern (``"Apache License 2.0"``
-> ``"apache-2.0"``); anything else is kept, lowercased, as written.
``catalog-overrides`` is resolved relative to the config file and is
loaded into both the catalog (``[licenses."<id>"]`` tables) and the
compatibility matrix (``[[rule]]`` entries).
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from licensesentinel.catalog import LicenseCatalog
from licensesentinel.compat import CompatibilityMatrix
from licensesentinel.errors import ConfigError
from licensesentinel.evaluate import Evaluator
from licensesentinel.logging import get_logger
from licensesentinel.normalize import Normalizer, default_normalizer
from licensesentinel.policy import Policy, canonical_policy_id

__all__ = [
    'CONFIG_FILENAME',
    'PYPROJECT_TABLE',
    'SentinelConfig',
    'build_policy',
    'config_from_mapping',
    'load_config',
]

log = get_logger('licensesentinel.config')

CONFIG_FILENAME = 'license-sentinel.toml'
PYPROJECT_TABLE = 'license-sentinel'

_KNOWN_KEYS = frozenset({'allowed', 'denied', 'project-license', 'catalog-overrides'})


@dataclass(frozen=True)
class SentinelConfig:
    """Loaded configuration.

    Attributes:
        policy: The allow/deny policy, with canonical ids.
        catalog_overrides: Absolute path of the user license TOML, if any.
    """

    policy: Policy = field(default_factory=Policy)
    catalog_overrides: Path | None = None

    def build_evaluator(self) -> Evaluator:
        """Return an evaluator honouring ``catalog_overrides``."""
        if self.catalog_overrides is None:
            return Evaluator()
        catalog = LicenseCatalog.load(user_toml=self.catalog_overrides)
        matrix = CompatibilityMatrix.load(catalog=catalog, user_toml=self.catalog_overrides)
        return Evaluator(Normalizer(catalog), matrix)


def build_policy(
    allowed: list[str] | tuple[str, ...] = (),
    denied: list[str] | tuple[str, ...] = (),
    project_license: str | None = None,
    normalizer: Normalizer | None = None,
) -> Policy:
    """Build a :class:`Policy` from user-written license names."""
    normalizer = normalizer or default_normalizer()
    return Policy.create(
        allowed=[canonical_policy_id(a, normalizer) for a in allowed if a.strip()],
        denied=[canonical_policy_id(d, normalizer) for d in denied if d.strip()],
        main_license=canonical_policy_id(project_license, normalizer) if project_license else None,
    )


def _string_list(data: Mapping[str, Any], key: str, errors: list[str]) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f'"{key}" must be a list of strings, got {value!r}')
        return []
    return value


def config_from_mapping(
    data: Mapping[str, Any],
    base_dir: Path | None = None,
    normalizer: Normalizer | None = None,
) -> SentinelConfig:
    """Build a :class:`SentinelConfig` from already-parsed TOML data.

    Args:
        data: The ``[tool.license-sentinel]`` table or the top level of a
            standalone config file.
        base_dir: Directory that relative paths are resolved against.
            Defaults to the current directory.
        normalizer: Normalizer used to canonicalize license names.

    Raises:
        ConfigError: If any key has the wrong type or is not recognized.
    """
    errors: list[str] = []
    for key in sorted(set(data) - _KNOWN_KEYS):
        errors.append(f'unknown key {key!r}; expected one of {sorted(_KNOWN_KEYS)}')

    allowed = _string_list(data, 'allowed', errors)
    denied = _string_list(data, 'denied', errors)

    project_license = data.get('project-license')
    if project_license is not None and not isinstance(project_license, str):
        errors.append(f'"project-license" must be a string, got {project_license!r}')
        project_license = None

    overrides = data.get('catalog-overrides')
    overrides_path: Path | None = None
    if overrides is not None:
        if not isinstance(overrides, str):
            errors.append(f'"catalog-overrides" must be a path string, got {overrides!r}')
        else:
            overrides_path = ((base_dir or Path.cwd()) / overrides).resolve()
            if not overrides_path.is_file():
                errors.append(f'"catalog-overrides" file not found: {overrides_path}')

    if errors:
        raise ConfigError(errors)

    policy = build_policy(allowed, denied, project_license, normalizer)
    return SentinelConfig(policy=policy, catalog_overrides=overrides_path)


def load_config(path: Path, normalizer: Normalizer | None = None) -> SentinelConfig:
    """Load configuration from *path*.

    A file named ``pyproject.toml`` is read from its
    ``[tool.license-sentinel]`` table (an absent table yields the empty
    default configuration); any other file is read from its top level.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or holds
            invalid values.
    """
    if not path.is_file():
        raise ConfigError([f'{path}: file not found'])
    try:
        with path.open('rb') as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError([f'{path}: {exc}']) from exc

    if path.name == 'pyproject.toml':
        data = raw.get('tool', {}).get(PYPROJECT_TABLE, {})
        if not isinstance(data, dict):
            raise ConfigError([f'{path}: [tool.{PYPROJECT_TABLE}] must be a table'])
    else:
        data = raw

    config = config_from_mapping(data, base_dir=path.parent, normalizer=normalizer)
    log.info(
        'config_loaded',
        path=str(path),
        allowed=len(config.policy.allowed),
        denied=len(config.policy.denied),
        project_license=config.policy.main_license,
    )
    return config
