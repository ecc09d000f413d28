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

"""License compatibility matrix.

Answers one question: may code under *dependency license* be
incorporated into a project under *project license*?  The rules come
from ``data/license_compatibility.toml`` as an adjacency table keyed by
project license.  A rule's ``to`` list holds canonical ids, ``@category``
groups expanded against the catalog at load time, or ``*`` for anything.

The table is a simplified approximation of license-compatibility law,
not a legal authority.  It does not model dual licensing,
additional-permission clauses or linking exceptions, and a project
license without a rule is treated as incompatible with everything.
:data:`CAVEAT` is surfaced to users whenever a verdict depends on it.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from licensesentinel._types import LicenseCategory
from licensesentinel.catalog import LicenseCatalog, data_file, default_catalog, read_toml
from licensesentinel.errors import LicenseDataError
from licensesentinel.logging import get_logger

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

__all__ = [
    'CAVEAT',
    'WILDCARD',
    'CompatibilityMatrix',
    'default_matrix',
]

log = get_logger('licensesentinel.compat')

CAVEAT = (
    'License compatibility is checked against a simplified matrix; it does not model dual licensing, '
    'additional permissions or linking exceptions and is not legal advice.'
)

WILDCARD = '*'
_GROUP_PREFIX = '@'


@dataclass(frozen=True)
class _Wildcard:
    """Marker for a project license that accepts any dependency."""


# Either the wildcard marker or the set of accepted dependency ids.
_Allowed = _Wildcard | frozenset[str]


class CompatibilityMatrix:
    """Static project-license -> accepted-dependency-licenses table.

    Args:
        rules: Mapping from lowercase project license id to either a
            wildcard marker or a frozenset of lowercase dependency ids.
    """

    def __init__(self, rules: Mapping[str, _Allowed]) -> None:
        self._rules: Mapping[str, _Allowed] = MappingProxyType(dict(rules))

    @classmethod
    def load(
        cls,
        *,
        catalog: LicenseCatalog | None = None,
        compat_toml: Path | None = None,
        user_toml: Path | None = None,
    ) -> CompatibilityMatrix:
        """Load compatibility rules from TOML.

        Args:
            catalog: Catalog used to validate ids and expand ``@category``
                groups.  Defaults to the built-in catalog.
            compat_toml: Rules file.  Defaults to the built-in
                ``data/license_compatibility.toml``.
            user_toml: Optional user TOML whose ``[[rule]]`` entries are
                appended to the built-in rules.

        Raises:
            LicenseDataError: If a rule is malformed or names an unknown
                license or category.
        """
        catalog = catalog or default_catalog()
        raw_rules = list(cls._read_rules(compat_toml or data_file('license_compatibility.toml')))
        if user_toml is not None and user_toml.is_file():
            raw_rules.extend(cls._read_rules(user_toml))

        errors: list[str] = []
        accepted: dict[str, set[str]] = {}
        wildcards: set[str] = set()
        for i, rule in enumerate(raw_rules):
            if not isinstance(rule, dict):
                errors.append(f'rule[{i}]: expected a table, got {type(rule).__name__}')
                continue
            from_id = rule.get('from')
            to_ids = rule.get('to')
            if not isinstance(from_id, str):
                errors.append(f'rule[{i}]: missing or non-string field "from"')
                continue
            if not isinstance(to_ids, list) or not all(isinstance(t, str) for t in to_ids):
                errors.append(f'rule[{i}].to: expected a list of strings')
                continue
            if from_id not in catalog:
                errors.append(f'rule[{i}]: "from" references unknown license: {from_id!r}')
                continue
            project = from_id.lower()
            targets = accepted.setdefault(project, set())
            for target in to_ids:
                if target == WILDCARD:
                    wildcards.add(project)
                elif target.startswith(_GROUP_PREFIX):
                    group = target[len(_GROUP_PREFIX) :]
                    try:
                        targets.update(catalog.ids_in_category(LicenseCategory(group)))
                    except ValueError:
                        errors.append(f'rule[{i}].to: unknown category group {target!r}')
                elif target in catalog:
                    targets.add(target.lower())
                else:
                    errors.append(f'rule[{i}]: "to" references unknown license: {target!r}')
        if errors:
            raise LicenseDataError(errors)

        rules: dict[str, _Allowed] = {p: frozenset(t) for p, t in accepted.items()}
        for project in wildcards:
            rules[project] = _Wildcard()
        log.debug('compat_matrix_loaded', projects=len(rules), wildcards=len(wildcards))
        return cls(rules)

    @staticmethod
    def _read_rules(path: Path | Traversable) -> list[object]:
        rules = read_toml(path).get('rule', [])
        if not isinstance(rules, list):
            raise LicenseDataError([f'{path}: "rule" must be an array of tables ([[rule]]).'])
        return rules

    def knows(self, project_license: str) -> bool:
        """Return ``True`` if *project_license* has a rule."""
        return project_license.lower() in self._rules

    def is_compatible(self, project_license: str, dependency_license: str) -> bool:
        """Check whether a project may incorporate *dependency_license*.

        Both arguments are canonical ids (case-insensitive).  A project
        license with no rule yields ``False``: no news is not good news.
        """
        allowed = self._rules.get(project_license.lower())
        if allowed is None:
            return False
        if isinstance(allowed, _Wildcard):
            return True
        return dependency_license.lower() in allowed


_default_lock = threading.Lock()
_default_matrix: CompatibilityMatrix | None = None


def default_matrix() -> CompatibilityMatrix:
    """Return the built-in matrix, loading it on first use."""
    global _default_matrix  # noqa: PLW0603
    if _default_matrix is None:
        with _default_lock:
            if _default_matrix is None:
                _default_matrix = CompatibilityMatrix.load()
    return _default_matrix
