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

r"""Canonical license catalog — loads TOML data and answers lookups.

The catalog is the single source of truth for what a license *means*:
its canonical identifier, the free-form strings that resolve to it, its
legal category and any caveats worth surfacing to a reviewer.  It also
carries the obligation table used to explain what a resolved license
requires of its consumer.

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept              │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Canonical id         │ The SPDX-style name, e.g. ``GPL-3.0-only``. │
    │                      │ Lookups are case-insensitive.               │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Alias                │ A lowercase string that means the same      │
    │                      │ license, e.g. ``"apache software license"``.│
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Category             │ permissive, weak-copyleft, strong-copyleft, │
    │                      │ network-copyleft, non-commercial,           │
    │                      │ proprietary (or unknown when unmatched).    │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Obligation           │ What the license requires of you, e.g.      │
    │                      │ "must include the copyright notice".        │
    └─────────────────────┴──────────────────────────────────────────────┘

The loaded catalog is immutable: entries are frozen dataclasses held in
read-only mappings, so one instance can be shared by any number of
concurrent evaluations.

Usage::

    from licensesentinel.catalog import default_catalog

    catalog = default_catalog()
    catalog.category('MIT')  # LicenseCategory.PERMISSIVE
    catalog.lookup_alias('apache software license').canonical_id  # 'Apache-2.0'
"""

from __future__ import annotations

import importlib.resources
import sys
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from licensesentinel._types import LicenseCategory, RiskLevel
from licensesentinel.errors import LicenseDataError
from licensesentinel.logging import get_logger

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

__all__ = [
    'LicenseCatalog',
    'LicenseCatalogEntry',
    'Obligation',
    'data_file',
    'default_catalog',
    'license_family',
    'read_toml',
]

log = get_logger('licensesentinel.catalog')

_CATALOG_CATEGORIES = frozenset(c.value for c in LicenseCategory if c is not LicenseCategory.UNKNOWN)
_OBLIGATION_CATEGORIES = frozenset(c.value for c in LicenseCategory)
_RISK_LEVELS = frozenset(r.value for r in RiskLevel)

_VERSION_SUFFIXES = ('-only', '-or-later')


def data_file(name: str) -> Traversable:
    """Return a handle on a data file shipped inside the package."""
    return importlib.resources.files('licensesentinel') / 'data' / name


def read_toml(path: Path | Traversable) -> dict[str, Any]:
    """Read a TOML file, turning decode errors into :class:`LicenseDataError`."""
    try:
        with path.open('rb') as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise LicenseDataError([f'{path}: {exc}']) from exc


def license_family(license_id: str) -> str:
    """Strip a trailing ``-only`` / ``-or-later`` from a lowercase id.

    ``"gpl-3.0-or-later"`` -> ``"gpl-3.0"``, ``"mit"`` -> ``"mit"``.
    """
    for suffix in _VERSION_SUFFIXES:
        if license_id.endswith(suffix):
            return license_id[: -len(suffix)]
    return license_id


@dataclass(frozen=True)
class LicenseCatalogEntry:
    """Metadata for a single catalogued license.

    Attributes:
        canonical_id: SPDX-style identifier in its canonical case.
        name: Human-readable full name.
        category: Legal category.
        aliases: Lowercase strings resolving to this license, in search
            order.  The lowercased canonical id is always first.
        notes: Caveats surfaced as warnings whenever this license is seen.
        osi_approved: Whether OSI has approved this license.
    """

    canonical_id: str
    name: str
    category: LicenseCategory
    aliases: tuple[str, ...]
    notes: tuple[str, ...] = ()
    osi_approved: bool = False

    @property
    def key(self) -> str:
        """Lowercase canonical id, the form used in policies and results."""
        return self.canonical_id.lower()


@dataclass(frozen=True)
class Obligation:
    """A requirement a license imposes on whoever uses the licensed code.

    Attributes:
        key: Stable identifier, used for deduplication.
        summary: One-sentence description.
        risk_level: How burdensome the obligation is.
        categories: License categories the obligation applies to.
        licenses: Lowercase license families it additionally applies to.
    """

    key: str
    summary: str
    risk_level: RiskLevel
    categories: frozenset[LicenseCategory] = frozenset()
    licenses: frozenset[str] = frozenset()

    def applies_to(self, license_id: str, category: LicenseCategory) -> bool:
        """Return ``True`` if this obligation binds *license_id*."""
        return category in self.categories or license_family(license_id.lower()) in self.licenses


def _str_list(value: object, where: str, errors: list[str]) -> list[str]:
    if not isinstance(value, list):
        errors.append(f'{where}: expected list, got {type(value).__name__}')
        return []
    if not all(isinstance(v, str) for v in value):
        errors.append(f'{where}: all entries must be strings')
        return []
    return value


def _parse_entry(canonical_id: str, info: object, errors: list[str]) -> LicenseCatalogEntry | None:
    if not isinstance(info, dict):
        errors.append(f'[{canonical_id}]: expected a table, got {type(info).__name__}')
        return None
    cat = info.get('category', '')
    if not cat:
        errors.append(f'[{canonical_id}]: missing required field "category"')
        return None
    if cat not in _CATALOG_CATEGORIES:
        errors.append(
            f'[{canonical_id}].category: {cat!r} is not a valid category. '
            f'Must be one of: {", ".join(sorted(_CATALOG_CATEGORIES))}'
        )
        return None
    name = info.get('name', canonical_id)
    if not isinstance(name, str):
        errors.append(f'[{canonical_id}].name: expected string, got {type(name).__name__}')
        name = canonical_id
    osi = info.get('osi_approved', False)
    if not isinstance(osi, bool):
        errors.append(f'[{canonical_id}].osi_approved: expected bool, got {type(osi).__name__}')
        osi = False
    aliases = _str_list(info.get('aliases', []), f'[{canonical_id}].aliases', errors)
    notes = _str_list(info.get('notes', []), f'[{canonical_id}].notes', errors)
    return LicenseCatalogEntry(
        canonical_id=canonical_id,
        name=name,
        category=LicenseCategory(cat),
        aliases=_ordered_aliases(canonical_id, aliases),
        notes=tuple(notes),
        osi_approved=osi,
    )


def _ordered_aliases(canonical_id: str, aliases: list[str]) -> tuple[str, ...]:
    # dict.fromkeys keeps first-seen order while dropping repeats.
    return tuple(dict.fromkeys([canonical_id.lower(), *(a.strip().lower() for a in aliases)]))


def _parse_obligation(key: str, info: object, errors: list[str]) -> Obligation | None:
    if not isinstance(info, dict):
        errors.append(f'[{key}]: expected a table, got {type(info).__name__}')
        return None
    summary = info.get('summary')
    if not isinstance(summary, str) or not summary:
        errors.append(f'[{key}]: missing required string field "summary"')
        return None
    level = info.get('risk_level', '')
    if level not in _RISK_LEVELS:
        errors.append(f'[{key}].risk_level: {level!r} is not valid. Must be one of: {", ".join(sorted(_RISK_LEVELS))}')
        return None
    categories = _str_list(info.get('categories', []), f'[{key}].categories', errors)
    bad = [c for c in categories if c not in _OBLIGATION_CATEGORIES]
    if bad:
        errors.append(f'[{key}].categories: unknown categories {bad!r}')
        return None
    licenses = _str_list(info.get('licenses', []), f'[{key}].licenses', errors)
    return Obligation(
        key=key,
        summary=summary,
        risk_level=RiskLevel(level),
        categories=frozenset(LicenseCategory(c) for c in categories),
        licenses=frozenset(license_family(lic.lower()) for lic in licenses),
    )


class LicenseCatalog:
    """Read-only catalog of canonical licenses and their obligations.

    Args:
        entries: Catalog entries in alias-search order.
        obligations: Obligation table in report order.
    """

    def __init__(
        self,
        entries: list[LicenseCatalogEntry],
        obligations: list[Obligation] | tuple[Obligation, ...] = (),
    ) -> None:
        self._entries: Mapping[str, LicenseCatalogEntry] = MappingProxyType({e.key: e for e in entries})
        self._obligations = tuple(obligations)
        alias_index: dict[str, LicenseCatalogEntry] = {}
        for entry in entries:
            for alias in entry.aliases:
                # Earlier entries win ties.
                alias_index.setdefault(alias, entry)
        self._alias_index: Mapping[str, LicenseCatalogEntry] = MappingProxyType(alias_index)

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def load(
        cls,
        *,
        licenses_toml: Path | None = None,
        obligations_toml: Path | None = None,
        user_toml: Path | None = None,
    ) -> LicenseCatalog:
        """Load the catalog from TOML data files.

        Args:
            licenses_toml: Path to the license catalog TOML.
                Defaults to the built-in ``data/licenses.toml``.
            obligations_toml: Path to the obligations TOML.
                Defaults to the built-in ``data/obligations.toml``.
            user_toml: Optional user TOML whose ``[licenses.<id>]`` tables
                add licenses or extend the aliases of built-in ones.

        Returns:
            A validated, immutable :class:`LicenseCatalog`.

        Raises:
            LicenseDataError: If any data file fails validation.
        """
        errors: list[str] = []
        entries: dict[str, LicenseCatalogEntry] = {}
        for canonical_id, info in read_toml(licenses_toml or data_file('licenses.toml')).items():
            entry = _parse_entry(canonical_id, info, errors)
            if entry is not None:
                entries[entry.key] = entry

        obligations: list[Obligation] = []
        for key, info in read_toml(obligations_toml or data_file('obligations.toml')).items():
            obligation = _parse_obligation(key, info, errors)
            if obligation is not None:
                obligations.append(obligation)

        if user_toml is not None and user_toml.is_file():
            cls._merge_user_licenses(entries, read_toml(user_toml).get('licenses', {}), errors)

        if errors:
            raise LicenseDataError(errors)

        catalog = cls(list(entries.values()), obligations)
        catalog.validate()
        log.debug(
            'catalog_loaded',
            licenses=len(catalog),
            obligations=len(obligations),
            user_overrides=str(user_toml) if user_toml else None,
        )
        return catalog

    @staticmethod
    def _merge_user_licenses(
        entries: dict[str, LicenseCatalogEntry],
        licenses: object,
        errors: list[str],
    ) -> None:
        """Merge user ``[licenses.<id>]`` tables into *entries*.

        Expected format::

            [licenses."MyCustom-1.0"]
            name = "My Custom License"
            category = "permissive"
            aliases = ["my custom license"]

            # Extending a built-in license only needs the new aliases.
            [licenses.MIT]
            aliases = ["mit-style"]
        """
        if not isinstance(licenses, dict):
            errors.append(f'[licenses]: expected a table, got {type(licenses).__name__}')
            return
        for canonical_id, info in licenses.items():
            existing = entries.get(canonical_id.lower())
            if existing is None:
                entry = _parse_entry(canonical_id, info, errors)
                if entry is not None:
                    entries[entry.key] = entry
                continue
            if not isinstance(info, dict):
                errors.append(f'[licenses.{canonical_id}]: expected a table, got {type(info).__name__}')
                continue
            extra_aliases = _str_list(info.get('aliases', []), f'[licenses.{canonical_id}].aliases', errors)
            extra_notes = _str_list(info.get('notes', []), f'[licenses.{canonical_id}].notes', errors)
            cat = info.get('category', existing.category.value)
            if cat not in _CATALOG_CATEGORIES:
                errors.append(f'[licenses.{canonical_id}].category: {cat!r} is not a valid category')
                continue
            entries[existing.key] = LicenseCatalogEntry(
                canonical_id=existing.canonical_id,
                name=info.get('name', existing.name),
                category=LicenseCategory(cat),
                aliases=_ordered_aliases(existing.canonical_id, [*existing.aliases, *extra_aliases]),
                notes=(*existing.notes, *extra_notes),
                osi_approved=info.get('osi_approved', existing.osi_approved),
            )

    def validate(self) -> None:
        """Validate the assembled catalog for consistency.

        Checks:
            1. No two licenses share the same alias (case-insensitive).
            2. Every obligation license reference names a catalogued family.

        Raises:
            LicenseDataError: If any validation errors are found.
        """
        errors: list[str] = []
        seen: dict[str, str] = {}
        for entry in self._entries.values():
            for alias in entry.aliases:
                owner = seen.get(alias)
                if owner is not None and owner != entry.canonical_id:
                    errors.append(f'Duplicate alias {alias!r} claimed by both {owner!r} and {entry.canonical_id!r}')
                seen.setdefault(alias, entry.canonical_id)

        families = {license_family(key) for key in self._entries}
        for obligation in self._obligations:
            for lic in sorted(obligation.licenses - families):
                errors.append(f'Obligation {obligation.key!r} references unknown license: {lic!r}')

        if errors:
            raise LicenseDataError(errors)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def entries(self) -> Mapping[str, LicenseCatalogEntry]:
        """Read-only mapping from lowercase canonical id to entry."""
        return self._entries

    @property
    def obligations(self) -> tuple[Obligation, ...]:
        """The obligation table, in report order."""
        return self._obligations

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LicenseCatalogEntry]:
        return iter(self._entries.values())

    def __contains__(self, license_id: object) -> bool:
        return isinstance(license_id, str) and license_id.lower() in self._entries

    def entry(self, license_id: str) -> LicenseCatalogEntry | None:
        """Return the entry for *license_id* (case-insensitive), or ``None``."""
        return self._entries.get(license_id.lower())

    def category(self, license_id: str) -> LicenseCategory:
        """Return the category of *license_id*, or ``UNKNOWN``."""
        entry = self.entry(license_id)
        return entry.category if entry else LicenseCategory.UNKNOWN

    def aliases(self, license_id: str) -> tuple[str, ...]:
        """Return the aliases of *license_id*, or ``()`` if not catalogued."""
        entry = self.entry(license_id)
        return entry.aliases if entry else ()

    def lookup_alias(self, text: str) -> LicenseCatalogEntry | None:
        """Return the entry whose alias equals *text* after lowercasing."""
        return self._alias_index.get(text.strip().lower())

    def alias_items(self) -> Iterator[tuple[str, LicenseCatalogEntry]]:
        """Yield ``(alias, entry)`` pairs in catalog search order."""
        return iter(self._alias_index.items())

    def ids_in_category(self, category: LicenseCategory) -> frozenset[str]:
        """Return the lowercase ids of every license in *category*."""
        return frozenset(key for key, e in self._entries.items() if e.category is category)

    def obligations_for(self, license_id: str, category: LicenseCategory) -> tuple[Obligation, ...]:
        """Return the obligations binding *license_id*, in table order."""
        return tuple(o for o in self._obligations if o.applies_to(license_id, category))


_default_lock = threading.Lock()
_default_catalog: LicenseCatalog | None = None


def default_catalog() -> LicenseCatalog:
    """Return the built-in catalog, loading it on first use.

    The first call loads and validates the packaged data; concurrent
    first callers wait on a lock so the data is loaded exactly once.
    """
    global _default_catalog  # noqa: PLW0603
    if _default_catalog is None:
        with _default_lock:
            if _default_catalog is None:
                _default_catalog = LicenseCatalog.load()
    return _default_catalog
