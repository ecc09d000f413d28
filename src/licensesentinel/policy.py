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

"""Allow/deny license policy.

A :class:`Policy` is two sets of lowercase canonical license ids plus an
optional project license.  Matching understands ``-or-later`` entries:
``gpl-2.0-or-later`` in a set covers every ``gpl-*`` id whose version is
2.0 or higher (``gpl-3.0-only``, ``gpl-3.0-or-later``, ...), but not
``lgpl-*`` or ``agpl-*``.

Deny always wins: the evaluator consults :meth:`Policy.denial_for`
before :meth:`Policy.allowance_for`.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from licensesentinel._types import is_invalid_license
from licensesentinel.logging import get_logger
from licensesentinel.normalize import Method, Normalizer, default_normalizer

__all__ = [
    'Policy',
    'canonical_policy_id',
    'split_alternatives',
]

log = get_logger('licensesentinel.policy')

_OR_LATER = '-or-later'
_FAMILY_RE = re.compile(r'^([a-z]+)-(\d+(?:\.\d+)*)')
_ALTERNATIVES_RE = re.compile(r'\s+or\s+|\s*/\s*', re.IGNORECASE)

_Family = tuple[str, tuple[int, ...]]


def _family(license_id: str) -> _Family | None:
    """Return ``(base, version)`` for ids like ``gpl-3.0-only``."""
    m = _FAMILY_RE.match(license_id)
    if m is None:
        return None
    return m.group(1), tuple(int(p) for p in m.group(2).split('.'))


def _or_later_families(ids: frozenset[str]) -> tuple[tuple[str, _Family], ...]:
    rules = []
    for entry in sorted(ids):
        if entry.endswith(_OR_LATER):
            fam = _family(entry)
            if fam is not None:
                rules.append((entry, fam))
    return tuple(rules)


def canonical_policy_id(token: str, normalizer: Normalizer | None = None) -> str:
    """Turn a user-written license name into a policy id.

    Names that resolve with a direct or regex match become the canonical
    lowercase id (``"MIT License"`` -> ``"mit"``); anything else is only
    lowercased so that fuzzy guesses never widen a policy.
    """
    normalizer = normalizer or default_normalizer()
    result = normalizer.normalize(token)
    if result is not None and result.method in (Method.DIRECT, Method.REGEX):
        return result.id
    return token.strip().lower()


def split_alternatives(expression: str) -> list[str]:
    """Split ``"MIT OR Apache-2.0"`` / ``"MIT/Apache-2.0"`` into its names."""
    parts = (p.strip().strip('()').strip() for p in _ALTERNATIVES_RE.split(expression))
    return [p for p in parts if p]


@dataclass(frozen=True)
class Policy:
    """Caller-supplied license policy.

    Attributes:
        allowed: Lowercase canonical ids the project accepts.
        denied: Lowercase canonical ids the project refuses.  May overlap
            with *allowed*; deny wins.
        main_license: Canonical id of the project's own license, used
            only for compatibility checks.
    """

    allowed: frozenset[str] = field(default_factory=frozenset)
    denied: frozenset[str] = field(default_factory=frozenset)
    main_license: str | None = None

    @classmethod
    def create(
        cls,
        allowed: Iterable[str] = (),
        denied: Iterable[str] = (),
        main_license: str | None = None,
    ) -> Policy:
        """Build a policy, lowercasing every id."""
        return cls(
            allowed=frozenset(a.strip().lower() for a in allowed if a.strip()),
            denied=frozenset(d.strip().lower() for d in denied if d.strip()),
            main_license=main_license.strip().lower() if main_license and main_license.strip() else None,
        )

    @functools.cached_property
    def _denied_families(self) -> tuple[tuple[str, _Family], ...]:
        return _or_later_families(self.denied)

    @functools.cached_property
    def _allowed_families(self) -> tuple[tuple[str, _Family], ...]:
        return _or_later_families(self.allowed)

    @staticmethod
    def _covered(license_id: str, ids: frozenset[str], families: tuple[tuple[str, _Family], ...]) -> str | None:
        if license_id in ids:
            return license_id
        fam = _family(license_id)
        if fam is None:
            return None
        base, version = fam
        for entry, (entry_base, entry_version) in families:
            if base == entry_base and version >= entry_version:
                return entry
        return None

    def denial_for(self, license_id: str) -> str | None:
        """Return the denied entry covering *license_id*, or ``None``."""
        return self._covered(license_id.lower(), self.denied, self._denied_families)

    def allowance_for(self, license_id: str) -> str | None:
        """Return the allowed entry covering *license_id*, or ``None``."""
        return self._covered(license_id.lower(), self.allowed, self._allowed_families)

    def allow(self, expression: str, normalizer: Normalizer | None = None) -> Policy:
        """Return a copy with every license named in *expression* allowed."""
        return self._extend('allowed', expression, normalizer)

    def deny(self, expression: str, normalizer: Normalizer | None = None) -> Policy:
        """Return a copy with every license named in *expression* denied."""
        return self._extend('denied', expression, normalizer)

    def _extend(self, kind: str, expression: str, normalizer: Normalizer | None) -> Policy:
        if is_invalid_license(expression):
            log.warning('policy_update_skipped', kind=kind, expression=expression, reason='invalid license')
            return self
        current: frozenset[str] = getattr(self, kind)
        added = {canonical_policy_id(name, normalizer) for name in split_alternatives(expression)} - current
        if not added:
            log.info('policy_unchanged', kind=kind, expression=expression)
            return self
        log.info('policy_updated', kind=kind, added=sorted(added))
        return replace(self, **{kind: current | added})
