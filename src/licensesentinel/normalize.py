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

r"""Free-form license token normalizer.

Resolves one messy license string to a canonical identifier through an
ordered chain of matching tiers.  The first tier that returns a result
wins:

    1. **Direct** — exact (lowercased, trimmed) catalog alias.
       Confidence 1.0.
    2. **Regex** — fixed high-precision patterns (``"Apache ... 2.0"``,
       ``"GPL ... v3"``, ``"3-clause ... BSD"``) and word-bounded
       containment of multi-word catalog aliases.  Confidence 0.95.
    3. **Fuzzy** — Jaro-Winkler similarity against aliases of the same
       word shape (acronyms and version numbers must agree); accepted
       only above 0.88.  Confidence is the similarity itself.
    4. **Fallback** — a dash-separated slug of the input.  Confidence 0.1,
       category ``unknown``.

Two suffixes are peeled off before the tiers run:

- ``WITH <exception>`` — dropped for matching (kept on the result).
- ``+`` or "or later" — the base license is resolved, then mapped to its
  ``-or-later`` variant (``GPL-2.0+`` -> ``gpl-2.0-or-later``).

Usage::

    from licensesentinel.normalize import normalize

    r = normalize('Apache Software License')
    assert (r.id, r.method, r.confidence) == ('apache-2.0', 'direct', 1.0)

    r = normalize('GPL-2.0+')
    assert r.id == 'gpl-2.0-or-later'

    r = normalize('Apche License 2.0')  # typo
    assert r.method == 'fuzzy'
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from dataclasses import dataclass, replace

from licensesentinel._types import LicenseCategory
from licensesentinel.catalog import LicenseCatalog, LicenseCatalogEntry, default_catalog, license_family
from licensesentinel.logging import get_logger

__all__ = [
    'DIRECT_CONFIDENCE',
    'FALLBACK_CONFIDENCE',
    'FUZZY_THRESHOLD',
    'Method',
    'NormalizationResult',
    'Normalizer',
    'REGEX_CONFIDENCE',
    'default_normalizer',
    'jaro_winkler',
    'normalize',
]

log = get_logger('licensesentinel.normalize')

DIRECT_CONFIDENCE = 1.0
REGEX_CONFIDENCE = 0.95
FUZZY_THRESHOLD = 0.88
FALLBACK_CONFIDENCE = 0.1

# Jaro-Winkler prefix bonus: weight per shared leading char, capped length.
_PREFIX_SCALE = 0.1
_MAX_PREFIX = 4


class Method:
    """Tags naming the tier that produced a :class:`NormalizationResult`."""

    DIRECT = 'direct'
    REGEX = 'regex'
    FUZZY = 'fuzzy'
    FALLBACK = 'fallback'


@dataclass(frozen=True)
class NormalizationResult:
    """Outcome of normalizing one license token.

    Attributes:
        id: Lowercase canonical identifier, or a best-effort slug when
            nothing matched.
        confidence: 0.0-1.0; 1.0 for a direct alias match.
        method: Which tier produced the result (see :class:`Method`).
        category: Catalog category, ``UNKNOWN`` for fallback results.
        original: The token as given.
        exception: The ``WITH`` exception that was dropped, if any.
    """

    id: str
    confidence: float
    method: str
    category: LicenseCategory
    original: str = ''
    exception: str = ''

    @property
    def matched(self) -> bool:
        """``True`` if a catalog entry was found."""
        return self.method != Method.FALLBACK


def jaro_winkler(a: str, b: str) -> float:
    """Return the Jaro-Winkler similarity of *a* and *b* (0.0-1.0).

    >>> jaro_winkler('martha', 'marhta')  # doctest: +ELLIPSIS
    0.961...
    """
    if a == b:
        return 1.0
    len_a, len_b = len(a), len(b)
    if not len_a or not len_b:
        return 0.0

    window = max(max(len_a, len_b) // 2 - 1, 0)
    a_matched = [False] * len_a
    b_matched = [False] * len_b
    matches = 0
    for i, ch in enumerate(a):
        lo = max(0, i - window)
        hi = min(i + window + 1, len_b)
        for j in range(lo, hi):
            if not b_matched[j] and b[j] == ch:
                a_matched[i] = b_matched[j] = True
                matches += 1
                break
    if not matches:
        return 0.0

    # Half the number of matched characters that appear out of order.
    transpositions = 0
    j = 0
    for i in range(len_a):
        if not a_matched[i]:
            continue
        while not b_matched[j]:
            j += 1
        if a[i] != b[j]:
            transpositions += 1
        j += 1
    transpositions //= 2

    jaro = (matches / len_a + matches / len_b + (matches - transpositions) / matches) / 3

    prefix = 0
    for ca, cb in zip(a[:_MAX_PREFIX], b[:_MAX_PREFIX]):
        if ca != cb:
            break
        prefix += 1
    return jaro + prefix * _PREFIX_SCALE * (1 - jaro)


# ── Token preprocessing ──────────────────────────────────────────────

_WHITESPACE_RE = re.compile(r'\s+')
_WITH_RE = re.compile(r'\s+with\s+', re.IGNORECASE)
_OR_LATER_PHRASE_RE = re.compile(r'[\s,-]*\(?\bor(?:\s+any)?[\s-]+later(?:\s+version)?\b\)?', re.IGNORECASE)
_LICENSE_WORD_RE = re.compile(r'\blicen[cs]e\b')
_SLUG_RE = re.compile(r'[^a-z0-9.+]+')
_WORD_RE = re.compile(r'[a-z]+|\d+')

_MAX_EXACT_WORD = 4

_OR_LATER = '-or-later'
_ONLY = '-only'


def _clean(token: str) -> str:
    return _WHITESPACE_RE.sub(' ', token.strip().lower())


def _split_exception(text: str) -> tuple[str, str]:
    """Split ``"<license> with <exception>"`` into its two halves."""
    parts = _WITH_RE.split(text, maxsplit=1)
    if len(parts) == 2 and parts[0].strip():
        return parts[0].strip(), parts[1].strip()
    return text, ''


def _split_or_later(text: str) -> tuple[str, bool]:
    """Strip a trailing ``+`` or an "or later" phrase."""
    if text.endswith('+'):
        return text[:-1].strip(), True
    stripped, count = _OR_LATER_PHRASE_RE.subn('', text)
    if count and stripped.strip():
        return stripped.strip(), True
    return text, False


def _fuzzy_key(text: str) -> tuple[str, ...]:
    """Word shape of *text*: short words verbatim, longer words as ``*``.

    Short words are acronyms and version numbers (``gpl``, ``nc``, ``2``),
    where one changed character names a different license.
    """
    return tuple(w if len(w) <= _MAX_EXACT_WORD else '*' for w in _WORD_RE.findall(text))


def _slugify(text: str) -> str:
    slug = _SLUG_RE.sub('-', _LICENSE_WORD_RE.sub(' ', text)).strip('-')
    return slug or 'unknown'


# ── Regex tier patterns ──────────────────────────────────────────────

# (pattern, canonical id) in priority order: AGPL and LGPL before GPL.
_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r'\b(?:agpl|affero)'), 'agpl-3.0-only'),
    (re.compile(r'(?:\blgpl|lesser general public|library general public)\D{0,20}2\.1\b'), 'lgpl-2.1-only'),
    (re.compile(r'(?:\blgpl|lesser general public)\D{0,20}3(?:\.0)?\b'), 'lgpl-3.0-only'),
    (re.compile(r'(?:\bgpl|(?<!lesser )(?<!library )general public license)\D{0,20}3(?:\.0)?\b'), 'gpl-3.0-only'),
    (re.compile(r'(?:\bgpl|(?<!lesser )(?<!library )general public license)\D{0,20}2(?:\.0)?\b'), 'gpl-2.0-only'),
    (re.compile(r'\bapache\b\D{0,20}2(?:\.0)?\b'), 'apache-2.0'),
    (
        re.compile(r'\bbsd\b.*\b(?:3|three)[\s-]?clause\b|\b(?:3|three)[\s-]?clause\b.*\bbsd\b|\b(?:new|modified|revised)\s+bsd\b'),
        'bsd-3-clause',
    ),
    (
        re.compile(r'\bbsd\b.*\b(?:2|two)[\s-]?clause\b|\b(?:2|two)[\s-]?clause\b.*\bbsd\b|\b(?:simplified|freebsd)\b.*\bbsd\b|\bbsd\b.*\bsimplified\b'),
        'bsd-2-clause',
    ),
    (re.compile(r'\b(?:mpl|mozilla public license)\D{0,10}2(?:\.0)?\b'), 'mpl-2.0'),
    (re.compile(r'\b(?:creative commons|cc)\b.*\b(?:nc|non-?commercial)\b'), 'cc-by-nc-4.0'),
    (re.compile(r'\bserver[\s-]side public license\b'), 'sspl-1.0'),
)


# A tier takes the cleaned core text and returns a result or None.
_Tier = Callable[[str], 'NormalizationResult | None']


class Normalizer:
    """Resolves free-form license tokens against a :class:`LicenseCatalog`.

    Results are LRU-cached per instance (up to 1024 unique tokens), so
    repeated lookups of the same string across a dependency tree are
    O(1).

    Args:
        catalog: The catalog to resolve against.  Defaults to the
            built-in :func:`~licensesentinel.catalog.default_catalog`.
    """

    def __init__(self, catalog: LicenseCatalog | None = None) -> None:
        self._catalog = catalog or default_catalog()
        self._patterns = tuple((p, lid) for p, lid in _PATTERNS if lid in self._catalog)
        self._fuzzy_aliases = tuple((alias, _fuzzy_key(alias), entry) for alias, entry in self._catalog.alias_items())
        phrases = []
        for alias, entry in self._catalog.alias_items():
            if ' ' in alias:
                phrases.append((re.compile(rf'(?<![\w]){re.escape(alias)}(?![\w])'), entry))
        self._phrases: tuple[tuple[re.Pattern[str], LicenseCatalogEntry], ...] = tuple(phrases)
        self.tiers: tuple[_Tier, ...] = (
            self.match_direct,
            self.match_regex,
            self.match_fuzzy,
            self.match_fallback,
        )
        self._normalize_cached = functools.lru_cache(maxsize=1024)(self._normalize_impl)

    @property
    def catalog(self) -> LicenseCatalog:
        """The catalog this normalizer resolves against."""
        return self._catalog

    def is_alias(self, text: str) -> bool:
        """Return ``True`` if *text* is exactly a catalog alias."""
        return self._catalog.lookup_alias(_clean(text)) is not None

    # ── Tiers ────────────────────────────────────────────────────────

    def _from_entry(self, entry: LicenseCatalogEntry, confidence: float, method: str) -> NormalizationResult:
        return NormalizationResult(id=entry.key, confidence=confidence, method=method, category=entry.category)

    def match_direct(self, text: str) -> NormalizationResult | None:
        """Tier 1: exact alias match."""
        entry = self._catalog.lookup_alias(text)
        if entry is None:
            return None
        return self._from_entry(entry, DIRECT_CONFIDENCE, Method.DIRECT)

    def match_regex(self, text: str) -> NormalizationResult | None:
        """Tier 2: fixed patterns, then alias phrases contained in *text*."""
        for pattern, license_id in self._patterns:
            if pattern.search(text):
                entry = self._catalog.entry(license_id)
                if entry is not None:
                    return self._from_entry(entry, REGEX_CONFIDENCE, Method.REGEX)
        for pattern, entry in self._phrases:
            if pattern.search(text):
                return self._from_entry(entry, REGEX_CONFIDENCE, Method.REGEX)
        return None

    def match_fuzzy(self, text: str) -> NormalizationResult | None:
        """Tier 3: best Jaro-Winkler score strictly above the threshold.

        Only aliases with the same word shape as *text* are scored, so a
        typo in a long word is forgiven but a different version or
        qualifier (``apache-1.1``, ``cc-by-4.0``, ``lgpl-2.0``) is not.
        """
        key = _fuzzy_key(text)
        best_score = 0.0
        best_entry: LicenseCatalogEntry | None = None
        for alias, alias_key, entry in self._fuzzy_aliases:
            if alias_key != key:
                continue
            score = jaro_winkler(text, alias)
            # Strict comparison keeps the earliest alias on ties.
            if score > best_score:
                best_score, best_entry = score, entry
        if best_entry is None or best_score <= FUZZY_THRESHOLD:
            return None
        return self._from_entry(best_entry, round(best_score, 4), Method.FUZZY)

    def match_fallback(self, text: str) -> NormalizationResult:
        """Tier 4: slugify; never fails."""
        return NormalizationResult(
            id=_slugify(text),
            confidence=FALLBACK_CONFIDENCE,
            method=Method.FALLBACK,
            category=LicenseCategory.UNKNOWN,
        )

    # ── Public API ───────────────────────────────────────────────────

    def normalize(self, token: str | None) -> NormalizationResult | None:
        """Resolve *token* to a canonical license identifier.

        Args:
            token: A single license token (not a compound expression).

        Returns:
            A :class:`NormalizationResult`, or ``None`` when *token* is
            empty or ``None`` (the caller treats that as "no license").
        """
        if not token or not token.strip():
            return None
        return self._normalize_cached(token)

    def fallback(self, token: str) -> NormalizationResult:
        """Resolve *token* with the fallback tier alone (for unparsed text)."""
        return replace(self.match_fallback(_clean(token)), original=token)

    def _normalize_impl(self, token: str) -> NormalizationResult:
        text, exception = _split_exception(_clean(token))

        # Aliases may themselves contain "or later", so try them whole first.
        result = self.match_direct(text)
        or_later = False
        if result is None:
            core, or_later = _split_or_later(text)
            result = self._run_tiers(core)
            if or_later:
                result = self._promote_or_later(result)

        result = replace(result, original=token, exception=exception)
        log.debug(
            'license_normalized',
            token=token,
            license_id=result.id,
            method=result.method,
            confidence=result.confidence,
            or_later=or_later,
        )
        return result

    def _run_tiers(self, text: str) -> NormalizationResult:
        for tier in self.tiers:
            result = tier(text)
            if result is not None:
                return result
        # match_fallback never returns None; kept for custom tier chains.
        return self.match_fallback(text)

    def _promote_or_later(self, result: NormalizationResult) -> NormalizationResult:
        """Map a resolved base license to its ``-or-later`` variant."""
        if result.id.endswith(_OR_LATER):
            return result
        variant = license_family(result.id) + _OR_LATER
        entry = self._catalog.entry(variant)
        category = entry.category if entry else result.category
        return replace(result, id=variant, category=category)


@functools.cache
def default_normalizer() -> Normalizer:
    """Return the shared normalizer over the built-in catalog."""
    return Normalizer()


def normalize(token: str | None) -> NormalizationResult | None:
    """Normalize *token* with a shared normalizer over the built-in catalog."""
    return default_normalizer().normalize(token)
