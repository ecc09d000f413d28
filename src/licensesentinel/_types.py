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

"""Shared leaf-level types used across licensesentinel.

This module must have **zero** imports from other ``licensesentinel``
modules to avoid circular-import chains.  It is safe to import from any
module in the project.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = [
    'FETCH_ERROR_PREFIX',
    'NOT_AVAILABLE',
    'ComplianceStatus',
    'DependencyLicense',
    'LicenseCategory',
    'RiskLevel',
    'is_invalid_license',
]

# Placeholder manifest parsers emit when a dependency declares no license.
NOT_AVAILABLE = 'N/A'

# Registry lookups that fail report a message starting with this prefix.
FETCH_ERROR_PREFIX = 'Error'


class LicenseCategory(str, enum.Enum):
    """Legal category of a catalogued license."""

    PERMISSIVE = 'permissive'
    WEAK_COPYLEFT = 'weak-copyleft'
    STRONG_COPYLEFT = 'strong-copyleft'
    NETWORK_COPYLEFT = 'network-copyleft'
    NON_COMMERCIAL = 'non-commercial'
    PROPRIETARY = 'proprietary'
    UNKNOWN = 'unknown'


class ComplianceStatus(str, enum.Enum):
    """Verdict of a policy evaluation."""

    COMPLIANT = 'compliant'
    NON_COMPLIANT = 'non-compliant'
    UNKNOWN = 'unknown'


class RiskLevel(str, enum.Enum):
    """Severity attached to an obligation."""

    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    @property
    def rank(self) -> int:
        """Sort weight, higher is more severe."""
        return _RISK_RANK[self]


_RISK_RANK: dict[RiskLevel, int] = {
    RiskLevel.HIGH: 3,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 1,
}


@dataclass(frozen=True)
class DependencyLicense:
    """A dependency and the license string found for it.

    Produced by manifest parsers or registry lookups that live outside
    this package; licensesentinel only consumes it.

    Attributes:
        name: Package name (e.g. ``"express"``, ``"serde"``).
        version: Resolved version string, or ``""`` when unknown.
        license: The raw license string as found. Empty string, ``"N/A"``
            or an ``"Error..."`` message when nothing usable was found.
        source: Where the license came from (e.g. ``"package.json"``,
            ``"npm registry"``).
    """

    name: str
    version: str
    license: str
    source: str = ''

    @property
    def found(self) -> bool:
        """``True`` if a license string was detected."""
        return bool(self.license)


def is_invalid_license(text: str | None) -> bool:
    """Return ``True`` if *text* carries no usable license information.

    Empty or blank strings, the ``"N/A"`` placeholder (any case) and
    upstream fetch-error messages (``"Error: ..."``) are all invalid.
    """
    if not text or not text.strip():
        return True
    stripped = text.strip()
    return stripped.upper() == NOT_AVAILABLE or stripped.startswith(FETCH_ERROR_PREFIX)
