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

"""Numeric risk scoring for normalized licenses.

``score = min(1, base_risk[category] + (1 - confidence) * 0.5)``

The base risk orders categories by how much review they need, and a less
certain normalization always adds risk on top.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from licensesentinel._types import LicenseCategory
from licensesentinel.normalize import NormalizationResult

__all__ = [
    'CATEGORY_RISK',
    'NO_INFORMATION_RISK',
    'UNCERTAINTY_WEIGHT',
    'score',
]

CATEGORY_RISK: Mapping[LicenseCategory, float] = MappingProxyType({
    LicenseCategory.PROPRIETARY: 0.9,
    LicenseCategory.NETWORK_COPYLEFT: 0.8,
    LicenseCategory.STRONG_COPYLEFT: 0.7,
    LicenseCategory.NON_COMMERCIAL: 0.65,
    LicenseCategory.UNKNOWN: 0.6,
    LicenseCategory.WEAK_COPYLEFT: 0.4,
    LicenseCategory.PERMISSIVE: 0.1,
})

# Risk reported when there is no license information at all.
NO_INFORMATION_RISK = 0.7

UNCERTAINTY_WEIGHT = 0.5


def score(result: NormalizationResult) -> float:
    """Return the risk of *result* in ``[0, 1]``, rounded to 4 places."""
    base = CATEGORY_RISK[result.category]
    return round(min(1.0, base + (1.0 - result.confidence) * UNCERTAINTY_WEIGHT), 4)
