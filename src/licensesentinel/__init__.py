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

"""License expression normalization and policy evaluation.

Turns the messy license strings found in package manifests into
canonical identifiers, evaluates them against an allow/deny policy and
explains the verdict with obligations, warnings and a risk score.

Usage::

    from licensesentinel import Policy, evaluate

    policy = Policy.create(allowed=['mit', 'apache-2.0'], denied=['agpl-3.0-only'])
    result = evaluate('(MIT OR Apache-2.0) AND BSD-3-Clause', policy)
    print(result.status.value, result.reason)
"""

from licensesentinel._types import ComplianceStatus, DependencyLicense, LicenseCategory, RiskLevel
from licensesentinel.errors import ConfigError, LicenseDataError, SentinelError
from licensesentinel.evaluate import EvaluationResult, Evaluator, evaluate, is_invalid_license
from licensesentinel.normalize import NormalizationResult, Normalizer, normalize
from licensesentinel.policy import Policy

__all__ = [
    'ComplianceStatus',
    'ConfigError',
    'DependencyLicense',
    'EvaluationResult',
    'Evaluator',
    'LicenseCategory',
    'LicenseDataError',
    'NormalizationResult',
    'Normalizer',
    'Policy',
    'RiskLevel',
    'SentinelError',
    'evaluate',
    'is_invalid_license',
    'normalize',
]
