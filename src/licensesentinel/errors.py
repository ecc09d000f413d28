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

"""Exception types raised while loading license data and configuration.

License *evaluation* never raises for bad input; an unrecognizable
license string is a normal ``unknown`` verdict.  These exceptions are
reserved for broken data files and configuration, where continuing
would silently produce wrong verdicts.
"""

from __future__ import annotations

__all__ = [
    'ConfigError',
    'LicenseDataError',
    'SentinelError',
]


class SentinelError(Exception):
    """Base class for licensesentinel errors.

    Attributes:
        errors: List of human-readable error strings.
    """

    _what = 'licensesentinel'

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        super().__init__(f'{self._what} has {len(errors)} validation error(s):\n{bullet_list}')


class LicenseDataError(SentinelError):
    """Raised when catalog, obligation or compatibility data fails validation."""

    _what = 'License database'


class ConfigError(SentinelError):
    """Raised when a policy configuration file is malformed."""

    _what = 'Policy configuration'
