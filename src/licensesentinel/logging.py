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

"""Structured logging for licensesentinel.

Every module logs through :func:`get_logger`, a structlog logger that
hands its events to the stdlib ``logging`` logger of the same name.  An
embedding tool that never configures logging therefore sees nothing
below WARNING, and nothing at all on stdout.

:func:`configure_logging` attaches one stderr handler to the
``licensesentinel`` logger with either of two renderers:

- **Console** (default): colored, human-readable output when stderr is a TTY.
- **JSON** (``json_log=True``): one JSON object per line, for CI logs.

Usage::

    from licensesentinel.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger('licensesentinel.scan')
    log.info('dependencies_evaluated', count=42)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# License fields sometimes carry an entire LICENSE file; keep log lines short.
MAX_FIELD_LENGTH = 200

PACKAGE_LOGGER = 'licensesentinel'

_ELLIPSIS = '...'


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Send licensesentinel's log events to stderr.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        verbose: Enable debug-level output (per-leaf normalization events).
        quiet: Only warnings and errors.  Wins over *verbose*.
        json_log: Use JSON output instead of colored console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    renderer: structlog.types.Processor
    if json_log:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            truncate_long_values,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


def get_logger(name: str = PACKAGE_LOGGER) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by the stdlib logger *name*.

    Args:
        name: Logger name, used for filtering and identification.

    Returns:
        A :class:`structlog.stdlib.BoundLogger` instance.
    """
    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)


def _clip(value: object) -> object:
    if not isinstance(value, str) or len(value) <= MAX_FIELD_LENGTH:
        return value
    return value[: MAX_FIELD_LENGTH - len(_ELLIPSIS)] + _ELLIPSIS


def truncate_long_values(
    logger: Any,  # noqa: ANN401
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: clip overlong string fields.

    The ``event`` name itself is left alone; every other string field
    longer than :data:`MAX_FIELD_LENGTH` is cut and suffixed with
    ``...``.
    """
    return {k: v if k == 'event' else _clip(v) for k, v in event_dict.items()}


__all__ = [
    'MAX_FIELD_LENGTH',
    'PACKAGE_LOGGER',
    'configure_logging',
    'get_logger',
    'truncate_long_values',
]
