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

"""Tests for licensesentinel.logging module."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog
from licensesentinel.catalog import LicenseCatalog
from licensesentinel.evaluate import Evaluator
from licensesentinel.logging import (
    MAX_FIELD_LENGTH,
    PACKAGE_LOGGER,
    configure_logging,
    get_logger,
    truncate_long_values,
)
from licensesentinel.normalize import Normalizer
from licensesentinel.policy import Policy


@pytest.fixture()
def unconfigured() -> Iterator[None]:
    """Structlog and the package logger as an embedding tool first sees them."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (logger.handlers, logger.level, logger.propagate)
    structlog.reset_defaults()
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    yield
    logger.handlers, level, logger.propagate = saved
    logger.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_level_is_info(self) -> None:
        """Default logging level should be INFO."""
        configure_logging()
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """Verbose flag should set DEBUG level."""
        configure_logging(verbose=True)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

    def test_quiet_sets_warning(self) -> None:
        """Quiet flag should set WARNING level."""
        configure_logging(quiet=True)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING

    def test_quiet_wins_over_verbose(self) -> None:
        """Quiet takes precedence when both flags are set."""
        configure_logging(verbose=True, quiet=True)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING

    def test_package_logger_only(self) -> None:
        """Only the package logger gets a handler; the root logger is untouched."""
        root_handlers = list(logging.root.handlers)
        configure_logging()
        configure_logging()
        logger = logging.getLogger(PACKAGE_LOGGER)
        assert len(logger.handlers) == 1
        assert not logger.propagate
        assert logging.root.handlers == root_handlers

    def test_json_log_does_not_crash(self) -> None:
        """JSON log mode should configure without errors."""
        configure_logging(json_log=True)
        log = get_logger()
        log.info('test_json', license='MIT')


class TestGetLogger:
    """Tests for get_logger()."""

    def test_logger_can_log(self) -> None:
        """Logger should be able to emit messages without crashing."""
        configure_logging(quiet=True)
        log = get_logger('test')
        log.info('test message', key='value')
        log.debug('debug message')
        log.warning('warning message', token='x' * 1000)


class TestUnconfigured:
    """Behavior before any embedding tool calls configure_logging()."""

    @pytest.mark.usefixtures('unconfigured')
    def test_evaluate_keeps_stdout_clean(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Evaluating writes nothing to stdout."""
        evaluator = Evaluator(Normalizer(LicenseCatalog.load()))
        evaluator.evaluate('MIT OR Apache-2.0', Policy.create(allowed=['mit']))
        assert capsys.readouterr().out == ''

    @pytest.mark.usefixtures('unconfigured')
    def test_events_reach_stdlib_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        """Events go to the stdlib logger of the same name."""
        with caplog.at_level(logging.DEBUG):
            get_logger('licensesentinel.scan').debug('dependencies_scanned', count=3)
        assert 'dependencies_scanned' in caplog.text
        assert caplog.records[-1].name == 'licensesentinel.scan'


class TestTruncateLongValues:
    """Tests for the truncation processor."""

    def test_long_value_clipped(self) -> None:
        """Overlong string fields are cut to the limit."""
        result = truncate_long_values(None, 'info', {'event': 'e', 'token': 'x' * 500})
        assert len(result['token']) == MAX_FIELD_LENGTH
        assert result['token'].endswith('...')

    def test_short_value_untouched(self) -> None:
        """Fields within the limit are left as-is."""
        result = truncate_long_values(None, 'info', {'event': 'e', 'token': 'MIT'})
        assert result['token'] == 'MIT'

    def test_event_never_clipped(self) -> None:
        """The event name is kept whole."""
        event = 'y' * 500
        assert truncate_long_values(None, 'info', {'event': event})['event'] == event

    def test_non_strings_pass_through(self) -> None:
        """Non-string values are not modified."""
        result = truncate_long_values(None, 'info', {'event': 'e', 'count': 42, 'flag': None})
        assert result['count'] == 42
        assert result['flag'] is None
