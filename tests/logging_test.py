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

"""Tests for pls.logging module."""

from __future__ import annotations

import logging

import structlog
from pls.logging import REDACTED, bind_repository, configure_logging, get_logger, redact_tokens

TOKEN = 'ghp_' + 'a1B2c3D4e5F6g7H8i9J0k1L2m3N4o5P6q7R8'


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_level_is_info(self) -> None:
        """Default logging level should be INFO."""
        configure_logging()
        assert logging.root.level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """Verbose flag should set DEBUG level."""
        configure_logging(verbose=True)
        assert logging.root.level == logging.DEBUG

    def test_quiet_sets_warning(self) -> None:
        """Quiet wins over verbose."""
        configure_logging(verbose=True, quiet=True)
        assert logging.root.level == logging.WARNING

    def test_json_log_does_not_crash(self) -> None:
        """JSON log mode should configure without errors."""
        configure_logging(json_log=True)
        log = get_logger()
        log.info('test_json', key='value')
        configure_logging(quiet=True)


class TestGetLogger:
    """Tests for get_logger()."""

    def test_logger_can_log(self) -> None:
        """Logger should be able to emit messages without crashing."""
        configure_logging(quiet=True)
        log = get_logger('pls.test')
        log.info('test_message', key='value')
        log.debug('debug_message')
        log.warning('warning_message', pr=1)


class TestRedactTokens:
    """Tests for the redact_tokens() processor."""

    def test_masks_token_in_text(self) -> None:
        """Tokens embedded in strings are replaced."""
        event = redact_tokens(None, 'error', {'event': 'github_api_error', 'detail': f'bad credentials {TOKEN}'})
        assert event['detail'] == f'bad credentials {REDACTED}'
        assert event['event'] == 'github_api_error'

    def test_masks_secret_keys(self) -> None:
        """Keys named like secrets are masked whatever their value."""
        event = redact_tokens(None, 'debug', {'event': 'x', 'token': 'anything', 'Authorization': 'Bearer y'})
        assert event['token'] == REDACTED
        assert event['Authorization'] == REDACTED

    def test_masks_nested_values(self) -> None:
        """Headers dicts and lists are scrubbed recursively."""
        event = redact_tokens(
            None,
            'debug',
            {'event': 'x', 'headers': {'authorization': 'token t', 'Accept': 'json'}, 'args': [TOKEN, 1]},
        )
        assert event['headers'] == {'authorization': REDACTED, 'Accept': 'json'}
        assert event['args'] == [REDACTED, 1]

    def test_leaves_ordinary_values(self) -> None:
        """Versions, numbers and short ghp-like words are untouched."""
        event = redact_tokens(None, 'info', {'event': 'x', 'version': '1.2.0', 'pr': 4, 'label': 'ghp_short'})
        assert event == {'event': 'x', 'version': '1.2.0', 'pr': 4, 'label': 'ghp_short'}


class TestBindRepository:
    """Tests for bind_repository()."""

    def test_binds_and_clears(self) -> None:
        """``repo`` is present only inside the block."""
        with bind_repository('denoland', 'pls'):
            assert structlog.contextvars.get_contextvars()['repo'] == 'denoland/pls'
        assert 'repo' not in structlog.contextvars.get_contextvars()
