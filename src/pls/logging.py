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

"""Structured logging for pls.

Configures `structlog <https://www.structlog.org/>`_ for a process that
runs inside CI with a GitHub token in its environment:

- **Console** (default when TTY): colored, human-readable output.
- **JSON** (``json_log=True``): one JSON object per line, for CI logs.
- Every event passes through :func:`redact_tokens` before rendering, so
  an API error body or header dump never prints a credential.
- :func:`bind_repository` attaches ``repo`` to every event emitted
  while a synchronization runs.

Both modes write to stderr.

Usage::

    from pls.logging import bind_repository, configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger(__name__)
    with bind_repository('denoland', 'pls'):
        log.info('release_pr_updated', pr=42, version='1.3.0')
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from typing import Any, Final

import structlog

REDACTED: Final[str] = '***'

# Classic (ghp_, gho_, ghu_, ghs_, ghr_) and fine-grained (github_pat_) tokens.
_TOKEN_RE = re.compile(r'\b(?:gh[pousr]_[A-Za-z0-9]{20,}|github_pat_[A-Za-z0-9_]{20,})\b')
_SECRET_KEYS: Final[frozenset[str]] = frozenset({'token', 'authorization', 'password'})


def _scrub(value: Any) -> Any:  # noqa: ANN401 - arbitrary event values
    if isinstance(value, str):
        return _TOKEN_RE.sub(REDACTED, value)
    if isinstance(value, Mapping):
        return {k: REDACTED if str(k).lower() in _SECRET_KEYS else _scrub(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_scrub(v) for v in value)
    return value


def redact_tokens(
    _logger: object,
    _method: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor that masks GitHub tokens and secret-named keys."""
    for key, value in list(event_dict.items()):
        event_dict[key] = REDACTED if key.lower() in _SECRET_KEYS else _scrub(value)
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for pls.

    Should be called once at startup, before any logging calls.

    Args:
        verbose: Enable debug-level output.
        quiet: Suppress info-level output (only warnings and errors).
        json_log: Use JSON output instead of colored console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level, force=True)
    # httpx logs every request line at INFO, URL included.
    logging.getLogger('httpx').setLevel(logging.DEBUG if verbose else logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso', utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_tokens,
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_log_level, redact_tokens],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def bind_repository(owner: str, repo: str) -> Iterator[None]:
    """Tag every event logged inside the block with ``repo=owner/repo``."""
    with structlog.contextvars.bound_contextvars(repo=f'{owner}/{repo}'):
        yield


def get_logger(name: str = 'pls') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger.

    Args:
        name: Logger name, used for filtering and identification.
    """
    return structlog.get_logger(name)


__all__ = [
    'REDACTED',
    'bind_repository',
    'configure_logging',
    'get_logger',
    'redact_tokens',
]
