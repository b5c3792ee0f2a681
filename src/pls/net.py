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

"""HTTP utilities for pls.

Provides a managed :class:`httpx.AsyncClient` with:

- Connection pooling (configurable pool size).
- Automatic retry with exponential backoff for transport-level transient
  errors (rate limits, 5xx, connect/read timeouts).
- Structured logging of retries.

Retries live here and only here. The commit builder and synchronizer
issue each remote call exactly once and surface whatever comes back.

Usage::

    from pls.net import http_client, request_with_retry

    async with http_client(base_url='https://api.github.com') as client:
        response = await request_with_retry(client, 'GET', '/repos/o/r/git/ref/heads/main')
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Final

import httpx

from pls.logging import get_logger

log = get_logger('pls.net')

# Default connection pool limits.
DEFAULT_POOL_SIZE: Final[int] = 10
DEFAULT_TIMEOUT: Final[float] = 30.0

# Retry configuration for transient errors.
MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_BASE: Final[float] = 1.0

# HTTP status codes that trigger a retry.
RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    base_url: str = '',
    headers: dict[str, str] | None = None,
) -> AsyncGenerator[httpx.AsyncClient]:
    """Create a managed async HTTP client with connection pooling.

    Args:
        pool_size: Maximum number of connections in the pool.
        timeout: Request timeout in seconds.
        base_url: Optional base URL for all requests.
        headers: Optional default headers.

    Yields:
        An :class:`httpx.AsyncClient` instance.
    """
    limits = httpx.Limits(
        max_connections=pool_size,
        max_keepalive_connections=pool_size,
    )
    async with httpx.AsyncClient(
        limits=limits,
        timeout=httpx.Timeout(timeout),
        base_url=base_url,
        headers=headers or {},
        follow_redirects=True,
    ) as client:
        yield client


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = RETRY_BACKOFF_BASE,
    **kwargs: object,
) -> httpx.Response:
    """Make an HTTP request with automatic retry for transient errors.

    Retries on 429 (rate limit), 5xx (server errors), and connection
    errors. Uses exponential backoff between retries. Non-retryable
    statuses, including 4xx, are returned as-is for the caller to judge.

    Args:
        client: The httpx async client to use.
        method: HTTP method (GET, POST, etc.).
        url: Request URL.
        max_retries: Maximum number of retry attempts.
        backoff_base: Base delay in seconds for exponential backoff.
        **kwargs: Additional keyword arguments passed to ``client.request()``.

    Returns:
        The last :class:`httpx.Response`, which may still carry a
        retryable status once attempts are exhausted.

    Raises:
        httpx.TransportError: If the final attempt failed without a
            response.
    """
    for attempt in range(max_retries + 1):
        last_attempt = attempt == max_retries
        delay = backoff_base * (2**attempt)
        try:
            response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except (httpx.ConnectError, httpx.ReadTimeout, httpx.WriteTimeout) as exc:
            if last_attempt:
                raise
            log.warning(
                'http_retry_error',
                url=url,
                error=str(exc),
                attempt=attempt + 1,
                delay=delay,
            )
            await asyncio.sleep(delay)
            continue

        if response.status_code not in RETRYABLE_STATUS_CODES or last_attempt:
            return response

        # Retryable status code -- backoff and retry.
        log.warning(
            'http_retry',
            url=url,
            status=response.status_code,
            attempt=attempt + 1,
            delay=delay,
        )
        await asyncio.sleep(delay)

    # Should never reach here -- max_retries >= 0 guarantees at least one attempt.
    msg = 'request_with_retry: no attempts were made'
    raise RuntimeError(msg)


__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'RETRYABLE_STATUS_CODES',
    'http_client',
    'request_with_retry',
]
