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

"""Configuration for pls.

Settings come from three places. :func:`resolve_config` is the only
function that merges them, and the only place the environment is read::

    explicit override  >  environment  >  pls.toml  >  default

Example ``pls.toml``::

    owner = "denoland"
    repo = "pls"
    base_branch = "main"
    release_branch = "pls-release"
    manifest_files = ["deno.json"]
    major_on_zero = false

Environment variables:

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │ Variable             │ Setting                                      │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ GITHUB_TOKEN         │ token (first choice)                         │
    │ GH_TOKEN             │ token (fallback)                             │
    │ GITHUB_REPOSITORY    │ owner/repo                                   │
    │ PLS_BASE_BRANCH      │ base_branch                                  │
    │ PLS_RELEASE_BRANCH   │ release_branch                               │
    └──────────────────────┴──────────────────────────────────────────────┘

The resolved :class:`SyncConfig` is passed to each component's
constructor. Nothing downstream consults the environment.
"""

from __future__ import annotations

import difflib
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from pls.errors import E, PlsError
from pls.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = 'pls.toml'


@dataclass(frozen=True)
class SyncConfig:
    """Resolved settings for one synchronization run.

    Attributes:
        owner: Repository owner.
        repo: Repository name.
        token: API token. Never logged or shown in ``repr``.
        base_branch: Branch releases are cut from.
        release_branch: Long-lived branch backing the release PR.
        api_url: REST API base URL.
        versions_file: Path of the versions manifest in the repository.
        manifest_files: Candidate project manifests, first match wins.
        major_on_zero: Whether breaking changes bump major on ``0.x``.
        notify_on_change: Comment on the PR when the selection changes.
        debug_log: Append a debug entry to the PR body on every run.
        http_pool_size: HTTP connection pool size.
        http_timeout: HTTP request timeout in seconds.
        http_retries: Transport-level retries for transient failures.
    """

    owner: str = ''
    repo: str = ''
    token: str = ''
    base_branch: str = 'main'
    release_branch: str = 'pls-release'
    api_url: str = 'https://api.github.com'
    versions_file: str = '.pls/versions.json'
    manifest_files: tuple[str, ...] = ('deno.json', 'package.json')
    major_on_zero: bool = True
    notify_on_change: bool = True
    debug_log: bool = True
    http_pool_size: int = 10
    http_timeout: float = 30.0
    http_retries: int = 3

    def __repr__(self) -> str:
        """Return a repr that never exposes the token."""
        return (
            f'SyncConfig(owner={self.owner!r}, repo={self.repo!r}, '
            f'base_branch={self.base_branch!r}, release_branch={self.release_branch!r})'
        )


# Keys accepted in pls.toml (the token is deliberately not one of them).
_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'owner': str,
    'repo': str,
    'base_branch': str,
    'release_branch': str,
    'api_url': str,
    'versions_file': str,
    'manifest_files': list,
    'major_on_zero': bool,
    'notify_on_change': bool,
    'debug_log': bool,
    'http_pool_size': int,
    'http_timeout': (int, float),
    'http_retries': int,
}

VALID_KEYS: frozenset[str] = frozenset(_TYPE_MAP)

_FIELD_NAMES: frozenset[str] = frozenset(f.name for f in fields(SyncConfig))


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(
    key: str,
    value: Any,  # noqa: ANN401 - dynamic config values
    *,
    context: str = CONFIG_FILENAME,
) -> None:
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP.get(key)
    if expected is None:
        return
    # bool is an int subclass; only accept it where a bool is expected.
    wrong_bool = isinstance(value, bool) and expected is not bool
    if wrong_bool or not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else ' or '.join(t.__name__ for t in expected)
        raise PlsError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {context}.',
        )
    if key == 'manifest_files' and not all(isinstance(item, str) for item in value):
        raise PlsError(
            code=E.CONFIG_INVALID_VALUE,
            message="'manifest_files' must be a list of strings",
            hint=f'Check the value of manifest_files in {context}.',
        )
    if key in {'http_pool_size', 'http_retries'} and value < 0:
        raise PlsError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must not be negative, got {value}",
        )


def load_config(root: Path) -> dict[str, Any]:
    """Load and validate ``pls.toml`` from ``root``.

    Args:
        root: Directory containing ``pls.toml``.

    Returns:
        The validated file settings; empty when there is no file.

    Raises:
        PlsError: If the file cannot be read or parsed, or contains an
            unknown key or a value of the wrong type.
    """
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_pls_config', path=str(config_path))
        return {}

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise PlsError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise PlsError(
            code=E.CONFIG_NOT_FOUND,
            message=f'Failed to parse {config_path}: {exc}',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            if key == 'token':
                hint = 'Tokens do not belong in pls.toml. Set GITHUB_TOKEN or GH_TOKEN instead.'
            elif suggestion:
                hint = f"Did you mean '{suggestion}'?"
            else:
                hint = f'Valid keys: {", ".join(sorted(VALID_KEYS))}.'
            raise PlsError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=hint,
            )

    for key, value in raw.items():
        _validate_value_type(key, value)

    logger.debug('pls_config_loaded', path=str(config_path), keys=sorted(raw))
    return raw


def _from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    token = env.get('GITHUB_TOKEN', '') or env.get('GH_TOKEN', '')
    if token:
        values['token'] = token
    repository = env.get('GITHUB_REPOSITORY', '')
    if repository:
        owner, sep, repo = repository.partition('/')
        if not sep or not owner or not repo:
            raise PlsError(
                code=E.CONFIG_INVALID_VALUE,
                message=f'GITHUB_REPOSITORY must look like owner/repo, got {repository!r}',
            )
        values['owner'] = owner
        values['repo'] = repo
    if env.get('PLS_BASE_BRANCH'):
        values['base_branch'] = env['PLS_BASE_BRANCH']
    if env.get('PLS_RELEASE_BRANCH'):
        values['release_branch'] = env['PLS_RELEASE_BRANCH']
    return values


def resolve_config(
    file_config: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> SyncConfig:
    """Merge every settings source into one :class:`SyncConfig`.

    Precedence: ``overrides`` > ``env`` > ``file_config`` > defaults.
    ``None`` values in ``overrides`` are ignored so callers can pass
    optional arguments straight through.

    Args:
        file_config: Values from :func:`load_config`.
        overrides: Explicit values, e.g. from function arguments.
        env: Environment mapping. Defaults to :data:`os.environ`.

    Returns:
        The resolved configuration.

    Raises:
        PlsError: If an override names an unknown setting, or
            ``owner``/``repo`` end up empty.
    """
    merged: dict[str, Any] = dict(file_config or {})
    merged.update(_from_env(os.environ if env is None else env))

    for key, value in (overrides or {}).items():
        if key not in _FIELD_NAMES:
            suggestion = difflib.get_close_matches(key, _FIELD_NAMES, n=1, cutoff=0.6)
            raise PlsError(
                code=E.CONFIG_INVALID_KEY,
                message=f'Unknown setting {key!r}',
                hint=f"Did you mean '{suggestion[0]}'?" if suggestion else '',
            )
        if value is not None:
            merged[key] = value

    if 'manifest_files' in merged:
        merged['manifest_files'] = tuple(merged['manifest_files'])
    if 'http_timeout' in merged:
        merged['http_timeout'] = float(merged['http_timeout'])

    config = SyncConfig(**merged)
    if not config.owner or not config.repo:
        raise PlsError(
            code=E.CONFIG_INVALID_VALUE,
            message='Repository owner and name are required',
            hint='Set owner/repo in pls.toml, pass them explicitly, or set GITHUB_REPOSITORY.',
        )
    return config


__all__ = [
    'CONFIG_FILENAME',
    'VALID_KEYS',
    'SyncConfig',
    'load_config',
    'resolve_config',
]
