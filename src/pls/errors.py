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

"""Structured error system for pls.

Every error has a unique ``PLS-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "PLS-REF-NOT-FOUND"    │
    │                     │ for each error. Readable at a glance.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ PlsError            │ An exception you can raise. Carries the       │
    │                     │ error card so renderers can display it.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Subclasses          │ InvalidVersionFormat, InvalidTransition,      │
    │                     │ RefNotFound, RemoteStoreError and             │
    │                     │ ManifestDecodeError pin their own code.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ explain()           │ Looks up an error code and prints details.    │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    PLS-CONFIG-*      Configuration errors
    PLS-VERSION-*     Versioning and transition errors
    PLS-REF-*         Branch / ref resolution errors
    PLS-REMOTE-*      Remote object store (forge API) errors
    PLS-MANIFEST-*    Versions manifest errors
    PLS-PR-*          Release pull request errors

Usage::

    from pls.errors import E, PlsError

    raise PlsError(
        code=E.CONFIG_INVALID_KEY,
        message="Unknown key 'base_brnach' in pls.toml",
        hint="Did you mean 'base_branch'?",
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all pls diagnostic codes."""

    # Configuration
    CONFIG_NOT_FOUND = 'PLS-CONFIG-NOT-FOUND'
    CONFIG_INVALID_KEY = 'PLS-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'PLS-CONFIG-INVALID-VALUE'
    AUTH_MISSING = 'PLS-AUTH-MISSING'

    # Versioning
    VERSION_INVALID = 'PLS-VERSION-INVALID'
    VERSION_INVALID_TRANSITION = 'PLS-VERSION-INVALID-TRANSITION'

    # Refs / remote store
    REF_NOT_FOUND = 'PLS-REF-NOT-FOUND'
    REMOTE_STORE_ERROR = 'PLS-REMOTE-STORE-ERROR'
    BUILDER_STATE = 'PLS-BUILDER-STATE'

    # Versions manifest
    MANIFEST_DECODE_ERROR = 'PLS-MANIFEST-DECODE-ERROR'

    # Release PR
    PR_NOT_FOUND = 'PLS-PR-NOT-FOUND'
    PR_OPTIONS_MISSING = 'PLS-PR-OPTIONS-MISSING'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``PLS-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class PlsError(Exception):
    """Base exception for all pls errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class InvalidVersionFormat(PlsError):
    """A version string does not parse as ``MAJOR.MINOR.PATCH[-stage.N]``."""

    def __init__(self, version: str, hint: str = '') -> None:
        """Initialize with the offending version string."""
        self.version = version
        super().__init__(
            code=E.VERSION_INVALID,
            message=f'Invalid version format: {version!r}',
            hint=hint or 'Use a version like "1.2.3" or "1.2.3-beta.0".',
        )


class InvalidTransition(PlsError):
    """A requested prerelease transition violates the stage ordering."""

    def __init__(self, message: str, hint: str = '') -> None:
        """Initialize with a message explaining the violated rule."""
        super().__init__(code=E.VERSION_INVALID_TRANSITION, message=message, hint=hint)


class RefNotFound(PlsError):
    """A branch ref does not exist in the remote store."""

    def __init__(self, ref: str) -> None:
        """Initialize with the missing ref name."""
        self.ref = ref
        super().__init__(
            code=E.REF_NOT_FOUND,
            message=f'Branch {ref!r} does not exist',
            hint='Check the base_branch setting and that the branch has been pushed.',
        )


class RemoteStoreError(PlsError):
    """A call against the remote object store failed.

    Attributes:
        status: HTTP status code (0 when no response was received).
        detail: Response body or transport error text.
    """

    def __init__(self, operation: str, status: int = 0, detail: str = '') -> None:
        """Initialize with the failed operation, status and detail."""
        self.operation = operation
        self.status = status
        self.detail = detail
        super().__init__(
            code=E.REMOTE_STORE_ERROR,
            message=f'{operation} failed with status {status}: {detail[:500]}',
            hint='Check token permissions (contents: write, pull-requests: write).',
        )

    @property
    def not_found(self) -> bool:
        """Whether the remote answered 404."""
        return self.status == 404


class ManifestDecodeError(PlsError):
    """The versions manifest exists but is not valid JSON."""

    def __init__(self, path: str, detail: str) -> None:
        """Initialize with the manifest path and decode error."""
        self.path = path
        super().__init__(
            code=E.MANIFEST_DECODE_ERROR,
            message=f'Versions manifest {path} is not valid JSON: {detail}',
            hint='Fix the file by hand; pls will not guess at version history.',
        )


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='pls.toml contains an unknown key.',
        hint='Check the spelling; pls suggests the closest valid key.',
    ),
    E.AUTH_MISSING: ErrorInfo(
        code=E.AUTH_MISSING,
        message='No GitHub token was provided.',
        hint='Pass token= or set GITHUB_TOKEN / GH_TOKEN.',
    ),
    E.VERSION_INVALID_TRANSITION: ErrorInfo(
        code=E.VERSION_INVALID_TRANSITION,
        message='Prerelease stages only move forward: alpha -> beta -> rc -> stable.',
        hint='From stable, use the normal bump flow or start a new alpha/beta/rc.',
    ),
    E.REF_NOT_FOUND: ErrorInfo(
        code=E.REF_NOT_FOUND,
        message='The base branch could not be resolved.',
        hint='Check base_branch in pls.toml or PLS_BASE_BRANCH.',
    ),
    E.MANIFEST_DECODE_ERROR: ErrorInfo(
        code=E.MANIFEST_DECODE_ERROR,
        message='.pls/versions.json is not valid JSON.',
        hint='Restore it from history; it anchors the release range.',
    ),
    E.PR_OPTIONS_MISSING: ErrorInfo(
        code=E.PR_OPTIONS_MISSING,
        message='The PR description has no version selection block.',
        hint='Only PRs opened by pls can be synced. Re-run prep to regenerate the description.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"PLS-REF-NOT-FOUND"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: PlsError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[PLS-REF-NOT-FOUND]: Branch 'main' does not exist
          |
          = hint: Check the base_branch setting ...

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'InvalidTransition',
    'InvalidVersionFormat',
    'ManifestDecodeError',
    'PlsError',
    'RefNotFound',
    'RemoteStoreError',
    'explain',
    'render_error',
]
