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

"""Pure types for commit message parsing.

This module has **zero** runtime dependencies beyond the standard library.
Everything here is a frozen dataclass, an enum or a protocol. Nothing here does I/O
or logging.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class BumpType(str, Enum):
    """Kinds of version change a release can carry.

    ``MAJOR``, ``MINOR`` and ``PATCH`` come from conventional-commit
    classification. ``TRANSITION`` marks a prerelease stage move
    (``1.2.0 → 1.3.0-alpha.0``, ``1.3.0-rc.1 → 1.3.0``) chosen by a human
    rather than derived from commits.
    """

    MAJOR = 'major'
    MINOR = 'minor'
    PATCH = 'patch'
    TRANSITION = 'transition'


# Bump precedence for commit-driven classes: lower index = higher precedence.
BUMP_PRECEDENCE: list[BumpType] = [
    BumpType.MAJOR,
    BumpType.MINOR,
    BumpType.PATCH,
]


def max_bump(a: BumpType, b: BumpType) -> BumpType:
    """Return the higher-precedence bump type.

    >>> max_bump(BumpType.MINOR, BumpType.PATCH)
    <BumpType.MINOR: 'minor'>
    """
    return BUMP_PRECEDENCE[min(BUMP_PRECEDENCE.index(a), BUMP_PRECEDENCE.index(b))]


@dataclass(frozen=True)
class Commit:
    """A commit as yielded by a :class:`~pls.backends.CommitSource`.

    Immutable; pls never rewrites history.

    Attributes:
        sha: Full commit SHA.
        message: Full commit message (title, blank line, body).
        author: Author display name.
        date: ISO 8601 author date.
    """

    sha: str
    message: str
    author: str = ''
    date: str = ''

    @property
    def title(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0].strip()


@dataclass(frozen=True)
class ParsedCommit:
    """A commit message broken into its conventional-commit parts.

    Attributes:
        sha: The commit SHA.
        type: The commit type (e.g. ``"feat"``). Non-conventional
            headers are reported as ``"chore"``.
        description: The header text after ``type(scope)!:``.
        scope: The optional scope (e.g. ``"auth"``).
        breaking: ``!`` in the header or ``BREAKING CHANGE:`` in the body.
        body: Everything after the header, stripped.
        conventional: Whether the header matched the convention at all.
    """

    sha: str
    type: str
    description: str
    scope: str = ''
    breaking: bool = False
    body: str = ''
    conventional: bool = True


@runtime_checkable
class CommitParser(Protocol):
    """Protocol for commit message parsers."""

    def parse(self, commit: Commit) -> ParsedCommit:
        """Parse a commit into a :class:`ParsedCommit`."""
        ...
