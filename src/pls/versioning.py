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

"""Commit classification and version bump computation.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Classify                │ Look at a pile of commits and pick the     │
    │                         │ biggest change: breaking > feat > fix.     │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Default patch           │ Any non-empty history without feat/fix     │
    │                         │ still yields a patch release.              │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ VersionBump             │ The decision for one run: from, to, type   │
    │                         │ and the commits that justified it.         │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Prerelease progression  │ While on ``-beta.N`` only N moves; leaving │
    │                         │ the stage is a human's choice.             │
    └─────────────────────────┴─────────────────────────────────────────────┘

Usage::

    from pls.commit_parsing import Commit
    from pls.versioning import calculate_bump

    bump = calculate_bump('1.0.0', [Commit('a1', 'feat: add X'), Commit('b2', 'fix: y')])
    assert (bump.from_version, bump.to_version, bump.type.value) == ('1.0.0', '1.1.0', 'minor')
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from pls.commit_parsing import BumpType, Commit, CommitParser, ParsedCommit, max_bump, parse_commit
from pls.logging import get_logger
from pls.prerelease import (
    Stage,
    bump_core,
    increment_prerelease,
    parse_version,
    transition,
)
from pls.release_metadata import extract_version, is_release_commit

logger = get_logger(__name__)


@dataclass(frozen=True)
class VersionBump:
    """The version decision for one synchronization run.

    Attributes:
        from_version: Version before the release.
        to_version: Version after the release.
        type: Kind of change; ``TRANSITION`` for prerelease stage moves.
        commits: Commits that justified the bump, oldest first.
    """

    from_version: str
    to_version: str
    type: BumpType
    commits: tuple[Commit, ...] = field(default=())


def _commit_bump(parsed: ParsedCommit) -> BumpType:
    if parsed.breaking:
        return BumpType.MAJOR
    return BumpType.MINOR if parsed.type == 'feat' else BumpType.PATCH


def classify(
    commits: Sequence[Commit],
    *,
    current_version: str | None = None,
    major_on_zero: bool = True,
    parser: CommitParser | None = None,
) -> BumpType | None:
    """Reduce a batch of commits to a single bump class.

    Each commit maps to one class (breaking is ``MAJOR``, ``feat`` is
    ``MINOR``, everything else including unparseable headers is
    ``PATCH``) and the batch keeps the highest by :func:`max_bump`. The
    scan stops at the first breaking commit.

    Args:
        commits: Commits to classify.
        current_version: The version being bumped. Only consulted when
            ``major_on_zero`` is off.
        major_on_zero: When ``False`` and ``current_version`` is ``0.x``,
            breaking changes produce ``MINOR`` instead of ``MAJOR``.
        parser: Message parser; defaults to conventional commits.

    Returns:
        The bump class, or ``None`` for an empty batch.
    """
    if not commits:
        return None

    parse = parser.parse if parser is not None else parse_commit
    result = BumpType.PATCH
    for commit in commits:
        result = max_bump(result, _commit_bump(parse(commit)))
        if result is BumpType.MAJOR:
            break

    if result is BumpType.MAJOR and not major_on_zero and current_version:
        if parse_version(current_version).major == 0:
            return BumpType.MINOR
    return result


def next_version(current: str, bump: BumpType) -> str:
    """Apply a semver increment to ``current``.

    A prerelease suffix on ``current`` is dropped before incrementing.

    Raises:
        InvalidVersionFormat: If ``current`` does not parse.
        InvalidTransition: If ``bump`` is ``TRANSITION``.
    """
    return bump_core(parse_version(current), bump).format()


def get_next_version(
    current: str,
    bump: BumpType | None,
    target: Stage | None = None,
) -> str | None:
    """Compute the next version, honoring prerelease progression.

    Args:
        current: The current version.
        bump: The classified bump, or ``None`` when nothing was classified.
        target: Explicit stage to move to. When given this is a
            :func:`~pls.prerelease.transition` and ``bump`` (default
            ``MINOR``) only matters when leaving stable.

    Returns:
        The next version, or ``None`` for a stable version with no bump.
    """
    if target is not None:
        return transition(current, target, bump or BumpType.MINOR)
    if parse_version(current).is_prerelease:
        return increment_prerelease(current)
    if bump is None:
        return None
    return next_version(current, bump)


def filter_releasable(commits: Sequence[Commit]) -> list[Commit]:
    """Drop previous release commits and merge commits."""
    kept: list[Commit] = []
    for commit in commits:
        title = commit.title
        if title.startswith('Merge ') or title.startswith('chore: release'):
            continue
        if title.lower().startswith('release v') or is_release_commit(commit.message):
            continue
        kept.append(commit)
    return kept


def commits_after_release(commits: Sequence[Commit], version: str) -> list[Commit]:
    """Return the commits that landed after ``version`` was released.

    ``commits`` is oldest first. The newest commit whose recorded release
    version equals ``version`` marks the cut; everything up to and
    including it has shipped. Without such a commit the batch is
    returned unchanged.
    """
    for index in range(len(commits) - 1, -1, -1):
        if extract_version(commits[index].message) == version:
            logger.debug('release_point_found', version=version, sha=commits[index].sha, dropped=index + 1)
            return list(commits[index + 1 :])
    return list(commits)


def calculate_bump(
    current: str,
    commits: Sequence[Commit],
    *,
    major_on_zero: bool = True,
) -> VersionBump | None:
    """Turn a commit batch into a :class:`VersionBump`.

    Stable versions get a regular semver increment. Prerelease versions
    only advance their counter, while ``type`` still records the
    classified class.

    Returns:
        The bump, or ``None`` when there is nothing to release.
    """
    bump_type = classify(commits, current_version=current, major_on_zero=major_on_zero)
    if bump_type is None:
        return None

    to_version = get_next_version(current, bump_type)
    if to_version is None:
        return None

    logger.info(
        'bump_calculated',
        from_version=current,
        to_version=to_version,
        type=bump_type.value,
        commits=len(commits),
    )
    return VersionBump(
        from_version=current,
        to_version=to_version,
        type=bump_type,
        commits=tuple(commits),
    )


def infer_bump_type(from_version: str, to_version: str) -> BumpType:
    """Describe the move from ``from_version`` to ``to_version``.

    Any prerelease target counts as ``TRANSITION``; otherwise the first
    differing core component decides.
    """
    to_info = parse_version(to_version)
    if to_info.is_prerelease:
        return BumpType.TRANSITION
    from_info = parse_version(from_version)
    if to_info.major != from_info.major:
        return BumpType.MAJOR
    if to_info.minor != from_info.minor:
        return BumpType.MINOR
    return BumpType.PATCH


__all__ = [
    'VersionBump',
    'calculate_bump',
    'classify',
    'commits_after_release',
    'filter_releasable',
    'get_next_version',
    'infer_bump_type',
    'next_version',
]
