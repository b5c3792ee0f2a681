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

"""Semver parsing and the prerelease stage state machine.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Stage                   │ Where a version sits in its lifecycle:     │
    │                         │ alpha → beta → rc → stable.                │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Core                    │ The MAJOR.MINOR.PATCH part. Prerelease     │
    │                         │ moves keep it; stable → alpha bumps it.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Counter                 │ The trailing number in ``-beta.3``. Reset │
    │                         │ to 0 on every stage change.                │
    └─────────────────────────┴─────────────────────────────────────────────┘

Transitions::

    stable ──(bump core)──▶ alpha.0 / beta.0 / rc.0
    alpha  ──────────────▶ beta.0 / rc.0 / stable
    beta   ──────────────▶ rc.0 / stable
    rc     ──────────────▶ stable
    stable ──────────────▶ stable        ✗ InvalidTransition
    beta   ──────────────▶ alpha         ✗ InvalidTransition

Usage::

    from pls.prerelease import Stage, transition

    assert transition('1.0.0', Stage.ALPHA) == '1.1.0-alpha.0'
    assert transition('1.1.0-rc.2', Stage.STABLE) == '1.1.0'
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from pls.commit_parsing import BumpType
from pls.errors import InvalidTransition, InvalidVersionFormat
from pls.logging import get_logger

logger = get_logger(__name__)


class Stage(str, Enum):
    """Lifecycle stage of a version."""

    ALPHA = 'alpha'
    BETA = 'beta'
    RC = 'rc'
    STABLE = 'stable'

    @property
    def rank(self) -> int:
        """Position in the fixed total order ``alpha < beta < rc < stable``."""
        return STAGE_ORDER.index(self)


STAGE_ORDER: tuple[Stage, ...] = (Stage.ALPHA, Stage.BETA, Stage.RC, Stage.STABLE)

PRERELEASE_STAGES: tuple[Stage, ...] = STAGE_ORDER[:-1]

_SEMVER_RE = re.compile(
    r'^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)'
    r'(?:-(?P<label>alpha|beta|rc)\.(?P<num>\d+))?'
    r'(?:\+[0-9A-Za-z.-]+)?$'
)


@dataclass(frozen=True)
class Version:
    """A parsed semantic version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        stage: Lifecycle stage; :attr:`Stage.STABLE` when there is no
            prerelease suffix.
        number: Prerelease counter (0 for stable).
    """

    major: int
    minor: int
    patch: int
    stage: Stage = Stage.STABLE
    number: int = 0

    @property
    def is_prerelease(self) -> bool:
        """Whether this version carries a prerelease suffix."""
        return self.stage is not Stage.STABLE

    @property
    def core(self) -> str:
        """``MAJOR.MINOR.PATCH`` without any suffix."""
        return f'{self.major}.{self.minor}.{self.patch}'

    def format(self) -> str:
        """Render back to a version string."""
        if not self.is_prerelease:
            return self.core
        return f'{self.core}-{self.stage.value}.{self.number}'

    def __str__(self) -> str:
        return self.format()


def parse_version(version: str) -> Version:
    """Parse ``version`` or raise :class:`InvalidVersionFormat`.

    Build metadata (``+sha.abc``) is accepted and dropped.
    """
    m = _SEMVER_RE.match(version.strip())
    if not m:
        raise InvalidVersionFormat(version)
    label = m.group('label')
    return Version(
        major=int(m.group('major')),
        minor=int(m.group('minor')),
        patch=int(m.group('patch')),
        stage=Stage(label) if label else Stage.STABLE,
        number=int(m.group('num') or 0),
    )


def is_valid_version(version: str) -> bool:
    """Return whether ``version`` parses."""
    try:
        parse_version(version)
    except InvalidVersionFormat:
        return False
    return True


def stage_of(version: str) -> Stage:
    """Return the lifecycle stage of ``version``."""
    return parse_version(version).stage


def bump_core(version: Version, bump: BumpType) -> Version:
    """Increment the core of ``version`` and drop any prerelease suffix."""
    if bump is BumpType.MAJOR:
        return Version(version.major + 1, 0, 0)
    if bump is BumpType.MINOR:
        return Version(version.major, version.minor + 1, 0)
    if bump is BumpType.PATCH:
        return Version(version.major, version.minor, version.patch + 1)
    raise InvalidTransition(
        f'Cannot apply a {bump.value!r} bump to a version core',
        hint='Use major, minor or patch.',
    )


def increment_prerelease(version: str) -> str:
    """Bump only the trailing counter: ``1.0.0-beta.5`` → ``1.0.0-beta.6``."""
    info = parse_version(version)
    if not info.is_prerelease:
        raise InvalidTransition(
            f'Version {version!r} is not a prerelease; there is no counter to increment',
        )
    return replace(info, number=info.number + 1).format()


def transition(current: str, target: Stage, bump: BumpType = BumpType.MINOR) -> str:
    """Move ``current`` to the ``target`` stage.

    Args:
        current: The current version.
        target: The stage to move to.
        bump: How to advance the core when leaving stable for a
            prerelease. Ignored for every other edge.

    Returns:
        The new version string.

    Raises:
        InvalidVersionFormat: If ``current`` does not parse.
        InvalidTransition: For stable → stable and for any move that is
            not strictly forward through ``alpha < beta < rc``.
    """
    info = parse_version(current)

    if target is Stage.STABLE:
        if not info.is_prerelease:
            raise InvalidTransition(
                f'{current} is already on stable; use the normal bump flow',
                hint='Stable → stable is not a transition. Commit-driven bumps handle it.',
            )
        result = info.core
    elif not info.is_prerelease:
        result = replace(bump_core(info, bump), stage=target, number=0).format()
    elif target.rank <= info.stage.rank:
        raise InvalidTransition(
            f'Cannot move from {info.stage.value} to {target.value}: prerelease stages only move forward',
            hint='Order is alpha → beta → rc → stable.',
        )
    else:
        result = replace(info, stage=target, number=0).format()

    logger.debug('transition', from_version=current, to_version=result, target=target.value)
    return result


def compare_versions(a: str, b: str) -> int:
    """Return a negative, zero or positive number like ``cmp(a, b)``.

    Stable sorts after every prerelease of the same core.
    """
    ka, kb = version_sort_key(a), version_sort_key(b)
    return (ka > kb) - (ka < kb)


def version_sort_key(version: str) -> tuple[int, int, int, int, int]:
    """Sort key that honors ``alpha < beta < rc < stable``."""
    info = parse_version(version)
    return (info.major, info.minor, info.patch, info.stage.rank, info.number)


__all__ = [
    'PRERELEASE_STAGES',
    'STAGE_ORDER',
    'Stage',
    'Version',
    'bump_core',
    'compare_versions',
    'increment_prerelease',
    'is_valid_version',
    'parse_version',
    'stage_of',
    'transition',
    'version_sort_key',
]
