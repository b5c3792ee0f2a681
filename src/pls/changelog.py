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

"""Changelog markdown for release PR descriptions and tags.

Commits are grouped by Conventional Commit type. Breaking changes get
their own section first and are not repeated under their type::

    ### ⚠️ Breaking Changes

    - ⚠️ BREAKING: **api:** drop v1 endpoints

    ### Features

    - **auth:** add OAuth2

    ### Bug Fixes

    - handle empty config

Nothing here writes a CHANGELOG file; the text goes into the PR body
and the release tag message.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from pls.commit_parsing import Commit, ParsedCommit, parse_commit

BREAKING_HEADING = '⚠️ Breaking Changes'

# Display order for known types.
TYPE_ORDER: tuple[str, ...] = (
    'feat',
    'fix',
    'perf',
    'refactor',
    'docs',
    'test',
    'build',
    'ci',
    'chore',
    'revert',
)

TYPE_HEADINGS: dict[str, str] = {
    'feat': 'Features',
    'fix': 'Bug Fixes',
    'docs': 'Documentation',
    'style': 'Styles',
    'refactor': 'Code Refactoring',
    'perf': 'Performance Improvements',
    'test': 'Tests',
    'build': 'Build System',
    'ci': 'CI',
    'chore': 'Chores',
    'revert': 'Reverts',
}


@dataclass
class ChangelogSection:
    """A group of parsed commits under one heading.

    Attributes:
        heading: Section heading (e.g. ``"Features"``).
        commits: Commits in this section, in history order.
    """

    heading: str
    commits: list[ParsedCommit] = field(default_factory=list)


def _render_item(commit: ParsedCommit) -> str:
    breaking = '⚠️ BREAKING: ' if commit.breaking else ''
    scope = f'**{commit.scope}:** ' if commit.scope else ''
    return f'- {breaking}{scope}{commit.description}'


def group_commits(commits: Sequence[Commit]) -> list[ChangelogSection]:
    """Parse and group ``commits`` into ordered sections.

    Empty sections are omitted. Types outside :data:`TYPE_ORDER` follow
    in first-seen order.
    """
    parsed = [parse_commit(commit) for commit in commits]

    sections: list[ChangelogSection] = []
    breaking = [pc for pc in parsed if pc.breaking]
    if breaking:
        sections.append(ChangelogSection(heading=BREAKING_HEADING, commits=breaking))

    buckets: dict[str, list[ParsedCommit]] = {}
    for pc in parsed:
        if not pc.breaking:
            buckets.setdefault(pc.type, []).append(pc)

    for type_key in TYPE_ORDER:
        bucket = buckets.pop(type_key, [])
        if bucket:
            sections.append(ChangelogSection(heading=TYPE_HEADINGS[type_key], commits=bucket))

    # Catch any types not in the predefined order.
    for type_key, bucket in buckets.items():
        sections.append(ChangelogSection(heading=TYPE_HEADINGS.get(type_key, type_key), commits=bucket))

    return sections


def render_sections(sections: Sequence[ChangelogSection]) -> str:
    """Render sections as markdown, separated by blank lines."""
    return '\n\n'.join(
        f'### {section.heading}\n\n' + '\n'.join(_render_item(pc) for pc in section.commits) for section in sections
    )


def generate_changelog(commits: Sequence[Commit]) -> str:
    """Render the changelog body for ``commits``."""
    return render_sections(group_commits(commits))


def generate_release_notes(version: str, commits: Sequence[Commit]) -> str:
    """Render the changelog under a ``## <version>`` heading."""
    body = generate_changelog(commits)
    return f'## {version}\n\n{body}' if body else f'## {version}'


__all__ = [
    'BREAKING_HEADING',
    'TYPE_HEADINGS',
    'TYPE_ORDER',
    'ChangelogSection',
    'generate_changelog',
    'generate_release_notes',
    'group_commits',
    'render_sections',
]
