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

"""Conventional Commits parser.

Pure implementation; depends only on ``re`` and :mod:`._types`.
"""

from __future__ import annotations

import re

from pls.commit_parsing._types import Commit, ParsedCommit

# Regex for Conventional Commits: type(scope)!: description
CC_PATTERN: re.Pattern[str] = re.compile(
    r'^(?P<type>\w+)'  # type (e.g. feat, fix, chore)
    r'(?:\((?P<scope>[^)]*)\))?'  # optional scope in parens
    r'(?P<breaking>!)?'  # optional breaking change indicator
    r':\s+'  # colon + space
    r'(?P<description>.+)$',  # description
)

# Footer tokens that force a breaking change anywhere in the body.
BREAKING_TOKENS: tuple[str, ...] = ('BREAKING CHANGE:', 'BREAKING-CHANGE:')


class ConventionalCommitParser:
    """Parser for `Conventional Commits <https://www.conventionalcommits.org/>`_.

    Never rejects a commit: headers that do not follow the convention are
    reported as ``chore`` with ``conventional=False`` so that callers can
    still count them toward the default patch bump.
    """

    def parse(self, commit: Commit) -> ParsedCommit:
        """Parse a commit's message.

        Args:
            commit: The commit to parse.

        Returns:
            The parsed commit.
        """
        header, _, rest = commit.message.strip().partition('\n')
        header = header.strip()
        body = rest.strip()
        body_breaking = any(token in body for token in BREAKING_TOKENS)

        match = CC_PATTERN.match(header)
        if not match:
            return ParsedCommit(
                sha=commit.sha,
                type='chore',
                description=header,
                breaking=body_breaking,
                body=body,
                conventional=False,
            )

        return ParsedCommit(
            sha=commit.sha,
            type=match.group('type').lower(),
            scope=match.group('scope') or '',
            description=match.group('description').strip(),
            breaking=bool(match.group('breaking')) or body_breaking,
            body=body,
        )
