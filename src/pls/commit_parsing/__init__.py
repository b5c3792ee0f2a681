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

"""Commit message parsing framework.

The :class:`CommitParser` protocol lets the version engine stay agnostic
of the message convention. The built-in parser handles
``type(scope)!: description`` headers.

Usage::

    from pls.commit_parsing import Commit, parse_commit

    pc = parse_commit(Commit(sha='abc', message='feat(auth): add OAuth2'))
    assert pc.type == 'feat'
    assert pc.scope == 'auth'
"""

from pls.commit_parsing._conventional import ConventionalCommitParser
from pls.commit_parsing._types import (
    BUMP_PRECEDENCE,
    BumpType,
    Commit,
    CommitParser,
    ParsedCommit,
    max_bump,
)

# Module-level singleton for convenience.
_DEFAULT_PARSER = ConventionalCommitParser()


def parse_commit(commit: Commit) -> ParsedCommit:
    """Parse a commit with the default conventional-commit parser."""
    return _DEFAULT_PARSER.parse(commit)


__all__ = [
    'BUMP_PRECEDENCE',
    'BumpType',
    'Commit',
    'CommitParser',
    'ConventionalCommitParser',
    'ParsedCommit',
    'max_bump',
    'parse_commit',
]
