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

"""Release PR title, description and comment text.

The description is assembled from independent pieces: a heading, the
changelog, the options block (:mod:`pls.options`) inside a collapsible
section, and the debug log (:mod:`pls.debug_log`) appended last. Each
block owns its own delimiters; this module only lays them out.
"""

from __future__ import annotations

import re

from pls.options import VersionOption, render_options, update_options

RELEASE_BRANCH = 'pls-release'

_HEADER_RE = re.compile(r'^## Release \d+\.\d+\.\d+(?:-[a-z]+\.\d+)?', re.MULTILINE)


def pr_title(version: str) -> str:
    """Title of the release PR for ``version``."""
    return f'chore: release v{version}'


def generate_pr_body(version: str, changelog: str, options: list[VersionOption]) -> str:
    """Render a fresh release PR description (without debug log)."""
    return f"""## Release {version}

This PR was automatically created by pls.

### Changes

{changelog or '_No user-facing changes._'}

---
*Merging this PR will create a GitHub release and tag.*

<details>
<summary>Version Selection</summary>

Select a version option below. The branch will be updated when the workflow runs.

{render_options(options)}

</details>"""


def update_pr_body_selection(body: str, version: str) -> str:
    """Mark ``version`` as current in ``body`` and fix the heading."""
    return _HEADER_RE.sub(f'## Release {version}', update_options(body, version), count=1)


def selection_changed_comment(old_version: str, new_version: str) -> str:
    """Comment posted when a human switches the release version."""
    return (
        '**Version selection changed**\n\n'
        f'{old_version} -> {new_version}\n\n'
        'The release branch has been updated with the new version.'
    )


__all__ = [
    'RELEASE_BRANCH',
    'generate_pr_body',
    'pr_title',
    'selection_changed_comment',
    'update_pr_body_selection',
]
