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

"""Bounded diagnostic log embedded in a release PR description.

Each run appends one entry; only the last :data:`MAX_ENTRIES` survive::

    <details>
    <summary>Debug Log</summary>

    <!-- pls:debug -->
    ### 2026-01-15 14:30:22 UTC — `pls prep`
    - **version**: 1.1.0
    - **commits**: 2
    <!-- pls:debug:end -->

    </details>

This block is a diagnostics aid only. Nothing reads it to make decisions,
so :func:`parse_debug_log` skips anything it cannot understand.
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

DEBUG_START = '<!-- pls:debug -->'
DEBUG_END = '<!-- pls:debug:end -->'
MAX_ENTRIES = 10

_SECTION_START = '<details>\n<summary>Debug Log</summary>'
_SECTION_END = '</details>'
_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S UTC'
_HEADER_RE = re.compile(r'^### (.+?) — `(.+)`$')
_DETAIL_RE = re.compile(r'^- \*\*(.+?)\*\*: (.+)$')


@dataclass(frozen=True)
class DebugEntry:
    """One diagnostic record.

    Attributes:
        timestamp: When the entry was made (UTC, second precision).
        command: Free-text label of what ran.
        details: Ordered key/value pairs.
    """

    timestamp: datetime.datetime
    command: str
    details: dict[str, str] = field(default_factory=dict)


def make_entry(
    command: str,
    details: Mapping[str, object] | None = None,
    now: datetime.datetime | None = None,
) -> DebugEntry:
    """Create an entry stamped with the current UTC time."""
    timestamp = now or datetime.datetime.now(datetime.timezone.utc)
    return DebugEntry(
        timestamp=timestamp.replace(microsecond=0),
        command=command,
        details={key: str(value) for key, value in (details or {}).items()},
    )


def format_entry(entry: DebugEntry) -> str:
    """Render a single entry as markdown."""
    stamp = entry.timestamp.astimezone(datetime.timezone.utc).strftime(_TIMESTAMP_FORMAT)
    lines = [f'### {stamp} — `{entry.command}`']
    lines.extend(f'- **{key}**: {value}' for key, value in entry.details.items())
    return '\n'.join(lines)


def render_debug_log(entries: list[DebugEntry]) -> str:
    """Render the collapsible section holding ``entries``.

    Returns an empty string for no entries.
    """
    if not entries:
        return ''
    body = '\n\n'.join(format_entry(entry) for entry in entries)
    return f'\n{_SECTION_START}\n\n{DEBUG_START}\n{body}\n{DEBUG_END}\n\n{_SECTION_END}'


def _parse_entry(chunk: str) -> DebugEntry | None:
    lines = chunk.split('\n')
    header = _HEADER_RE.match(lines[0].strip())
    if not header:
        return None
    stamp, command = header.groups()
    try:
        timestamp = datetime.datetime.strptime(stamp, _TIMESTAMP_FORMAT).replace(tzinfo=datetime.timezone.utc)
    except ValueError:
        return None

    details: dict[str, str] = {}
    for line in lines[1:]:
        detail = _DETAIL_RE.match(line.strip())
        if detail:
            details[detail.group(1)] = detail.group(2)
    return DebugEntry(timestamp=timestamp, command=command, details=details)


def parse_debug_log(text: str) -> list[DebugEntry]:
    """Return the entries embedded in ``text``, oldest first.

    Entries with a malformed header are skipped individually.
    """
    start = text.find(DEBUG_START)
    end = text.find(DEBUG_END)
    if start == -1 or end == -1 or end <= start:
        return []

    content = text[start + len(DEBUG_START) : end].strip()
    if not content:
        return []

    entries: list[DebugEntry] = []
    for chunk in content.split('\n### '):
        if not chunk:
            continue
        entry = _parse_entry(chunk if chunk.startswith('### ') else f'### {chunk}')
        if entry is not None:
            entries.append(entry)
    return entries


def append_debug_entry(text: str, entry: DebugEntry) -> str:
    """Append ``entry`` to the log in ``text``, keeping the last ten.

    Any existing Debug Log section is removed and a fresh one is written
    at the end of the text.
    """
    entries = [*parse_debug_log(text), entry][-MAX_ENTRIES:]

    clean = text
    section = text.find(_SECTION_START)
    if section != -1:
        section_end = text.find(_SECTION_END, section)
        if section_end != -1:
            clean = text[:section].rstrip() + text[section_end + len(_SECTION_END) :]

    return clean.rstrip() + '\n' + render_debug_log(entries)


__all__ = [
    'DEBUG_END',
    'DEBUG_START',
    'MAX_ENTRIES',
    'DebugEntry',
    'append_debug_entry',
    'format_entry',
    'make_entry',
    'parse_debug_log',
    'render_debug_log',
]
