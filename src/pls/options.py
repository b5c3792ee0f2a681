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

"""Version selection block embedded in a release PR description.

The PR body doubles as a form. The current choice is shown in bold with
no checkbox; every alternative is a markdown checkbox carrying a hidden
marker that names its version and type::

    <!-- pls:options -->
    **Current: 1.3.0** (minor) <!-- pls:v:1.3.0:minor:current -->

    Switch to:
    - [ ] 1.3.0-alpha.0 (alpha) <!-- pls:v:1.3.0-alpha.0:transition -->
    - [ ] ~~1.2.0-alpha.0~~ (alpha) <!-- pls:v:1.2.0-alpha.0:transition:disabled:already past alpha -->
    <!-- pls:options:end -->

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Current line            │ What the branch holds right now. No box to │
    │                         │ tick, so nobody re-selects the status quo. │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Checked alternative     │ The first ticked, enabled box wins. All    │
    │                         │ later ticks are ignored.                   │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Disabled option         │ Struck through, reason in the marker.      │
    │                         │ Never selectable, even when ticked.        │
    └─────────────────────────┴─────────────────────────────────────────────┘

Parsing never raises: a missing or mangled block yields ``None``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from pls.commit_parsing import BumpType
from pls.prerelease import PRERELEASE_STAGES, STAGE_ORDER, Stage, parse_version
from pls.versioning import VersionBump

OPTIONS_START = '<!-- pls:options -->'
OPTIONS_END = '<!-- pls:options:end -->'

_CURRENT_MARKER_RE = re.compile(r'<!-- pls:v:([^:]+):([^:]+):current -->')
_OPTION_MARKER_RE = re.compile(r'<!-- pls:v:([^:]+):([^:]+)(?::disabled:(.+))? -->')
_LABEL_RE = re.compile(r'\(([^)]+)\)\s*<!--')


@dataclass(frozen=True)
class VersionOption:
    """One entry in the selection menu.

    Attributes:
        version: The version this option would release.
        type: Bump type recorded in the marker (``major``, ``transition``, ...).
        label: Human-readable label shown in parentheses.
        selected: Whether this option is the current choice.
        disabled: Whether the option is shown but not selectable.
        disabled_reason: Why the option is disabled.
    """

    version: str
    type: str
    label: str
    selected: bool = False
    disabled: bool = False
    disabled_reason: str = ''


@dataclass(frozen=True)
class ParsedOptions:
    """Result of :func:`parse_options`.

    Attributes:
        options: Every option found, in document order.
        selected: The effective selection, or ``None``.
    """

    options: tuple[VersionOption, ...]
    selected: VersionOption | None


def generate_options(bump: VersionBump) -> list[VersionOption]:
    """Build the menu for a computed bump.

    The computed target is always first and selected. From a stable
    version every prerelease stage of the new core is offered. From a
    prerelease the later stages are offered and earlier ones are listed
    as disabled.
    """
    bump_type = bump.type.value
    options = [VersionOption(version=bump.to_version, type=bump_type, label=bump_type, selected=True)]
    current_stage = parse_version(bump.from_version).stage
    core = parse_version(bump.to_version).core
    transition = BumpType.TRANSITION.value

    if current_stage is Stage.STABLE:
        for stage in PRERELEASE_STAGES:
            candidate = f'{core}-{stage.value}.0'
            if candidate != bump.to_version:
                options.append(VersionOption(version=candidate, type=transition, label=stage.value))
        return options

    for stage in STAGE_ORDER[current_stage.rank + 1 :]:
        candidate = core if stage is Stage.STABLE else f'{core}-{stage.value}.0'
        if candidate != bump.to_version:
            options.append(VersionOption(version=candidate, type=transition, label=stage.value))

    for stage in STAGE_ORDER[: current_stage.rank]:
        options.append(
            VersionOption(
                version=f'{core}-{stage.value}.0',
                type=transition,
                label=stage.value,
                disabled=True,
                disabled_reason=f'already past {stage.value}',
            )
        )
    return options


def render_options(options: list[VersionOption] | tuple[VersionOption, ...]) -> str:
    """Render the delimited options block."""
    lines = [OPTIONS_START]
    selected = next((opt for opt in options if opt.selected and not opt.disabled), None)
    alternatives = [opt for opt in options if not opt.selected or opt.disabled]

    if selected is not None:
        lines.append(
            f'**Current: {selected.version}** ({selected.label}) '
            f'<!-- pls:v:{selected.version}:{selected.type}:current -->'
        )

    if alternatives:
        lines.append('')
        lines.append('Switch to:')
        for opt in alternatives:
            if opt.disabled:
                reason = opt.disabled_reason or 'unavailable'
                lines.append(
                    f'- [ ] ~~{opt.version}~~ ({opt.label}) <!-- pls:v:{opt.version}:{opt.type}:disabled:{reason} -->'
                )
            else:
                lines.append(f'- [ ] {opt.version} ({opt.label}) <!-- pls:v:{opt.version}:{opt.type} -->')

    lines.append(OPTIONS_END)
    return '\n'.join(lines)


def _block_span(text: str) -> tuple[int, int] | None:
    start = text.find(OPTIONS_START)
    end = text.find(OPTIONS_END)
    if start == -1 or end == -1 or end <= start:
        return None
    return start, end


def _label(line: str, fallback: str) -> str:
    match = _LABEL_RE.search(line)
    return match.group(1) if match else fallback


def parse_options(text: str) -> ParsedOptions | None:
    """Extract the options block from ``text``.

    If one or more enabled alternatives are ticked, the first in document
    order is selected; otherwise the current line is.

    Returns:
        The parsed options, or ``None`` when the delimiters are missing
        or out of order.
    """
    span = _block_span(text)
    if span is None:
        return None
    start, end = span

    options: list[VersionOption] = []
    current: VersionOption | None = None
    checked: VersionOption | None = None

    for line in text[start + len(OPTIONS_START) : end].split('\n'):
        current_match = _CURRENT_MARKER_RE.search(line)
        if current_match:
            version, type_ = current_match.groups()
            current = VersionOption(version=version, type=type_, label=_label(line, type_), selected=True)
            options.append(current)
            continue

        if not line.strip().startswith('- ['):
            continue
        marker = _OPTION_MARKER_RE.search(line)
        if not marker:
            continue

        version, type_, reason = marker.groups()
        is_checked = '[x]' in line or '[X]' in line
        option = VersionOption(
            version=version,
            type=type_,
            label=_label(line, type_),
            selected=is_checked,
            disabled=bool(reason),
            disabled_reason=reason or '',
        )
        options.append(option)
        if is_checked and not option.disabled and checked is None:
            checked = option

    return ParsedOptions(options=tuple(options), selected=checked or current)


def update_options(text: str, new_version: str) -> str:
    """Re-select ``new_version`` and splice the re-rendered block back.

    Text outside the block is returned unchanged. ``text`` is returned
    as-is when it carries no options block.
    """
    parsed = parse_options(text)
    if parsed is None:
        return text

    options = [replace(opt, selected=opt.version == new_version and not opt.disabled) for opt in parsed.options]
    start = text.find(OPTIONS_START)
    end = text.find(OPTIONS_END) + len(OPTIONS_END)
    return text[:start] + render_options(options) + text[end:]


def selected_version(text: str) -> str | None:
    """Return the effective selected version in ``text``, if any."""
    parsed = parse_options(text)
    if parsed is None or parsed.selected is None:
        return None
    return parsed.selected.version


def has_selection_changed(old_text: str, new_text: str) -> bool:
    """Return whether the effective selection differs between two bodies.

    ``False`` when either side has no parseable block.
    """
    old = parse_options(old_text)
    new = parse_options(new_text)
    if old is None or new is None:
        return False
    old_version = old.selected.version if old.selected else None
    new_version = new.selected.version if new.selected else None
    return old_version != new_version


__all__ = [
    'OPTIONS_END',
    'OPTIONS_START',
    'ParsedOptions',
    'VersionOption',
    'generate_options',
    'has_selection_changed',
    'parse_options',
    'render_options',
    'selected_version',
    'update_options',
]
