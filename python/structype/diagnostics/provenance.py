# Copyright Rand Arete @ Ananke 2025
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
# ==============================================================================
"""Source locations attached to declarations, expressions and diagnostics.

The checker never reads source text. The front end hands every tree node an
optional SourceSpan, and diagnostics carry that span back out so a caller can
point at the offending construct.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Half-open offset range `[start, end)` in one input, with an optional
    1-based line/column for display.
    """

    start: int
    end: int
    file: Optional[str] = None
    start_line: Optional[int] = None
    start_col: Optional[int] = None

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def merge(self, other: SourceSpan) -> SourceSpan:
        """Smallest span covering both; keeps the earlier span's line and column."""
        first = self if self.start <= other.start else other
        return SourceSpan(
            start=min(self.start, other.start),
            end=max(self.end, other.end),
            file=self.file if self.file == other.file else None,
            start_line=first.start_line,
            start_col=first.start_col,
        )

    def __str__(self) -> str:
        prefix = self.file or "<input>"
        if self.start_line is not None and self.start_col is not None:
            return f"{prefix}:{self.start_line}:{self.start_col}"
        return f"{prefix}[{self.start}:{self.end}]"


# Sentinel for nodes the front end could not locate
UNKNOWN_SPAN = SourceSpan(start=0, end=0)


def format_location(location: Optional[SourceSpan]) -> str:
    """Render a location for a diagnostic line."""
    if location is None:
        return "<unknown>"
    return str(location)
