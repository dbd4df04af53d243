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
"""Diagnostic records and the collector that accumulates them.

Type errors are data, not control flow. Every component that detects a
problem reports a Diagnostic into the pass-wide DiagnosticCollector and then
recovers locally (usually by substituting `never`, or `any` for an unknown
name), so one pass reports every independent error it can find.

Diagnostic kinds:
- UnresolvedReference: a type or value name that was never defined
- CircularAlias: an alias whose definition re-enters itself
- TypeMismatch: a failed assignability check
- MissingRequiredProperty: a required target property absent from the source
- IndexSignatureViolation: a property that breaks an index signature
- NoMatchingOverload: no call signature accepts the arguments
- ThisContextUnsatisfied: a receiver-typed function invoked without a
  suitable receiver
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple

from .provenance import SourceSpan, format_location

if TYPE_CHECKING:
    from ..types.model import Type

logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    """The closed set of diagnostic categories."""

    UNRESOLVED_REFERENCE = "UnresolvedReference"
    CIRCULAR_ALIAS = "CircularAlias"
    TYPE_MISMATCH = "TypeMismatch"
    MISSING_REQUIRED_PROPERTY = "MissingRequiredProperty"
    INDEX_SIGNATURE_VIOLATION = "IndexSignatureViolation"
    NO_MATCHING_OVERLOAD = "NoMatchingOverload"
    THIS_CONTEXT_UNSATISFIED = "ThisContextUnsatisfied"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single reported problem.

    Attributes:
        kind: The diagnostic category
        message: Human-readable, deterministic message
        location: Where the problem was found (None if unknown)
        expected: The type that was required, if any
        actual: The type that was found, if any
        notes: Extra detail lines (e.g. one per rejected overload)
    """

    kind: DiagnosticKind
    message: str
    location: Optional[SourceSpan] = None
    expected: Optional["Type"] = None
    actual: Optional["Type"] = None
    notes: Tuple[str, ...] = ()

    def render(self) -> str:
        """Render as `<location>: error[<Kind>]: <message>` plus note lines."""
        head = f"{format_location(self.location)}: error[{self.kind}]: {self.message}"
        if not self.notes:
            return head
        return "\n".join([head] + [f"  note: {note}" for note in self.notes])

    def __repr__(self) -> str:
        return f"Diagnostic({self.kind}, {self.message!r}, at={format_location(self.location)})"


class DiagnosticCollector:
    """Accumulates diagnostics for one checking pass, in report order.

    The collector never raises and never stops the pass; components call
    report() and keep going.
    """

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        location: Optional[SourceSpan] = None,
        expected: Optional["Type"] = None,
        actual: Optional["Type"] = None,
        notes: Iterable[str] = (),
    ) -> Diagnostic:
        """Create and record a diagnostic.

        Returns:
            The recorded Diagnostic
        """
        diagnostic = Diagnostic(
            kind=kind,
            message=message,
            location=location,
            expected=expected,
            actual=actual,
            notes=tuple(notes),
        )
        self.add(diagnostic)
        return diagnostic

    def add(self, diagnostic: Diagnostic) -> None:
        """Record an already-built diagnostic."""
        logger.debug(f"{diagnostic.kind}: {diagnostic.message}")
        self._diagnostics.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        """Return the diagnostics of one kind, in report order."""
        return [d for d in self._diagnostics if d.kind == kind]

    def kinds(self) -> List[DiagnosticKind]:
        return [d.kind for d in self._diagnostics]

    @property
    def has_errors(self) -> bool:
        return bool(self._diagnostics)

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def render(self) -> str:
        """Render every diagnostic, one per line, in report order."""
        return "\n".join(d.render() for d in self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __repr__(self) -> str:
        return f"DiagnosticCollector({len(self._diagnostics)} diagnostics)"
