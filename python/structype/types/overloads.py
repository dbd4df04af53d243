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
"""Overload resolution.

Signatures are tried in declaration order and the first one whose every
parameter accepts its argument is selected. Resolution is first-match, not
best-match: declaring `(kind: "email", users: HasEmail[])` before
`(kind: "phone", users: HasPhoneNumber[])` fixes which one a call can pick.

Arity must match exactly, except that optional parameters may be omitted
and a trailing rest parameter absorbs any number of extra arguments. The
extra arguments are collected into `ArrayType(union(...))` and checked
against the rest parameter type in one assignability test.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..diagnostics.diagnostics import DiagnosticCollector, DiagnosticKind
from ..diagnostics.provenance import SourceSpan
from .format import format_signature, format_type
from .model import ArrayType, Signature, Type, union
from .subsumption import AssignabilityChecker, Mismatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rejection:
    """Why one signature was not selected.

    Attributes:
        signature_index: Position of the signature in declaration order
        signature: The rejected signature
        argument_index: The first argument that failed, or None for an
            arity failure
        mismatch: The assignability mismatch for that argument
        reason: Rendered explanation
    """

    signature_index: int
    signature: Signature
    reason: str
    argument_index: Optional[int] = None
    mismatch: Optional[Mismatch] = None

    def render(self, receiver: Optional[Type] = None) -> str:
        return f"overload {self.signature_index + 1} {format_signature(self.signature, receiver)}: {self.reason}"


@dataclass(frozen=True)
class OverloadResolution:
    """Outcome of resolving one call.

    Attributes:
        index: Index of the selected signature, or None if none matched
        signature: The selected signature
        rejections: One entry per signature tried and rejected before the
            selection (or every signature when nothing matched)
    """

    index: Optional[int]
    signature: Optional[Signature] = None
    rejections: Tuple[Rejection, ...] = field(default_factory=tuple)

    @property
    def matched(self) -> bool:
        return self.index is not None

    @property
    def return_type(self) -> Optional[Type]:
        return self.signature.return_type if self.signature is not None else None


class OverloadResolver:
    """First-match overload resolution against an AssignabilityChecker."""

    def __init__(self, checker: AssignabilityChecker):
        self._checker = checker

    def resolve_call(
        self, signatures: Sequence[Signature], args: Sequence[Type]
    ) -> OverloadResolution:
        """Select the first signature that accepts `args`.

        Args:
            signatures: Candidate signatures in declaration order
            args: Argument types in call order

        Returns:
            The resolution; `index` is None when no signature matched
        """
        rejections: List[Rejection] = []
        for index, sig in enumerate(signatures):
            rejection = self.match_signature(index, sig, args)
            if rejection is None:
                logger.debug(f"Selected overload {index} of {len(signatures)}: {sig!r}")
                return OverloadResolution(index, sig, tuple(rejections))
            rejections.append(rejection)
        logger.debug(f"No overload of {len(signatures)} accepts {len(args)} argument(s)")
        return OverloadResolution(None, None, tuple(rejections))

    def match_signature(
        self, index: int, sig: Signature, args: Sequence[Type]
    ) -> Optional[Rejection]:
        """Return None if `sig` accepts `args`, else the first reason it does not."""
        positional = sig.positional
        rest = sig.rest_parameter

        if len(args) < sig.min_arity or (rest is None and len(args) > len(positional)):
            expected = _arity_text(sig)
            return Rejection(
                index, sig, f"expected {expected} argument(s), got {len(args)}"
            )

        for i, (param, arg) in enumerate(zip(positional, args)):
            result = self._checker.check(arg, param.type)
            if not result:
                return Rejection(
                    index,
                    sig,
                    f"argument {i + 1} for parameter '{param.name}': {result.reason}",
                    argument_index=i,
                    mismatch=result.mismatch,
                )

        if rest is not None:
            trailing = args[len(positional):]
            collected = ArrayType(union(*trailing))
            result = self._checker.check(collected, rest.type)
            if not result:
                return Rejection(
                    index,
                    sig,
                    f"rest arguments for parameter '{rest.name}': {result.reason}",
                    argument_index=len(positional),
                    mismatch=result.mismatch,
                )
        return None


def _arity_text(sig: Signature) -> str:
    if sig.max_arity is None:
        return f"at least {sig.min_arity}"
    if sig.min_arity == sig.max_arity:
        return str(sig.min_arity)
    return f"{sig.min_arity}-{sig.max_arity}"


def report_no_matching_overload(
    diagnostics: DiagnosticCollector,
    callee: str,
    resolution: OverloadResolution,
    args: Sequence[Type],
    location: Optional[SourceSpan] = None,
    receiver: Optional[Type] = None,
):
    """Report a NoMatchingOverload diagnostic listing every rejected signature."""
    rendered_args = ", ".join(format_type(a) for a in args)
    return diagnostics.report(
        DiagnosticKind.NO_MATCHING_OVERLOAD,
        f"No overload of '{callee}' matches this call with arguments ({rendered_args}).",
        location=location,
        notes=tuple(r.render(receiver) for r in resolution.rejections),
    )
