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
"""Receiver (`this`) checking at call sites.

Whether a call has a receiver is a property of the call site, not of the
function type, so it is checked here rather than by assignability. A
function extracted from its object and called bare is UNBOUND and fails a
declared receiver requirement regardless of what the runtime would bind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .format import format_type
from .model import FunctionType, Type
from .subsumption import AssignabilityChecker, Mismatch


class _Unbound:
    """Sentinel for an invocation without an explicit receiver."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNBOUND"


UNBOUND = _Unbound()

BoundReceiver = Union[Type, _Unbound]


@dataclass(frozen=True)
class ReceiverViolation:
    """A declared receiver requirement the call site does not meet.

    Attributes:
        required: The function's declared receiver type
        bound: The receiver type at the call site, or UNBOUND
        mismatch: Why the bound receiver does not fit, if it was bound
    """

    required: Type
    bound: BoundReceiver
    mismatch: Optional[Mismatch] = None

    @property
    def message(self) -> str:
        if self.bound is UNBOUND:
            return (
                f"The 'this' context of type 'void' is not assignable to method's "
                f"'this' of type '{format_type(self.required)}'."
            )
        return (
            f"The 'this' context of type '{format_type(self.bound)}' is not assignable "
            f"to method's 'this' of type '{format_type(self.required)}'."
        )


class ReceiverChecker:
    def __init__(self, checker: AssignabilityChecker):
        self._checker = checker

    def check_invocation(
        self, fn: FunctionType, bound_receiver: BoundReceiver
    ) -> Optional[ReceiverViolation]:
        """Check an invocation's receiver against the function's declared one.

        Returns:
            None if the invocation is acceptable, else the violation
        """
        required = fn.receiver
        if required is None:
            return None
        if bound_receiver is UNBOUND:
            return ReceiverViolation(required, UNBOUND)
        result = self._checker.check(bound_receiver, required)
        if result:
            return None
        return ReceiverViolation(required, bound_receiver, result.mismatch)
