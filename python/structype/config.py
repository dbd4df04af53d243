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
"""Checker configuration.

A single frozen CheckerConfig is handed to every checking pass. It is
hashable and serializable so callers can keep it next to cached results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ParameterVariance(Enum):
    """How parameter types are compared when one function is assigned to another.

    - CONTRAVARIANT: the target's parameter types must be assignable to the
      source's (sound; the default)
    - BIVARIANT: either direction is accepted (the looser method-parameter
      rule some checkers use for compatibility)
    """

    CONTRAVARIANT = "contravariant"
    BIVARIANT = "bivariant"


@dataclass(frozen=True)
class CheckerConfig:
    """Configuration for a checking pass.

    Attributes:
        parameter_variance: Rule for comparing function parameters.

        memoize: Cache assignability results on the (source, target) pair for
            the lifetime of one pass. Recursive shapes terminate either way;
            this only trades memory for speed.

        widen_let_literals: An unannotated `let` binding widens literal
            initializers to their base primitive (`let n = 3` is `number`).
            `const` bindings always keep the literal.

        max_workers: Worker count for check_programs(). None lets the
            executor pick.

    Example:
        >>> config = CheckerConfig(parameter_variance=ParameterVariance.BIVARIANT)
        >>> result = check_program(program, config)
    """

    parameter_variance: ParameterVariance = ParameterVariance.CONTRAVARIANT
    memoize: bool = True
    widen_let_literals: bool = True
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "parameter_variance": self.parameter_variance.value,
            "memoize": self.memoize,
            "widen_let_literals": self.widen_let_literals,
            "max_workers": self.max_workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CheckerConfig:
        """Create from dictionary; missing keys keep their defaults."""
        kwargs: Dict[str, Any] = {}
        if "parameter_variance" in data:
            kwargs["parameter_variance"] = ParameterVariance(data["parameter_variance"])
        for key in ("memoize", "widen_let_literals", "max_workers"):
            if key in data:
                kwargs[key] = data[key]
        return cls(**kwargs)


DEFAULT_CONFIG = CheckerConfig()
