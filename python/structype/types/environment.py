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
"""Symbol environment and value scopes.

Two environments live here:

- SymbolEnvironment maps alias/interface names to types. Names are
  registered with a producer and evaluated lazily on first resolve(), with a
  three-state mark per name (unresolved, resolving, resolved). Re-entering a
  name that is still resolving is a circular alias: it is reported once and
  the cell is filled with `never` so dependent resolutions can proceed.

- ValueScope maps value names (variables, functions) to types. It is an
  immutable, persistent mapping built on `immutables.Map`, so binding a name
  never disturbs a scope someone else still holds.

Both are scoped to one checking pass. Resolution marks are not safe to share
between workers that resolve concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, List, Optional, Set

from immutables import Map as ImmutableMap

from ..diagnostics.diagnostics import DiagnosticCollector, DiagnosticKind
from ..diagnostics.provenance import SourceSpan
from .model import ANY, NEVER, AliasRef, Type, TypeDefinitionError

logger = logging.getLogger(__name__)

TypeProducer = Callable[[], Type]


class ResolutionState(Enum):
    """Resolution mark of a named cell."""

    UNRESOLVED = auto()
    RESOLVING = auto()
    RESOLVED = auto()


@dataclass
class _Cell:
    """A named, lazily-filled slot in the environment arena."""

    name: str
    producer: TypeProducer
    location: Optional[SourceSpan] = None
    state: ResolutionState = ResolutionState.UNRESOLVED
    value: Optional[Type] = None
    circular: bool = False


class SymbolEnvironment:
    """Arena of named type cells with cycle-safe lazy resolution.

    Example:
        >>> env = SymbolEnvironment()
        >>> env.define("NumArr", lambda: ArrayType(env.resolve("NumVal")))
        >>> env.define("NumVal", lambda: union(literal(1), env.resolve("NumArr")))
        >>> env.resolve("NumVal")   # reports one CircularAlias, returns never
    """

    def __init__(self, diagnostics: Optional[DiagnosticCollector] = None):
        self._cells: Dict[str, _Cell] = {}
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self._resolving: List[str] = []
        self._reported_unresolved: Set[str] = set()

    @property
    def diagnostics(self) -> DiagnosticCollector:
        return self._diagnostics

    def define(
        self,
        name: str,
        producer: TypeProducer,
        location: Optional[SourceSpan] = None,
    ) -> None:
        """Register a name without evaluating its type.

        Raises:
            TypeDefinitionError: If the name is already defined
        """
        if name in self._cells:
            raise TypeDefinitionError(f"type name '{name}' is already defined")
        self._cells[name] = _Cell(name=name, producer=producer, location=location)

    def define_type(
        self, name: str, typ: Type, location: Optional[SourceSpan] = None
    ) -> None:
        """Register a name bound to an already-built type."""
        self.define(name, lambda: typ, location)

    def resolve(self, name: str, location: Optional[SourceSpan] = None) -> Type:
        """Return the type bound to a name, computing it on first access.

        Args:
            name: The alias or interface name
            location: Where the reference occurs (used for UnresolvedReference)

        Returns:
            The resolved type; `never` for a circular alias, `any` for an
            undefined name
        """
        cell = self._cells.get(name)
        if cell is None:
            if name not in self._reported_unresolved:
                self._reported_unresolved.add(name)
                self._diagnostics.report(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"Cannot find name '{name}'.",
                    location=location,
                )
            return ANY

        if cell.state is ResolutionState.RESOLVED:
            return cell.value

        if cell.state is ResolutionState.RESOLVING:
            if not cell.circular:
                cell.circular = True
                cycle = self._resolving[self._resolving.index(name):] + [name]
                logger.debug(f"Circular alias detected: {' -> '.join(cycle)}")
                self._diagnostics.report(
                    DiagnosticKind.CIRCULAR_ALIAS,
                    f"Type alias '{name}' circularly references itself.",
                    location=cell.location,
                    notes=(f"cycle: {' -> '.join(cycle)}",),
                )
            return NEVER

        cell.state = ResolutionState.RESOLVING
        self._resolving.append(name)
        try:
            value = cell.producer()
        finally:
            self._resolving.pop()
        cell.value = NEVER if cell.circular else value
        cell.state = ResolutionState.RESOLVED
        return cell.value

    def unwrap(self, typ: Type) -> Type:
        """Follow AliasRef cells until a non-reference type is reached."""
        seen: Set[str] = set()
        while isinstance(typ, AliasRef):
            if typ.name in seen:
                return NEVER
            seen.add(typ.name)
            typ = self.resolve(typ.name)
        return typ

    def state(self, name: str) -> Optional[ResolutionState]:
        """Return the resolution mark of a name, or None if undefined."""
        cell = self._cells.get(name)
        return cell.state if cell is not None else None

    def is_defined(self, name: str) -> bool:
        return name in self._cells

    def is_circular(self, name: str) -> bool:
        cell = self._cells.get(name)
        return cell is not None and cell.circular

    def resolve_all(self) -> Dict[str, Type]:
        """Resolve every defined name, in definition order."""
        return {name: self.resolve(name) for name in list(self._cells)}

    def names(self) -> FrozenSet[str]:
        return frozenset(self._cells)

    def __contains__(self, name: str) -> bool:
        return name in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        resolved = sum(1 for c in self._cells.values() if c.state is ResolutionState.RESOLVED)
        return f"SymbolEnvironment({len(self._cells)} names, {resolved} resolved)"


@dataclass(frozen=True)
class ValueScope:
    """Immutable scope mapping value names to types.

    `bind` returns a new scope; the receiver is left untouched.
    """

    _bindings: ImmutableMap = field(default_factory=ImmutableMap)

    def bind(self, name: str, ty: Type) -> ValueScope:
        return ValueScope(_bindings=self._bindings.set(name, ty))

    def lookup(self, name: str) -> Optional[Type]:
        return self._bindings.get(name)

    def contains(self, name: str) -> bool:
        return name in self._bindings

    def all_bindings(self) -> Dict[str, Type]:
        return dict(self._bindings.items())

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        bindings_str = ", ".join(
            f"{name}: {ty!r}" for name, ty in sorted(self._bindings.items())
        )
        return f"ValueScope({{{bindings_str}}})"


EMPTY_SCOPE = ValueScope()
