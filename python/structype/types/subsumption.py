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
"""Structural assignability (source <: target).

Rules are tried in this order; the first that applies decides:

1. `any` target, `never` source, identical types: assignable. A `never`
   target accepts nothing else; an `any` source goes anywhere else.
2. Literals: a literal is assignable to the equal literal and to its base
   primitive. A primitive is not assignable to a literal.
3. Unions: a union source needs every member assignable to the target;
   a union target needs the source assignable to at least one member.
4. Intersections: an intersection target needs the source assignable to
   every member. An intersection source is compared to an object target
   through its combined object shape; otherwise one member must fit.
5. Arrays and tuples: arrays are covariant in the element. Tuples need
   equal length and element-wise assignability. A tuple is assignable to
   an array if every element is assignable to the array element.
6. Objects: every required target property must exist in the source and
   be assignable; optional target properties are checked when present.
   A target index signature must accept every source property.
7. Functions and constructors: for every target signature some source
   signature must match. Parameters are contravariant (or bivariant when
   configured), returns covariant, extra source parameters must be
   optional, and a declared target receiver must be assignable to a
   declared source receiver.
8. Anything else is not assignable.

Alias references are unwrapped through the SymbolEnvironment before any
rule runs. Recursive shapes terminate because a (source, target) pair that
is already being checked further up the stack is assumed to hold.

References:
    - Pierce (2002). "Types and Programming Languages", Chapter 15
    - Amadio & Cardelli (1993). "Subtyping recursive types"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple

from ..config import DEFAULT_CONFIG, CheckerConfig, ParameterVariance
from ..diagnostics.diagnostics import DiagnosticKind
from . import members
from .format import format_type
from .model import (
    ANY,
    UNDEFINED,
    VOID,
    AliasRef,
    ArrayType,
    ConstructorType,
    FunctionType,
    IntersectionType,
    LiteralType,
    ObjectType,
    PrimitiveType,
    Signature,
    TupleType,
    Type,
    UnionType,
    is_any,
    is_never,
)

logger = logging.getLogger(__name__)

# No enclosing pair has been assumed
_NO_ASSUMPTION = 1 << 30


@dataclass(frozen=True)
class Mismatch:
    """The first point where a source type failed to fit a target type.

    Attributes:
        kind: TypeMismatch, MissingRequiredProperty or IndexSignatureViolation
        expected: The type required at the failing position
        actual: The type found there. For a missing property, expected and
            actual are the target and source object types
        path: Position of the failure, outermost segment first. Properties
            appear by name, tuple elements as `[i]`, array elements as `[]`,
            parameters as `(name)`, returns as `(return)`, receivers as `(this)`
        detail: Extra explanation (arity or length differences)
    """

    kind: DiagnosticKind
    expected: Optional[Type]
    actual: Optional[Type]
    path: Tuple[str, ...] = ()
    detail: Optional[str] = None

    def within(self, segment: str) -> Mismatch:
        """Return this mismatch with `segment` prepended to the path."""
        return replace(self, path=(segment,) + self.path)

    @property
    def location(self) -> str:
        """Render the path, e.g. `address.streetName` or `(handler)[0]`."""
        rendered = ""
        for segment in self.path:
            if rendered and not segment.startswith("["):
                rendered += "."
            rendered += segment
        return rendered

    @property
    def property_name(self) -> Optional[str]:
        return self.path[-1] if self.path else None

    @property
    def message(self) -> str:
        if self.kind is DiagnosticKind.MISSING_REQUIRED_PROPERTY:
            text = (
                f"Property '{self.property_name}' is missing in type "
                f"'{_show(self.actual)}' but required in type '{_show(self.expected)}'."
            )
        elif self.kind is DiagnosticKind.INDEX_SIGNATURE_VIOLATION:
            text = (
                f"Property '{self.property_name}' of type '{_show(self.actual)}' is not "
                f"assignable to index signature type '{_show(self.expected)}'."
            )
        else:
            text = (
                f"Type '{_show(self.actual)}' is not assignable to type "
                f"'{_show(self.expected)}'."
            )
        if self.detail:
            text = f"{text} {self.detail}"
        if self.path and self.kind is DiagnosticKind.TYPE_MISMATCH:
            text = f"At '{self.location}': {text}"
        return text

    def __str__(self) -> str:
        return self.message


def _show(typ: Optional[Type]) -> str:
    return "<none>" if typ is None else format_type(typ)


@dataclass
class AssignabilityResult:
    """Result of an assignability check.

    Attributes:
        success: True if the source is assignable to the target
        mismatch: The first mismatch found, if the check failed
    """

    success: bool
    mismatch: Optional[Mismatch] = None

    @staticmethod
    def ok() -> AssignabilityResult:
        return AssignabilityResult(success=True)

    @staticmethod
    def fail(mismatch: Mismatch) -> AssignabilityResult:
        return AssignabilityResult(success=False, mismatch=mismatch)

    @property
    def reason(self) -> Optional[str]:
        return self.mismatch.message if self.mismatch is not None else None

    def __bool__(self) -> bool:
        return self.success


def _fail(
    target: Type,
    source: Type,
    detail: Optional[str] = None,
    kind: DiagnosticKind = DiagnosticKind.TYPE_MISMATCH,
) -> Mismatch:
    return Mismatch(kind=kind, expected=target, actual=source, detail=detail)


def _display_name(typ: Type) -> Optional[str]:
    # Object equality ignores display names; memo keys carry them separately
    return typ.name if isinstance(typ, ObjectType) else None


class AssignabilityChecker:
    """Memoized structural assignability over one environment.

    Results are cached on the ordered (source, target) pair together with
    the display names of object operands. A result that only holds under an
    assumption made for an enclosing pair is not cached until that enclosing
    pair is settled.

    Args:
        environment: Resolves alias references. Without one, references are
            only equal to themselves.
        config: Variance and memoization switches
    """

    def __init__(self, environment=None, config: CheckerConfig = DEFAULT_CONFIG):
        self._env = environment
        self._config = config
        self._cache: Dict[tuple, Optional[Mismatch]] = {}
        self._in_progress: Dict[tuple, int] = {}
        self._lowest_assumption = _NO_ASSUMPTION
        self.cache_hits = 0
        self.cache_misses = 0

    @property
    def environment(self):
        return self._env

    @property
    def config(self) -> CheckerConfig:
        return self._config

    def resolve(self, typ: Type) -> Type:
        """Unwrap alias references; returns the type unchanged otherwise."""
        if isinstance(typ, AliasRef) and self._env is not None:
            return self._env.unwrap(typ)
        return typ

    def is_assignable(self, source: Type, target: Type) -> bool:
        return self._check(source, target) is None

    def check(self, source: Type, target: Type) -> AssignabilityResult:
        """Check assignability and report the first mismatch on failure."""
        mismatch = self._check(source, target)
        if mismatch is None:
            return AssignabilityResult.ok()
        logger.debug(
            f"{format_type(source)} is not assignable to {format_type(target)}: "
            f"{mismatch.message}"
        )
        return AssignabilityResult.fail(mismatch)

    def equivalent(self, a: Type, b: Type) -> bool:
        """Mutual assignability."""
        return self.is_assignable(a, b) and self.is_assignable(b, a)

    def clear_cache(self) -> None:
        self._cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0

    # ------------------------------------------------------------------
    # Core relation
    # ------------------------------------------------------------------

    def _check(self, source: Type, target: Type) -> Optional[Mismatch]:
        source = self.resolve(source)
        target = self.resolve(target)

        if source == target or is_any(target) or is_never(source):
            return None
        if is_never(target):
            return _fail(target, source)
        if is_any(source):
            return None
        if target == VOID and source == UNDEFINED:
            return None
        if isinstance(source, (PrimitiveType, LiteralType)) and isinstance(
            target, (PrimitiveType, LiteralType)
        ):
            return self._check_scalar(source, target)

        key = (source, target, _display_name(source), _display_name(target))
        if self._config.memoize and key in self._cache:
            self.cache_hits += 1
            return self._cache[key]
        if key in self._in_progress:
            # Coinductive assumption for a pair further up the stack
            self._lowest_assumption = min(self._lowest_assumption, self._in_progress[key])
            return None

        self.cache_misses += 1
        depth = len(self._in_progress)
        outer_assumption = self._lowest_assumption
        self._lowest_assumption = _NO_ASSUMPTION
        self._in_progress[key] = depth
        try:
            result = self._check_structural(source, target)
        finally:
            del self._in_progress[key]

        relied_on_outer = self._lowest_assumption < depth
        if self._config.memoize and (result is not None or not relied_on_outer):
            self._cache[key] = result
        if relied_on_outer:
            self._lowest_assumption = min(outer_assumption, self._lowest_assumption)
        else:
            self._lowest_assumption = outer_assumption
        return result

    def _check_scalar(self, source: Type, target: Type) -> Optional[Mismatch]:
        if (
            isinstance(source, LiteralType)
            and isinstance(target, PrimitiveType)
            and target.kind is source.kind
        ):
            return None
        return _fail(target, source)

    def _check_structural(self, source: Type, target: Type) -> Optional[Mismatch]:
        if isinstance(source, UnionType):
            for member in source.ordered_members():
                mismatch = self._check(member, target)
                if mismatch is not None:
                    if mismatch.path:
                        return mismatch
                    return _fail(target, source, f"Member '{format_type(member)}' does not fit.")
            return None

        if isinstance(target, IntersectionType):
            for member in target.ordered_members():
                mismatch = self._check(source, member)
                if mismatch is not None:
                    return mismatch
            return None

        if isinstance(target, UnionType):
            for member in target.ordered_members():
                if self._check(source, member) is None:
                    return None
            return _fail(target, source)

        if isinstance(source, IntersectionType):
            if isinstance(target, ObjectType):
                shape = members.combined_object(source, self)
                if shape is not None:
                    mismatch = self._check(shape, target)
                    if mismatch is None:
                        return None
                    return replace(mismatch, actual=source) if not mismatch.path else mismatch
            for member in source.ordered_members():
                if self._check(member, target) is None:
                    return None
            return _fail(target, source)

        if isinstance(target, ArrayType):
            return self._check_array(source, target)

        if isinstance(target, TupleType):
            return self._check_tuple(source, target)

        if isinstance(target, ObjectType):
            if isinstance(source, ObjectType):
                return self._check_object(source, target)
            return _fail(target, source)

        if isinstance(target, FunctionType):
            if isinstance(source, FunctionType):
                return self._check_function(source, target)
            return _fail(target, source)

        if isinstance(target, ConstructorType):
            if isinstance(source, ConstructorType):
                mismatch = self._check_signature_sets(source.signatures, target.signatures)
                if mismatch is not None and not mismatch.path:
                    return _fail(target, source, mismatch.detail)
                return mismatch
            return _fail(target, source)

        return _fail(target, source)

    def _check_array(self, source: Type, target: ArrayType) -> Optional[Mismatch]:
        if isinstance(source, ArrayType):
            mismatch = self._check(source.element, target.element)
            return mismatch.within("[]") if mismatch is not None else None
        if isinstance(source, TupleType):
            for i, element in enumerate(source.elements):
                mismatch = self._check(element, target.element)
                if mismatch is not None:
                    return mismatch.within(f"[{i}]")
            return None
        return _fail(target, source)

    def _check_tuple(self, source: Type, target: TupleType) -> Optional[Mismatch]:
        if not isinstance(source, TupleType):
            return _fail(target, source)
        if len(source) != len(target):
            return _fail(
                target,
                source,
                f"Source has {len(source)} element(s) but target requires {len(target)}.",
            )
        for i, (src, tgt) in enumerate(zip(source.elements, target.elements)):
            mismatch = self._check(src, tgt)
            if mismatch is not None:
                return mismatch.within(f"[{i}]")
        return None

    def _check_object(self, source: ObjectType, target: ObjectType) -> Optional[Mismatch]:
        for prop in target.properties:
            found = source.get_property(prop.name)
            if found is None:
                if prop.optional:
                    continue
                return Mismatch(
                    DiagnosticKind.MISSING_REQUIRED_PROPERTY,
                    expected=target,
                    actual=source,
                    path=(prop.name,),
                )
            if found.optional and not prop.optional:
                return Mismatch(
                    DiagnosticKind.MISSING_REQUIRED_PROPERTY,
                    expected=target,
                    actual=source,
                    path=(prop.name,),
                    detail="It is optional in the source type.",
                )
            mismatch = self._check(found.type, prop.type)
            if mismatch is not None:
                return mismatch.within(prop.name)

        index = target.index_signature
        if index is not None:
            for prop in source.properties:
                if self._check(prop.type, index.value_type) is not None:
                    return Mismatch(
                        DiagnosticKind.INDEX_SIGNATURE_VIOLATION,
                        expected=index.value_type,
                        actual=prop.type,
                        path=(prop.name,),
                    )
            if source.index_signature is not None:
                if self._check(source.index_signature.value_type, index.value_type) is not None:
                    return Mismatch(
                        DiagnosticKind.INDEX_SIGNATURE_VIOLATION,
                        expected=index.value_type,
                        actual=source.index_signature.value_type,
                        path=("[key]",),
                    )
        return None

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _check_function(self, source: FunctionType, target: FunctionType) -> Optional[Mismatch]:
        if target.receiver is not None and source.receiver is not None:
            mismatch = self._check(target.receiver, source.receiver)
            if mismatch is not None:
                return mismatch.within("(this)")
        mismatch = self._check_signature_sets(source.signatures, target.signatures)
        if mismatch is not None and not mismatch.path:
            return _fail(target, source, mismatch.detail)
        return mismatch

    def _check_signature_sets(
        self, sources: Sequence[Signature], targets: Sequence[Signature]
    ) -> Optional[Mismatch]:
        for target_sig in targets:
            first: Optional[Mismatch] = None
            for source_sig in sources:
                mismatch = self._check_signature(source_sig, target_sig)
                if mismatch is None:
                    break
                if first is None:
                    first = mismatch
            else:
                return first
        return None

    def _check_signature(self, source: Signature, target: Signature) -> Optional[Mismatch]:
        target_positional = target.positional
        for i, param in enumerate(target_positional):
            accepted = _parameter_type_at(source, i, self)
            if accepted is None:
                # The source ignores this argument
                continue
            mismatch = self._check_parameter(param.type, accepted)
            if mismatch is not None:
                return mismatch.within(f"({param.name})")

        extra = source.positional[len(target_positional):]
        target_rest = target.rest_parameter
        if target_rest is not None:
            element = _element_of(target_rest.type, self)
            for param in extra:
                mismatch = self._check_parameter(element, param.type)
                if mismatch is not None:
                    return mismatch.within(f"({param.name})")
            if source.rest_parameter is not None:
                mismatch = self._check_parameter(target_rest.type, source.rest_parameter.type)
                if mismatch is not None:
                    return mismatch.within(f"({source.rest_parameter.name})")
        else:
            for param in extra:
                if not param.optional:
                    return Mismatch(
                        DiagnosticKind.TYPE_MISMATCH,
                        expected=None,
                        actual=None,
                        detail=(
                            f"Target provides {len(target_positional)} argument(s) but "
                            f"source requires parameter '{param.name}'."
                        ),
                    )

        mismatch = self._check(source.return_type, target.return_type)
        if mismatch is not None:
            return mismatch.within("(return)")
        return None

    def _check_parameter(self, target_param: Type, source_param: Type) -> Optional[Mismatch]:
        mismatch = self._check(target_param, source_param)
        if mismatch is None:
            return None
        if self._config.parameter_variance is ParameterVariance.BIVARIANT:
            if self._check(source_param, target_param) is None:
                return None
        return mismatch


def _parameter_type_at(sig: Signature, index: int, checker: AssignabilityChecker) -> Optional[Type]:
    """Type the signature accepts for the argument at `index`, None if it takes none."""
    positional = sig.positional
    if index < len(positional):
        return positional[index].type
    rest = sig.rest_parameter
    if rest is not None:
        return _element_of(rest.type, checker)
    return None


def _element_of(array: Type, checker: AssignabilityChecker) -> Type:
    resolved = checker.resolve(array)
    if isinstance(resolved, ArrayType):
        return resolved.element
    return ANY


def is_assignable(source: Type, target: Type, environment=None) -> bool:
    """One-off assignability check with a fresh checker."""
    return AssignabilityChecker(environment).is_assignable(source, target)


__all__ = [
    "AssignabilityChecker",
    "AssignabilityResult",
    "Mismatch",
    "is_assignable",
]
