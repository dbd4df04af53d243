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
"""Checking pass over a declaration/expression tree.

A pass owns one SymbolEnvironment, one assignability cache and one
DiagnosticCollector. It runs in three steps:

1. Registration: every type alias and interface is defined in the
   environment with a lazy producer, and function declarations are hoisted
   into the value scope.
2. Declarations are checked in order. Aliases are resolved (reporting
   cycles), value initializers are typed and checked against their
   annotations, and expression statements are typed.
3. Index signatures whose property types referenced other aliases are
   validated once every alias is bound.

Failures never stop the pass. A failing node gets `never` (or `any` for an
unresolved name) and checking continues, so every independent problem in a
program is reported.

Type expressions are built in one of two modes. In eager positions (the
top level of an alias body, union and intersection members, array and
tuple elements) names are resolved immediately, so an alias that reaches
itself through those positions is circular. Inside object members, function
signatures and interface bodies names become AliasRef cells resolved on
demand, which is what makes recursive object shapes legal.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, CheckerConfig
from .diagnostics.diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind
from .diagnostics.provenance import SourceSpan
from .tree import (
    ArrayLiteral,
    ArrayTypeExpr,
    BindingKind,
    CallExpr,
    ConstructorTypeExpr,
    Declaration,
    ExprStmt,
    Expression,
    FunctionDecl,
    FunctionTypeExpr,
    Identifier,
    IndexSig,
    InterfaceDecl,
    IntersectionTypeExpr,
    LiteralExpr,
    LiteralTypeExpr,
    NewExpr,
    Node,
    ObjectLiteral,
    ObjectTypeExpr,
    PrimitiveTypeExpr,
    Program,
    PropertyAccess,
    PropertySig,
    SignatureExpr,
    TupleTypeExpr,
    TypeAliasDecl,
    TypeExpr,
    TypeName,
    UnionTypeExpr,
    ValueDecl,
)
from .types.environment import EMPTY_SCOPE, SymbolEnvironment, ValueScope
from .types.format import format_type
from .types.members import property_type
from .types.model import (
    ANY,
    NEVER,
    NULL,
    PRIMITIVES,
    UNDEFINED,
    AliasRef,
    ArrayType,
    ConstructorType,
    FunctionType,
    IndexSignature,
    ObjectType,
    Parameter,
    Property,
    Signature,
    TupleType,
    Type,
    TypeDefinitionError,
    defers_index_check,
    intersection,
    is_any,
    is_never,
    literal,
    union,
    widen,
)
from .types.overloads import OverloadResolver, report_no_matching_overload
from .types.receiver import UNBOUND, ReceiverChecker
from .types.subsumption import AssignabilityChecker, Mismatch

logger = logging.getLogger(__name__)


# =============================================================================
# Type building
# =============================================================================


class TypeBuilder:
    """Turns type expressions into Type graphs against one environment."""

    def __init__(self, env: SymbolEnvironment, diagnostics: DiagnosticCollector):
        self._env = env
        self._diagnostics = diagnostics
        # Objects whose index signature could not be checked at construction
        self.pending_index_checks: List[Tuple[ObjectType, Optional[SourceSpan]]] = []

    def build(self, expr: TypeExpr, eager: bool = True, name: Optional[str] = None) -> Type:
        """Build the Type for a type expression.

        Args:
            expr: The type expression
            eager: Resolve names now rather than deferring them as AliasRefs
            name: Display name for a top-level object type
        """
        if isinstance(expr, TypeName):
            return self._reference(expr, eager)

        if isinstance(expr, PrimitiveTypeExpr):
            return PRIMITIVES[expr.kind]

        if isinstance(expr, LiteralTypeExpr):
            return self._guarded(lambda: literal(expr.value), expr.span)

        if isinstance(expr, ArrayTypeExpr):
            return ArrayType(self.build(expr.element, eager))

        if isinstance(expr, TupleTypeExpr):
            return TupleType(tuple(self.build(e, eager) for e in expr.elements))

        if isinstance(expr, UnionTypeExpr):
            return union(*(self.build(m, eager) for m in expr.members))

        if isinstance(expr, IntersectionTypeExpr):
            return intersection(*(self.build(m, eager) for m in expr.members))

        if isinstance(expr, ObjectTypeExpr):
            return self.build_object(expr.properties, expr.index_signature, name, expr.span)

        if isinstance(expr, FunctionTypeExpr):
            return self.build_function(expr.signatures, expr.receiver, expr.span)

        if isinstance(expr, ConstructorTypeExpr):
            signatures = self._signatures(expr.signatures)
            if signatures is None:
                return NEVER
            return ConstructorType(signatures)

        raise TypeError(f"not a type expression: {type(expr).__name__}")

    def build_object(
        self,
        props: Sequence[PropertySig],
        index: Optional[IndexSig],
        name: Optional[str] = None,
        location: Optional[SourceSpan] = None,
        inherited: Sequence[Property] = (),
    ) -> Type:
        properties: Dict[str, Property] = {p.name: p for p in inherited}
        own = set()
        for sig in props:
            if sig.name in own:
                self._diagnostics.report(
                    DiagnosticKind.TYPE_MISMATCH,
                    f"Duplicate identifier '{sig.name}'.",
                    location=sig.span or location,
                )
                continue
            own.add(sig.name)
            properties[sig.name] = Property(sig.name, self.build(sig.type, eager=False), sig.optional)

        index_signature = None
        if index is not None:
            index_signature = self._guarded(
                lambda: IndexSignature(index.key_kind, self.build(index.value_type, eager=False)),
                index.span or location,
            )
            if is_never(index_signature):
                index_signature = None

        try:
            obj = ObjectType(tuple(properties.values()), index_signature, name)
        except TypeDefinitionError as exc:
            self._diagnostics.report(
                DiagnosticKind.INDEX_SIGNATURE_VIOLATION,
                f"{exc.message[0].upper()}{exc.message[1:]}.",
                location=location,
                expected=index_signature.value_type if index_signature else None,
            )
            obj = ObjectType(tuple(properties.values()), None, name)

        if obj.index_signature is not None and (
            defers_index_check(obj.index_signature.value_type)
            or any(defers_index_check(p.type) for p in obj.properties)
        ):
            self.pending_index_checks.append((obj, location))
        return obj

    def build_function(
        self,
        signature_exprs: Sequence[SignatureExpr],
        receiver: Optional[TypeExpr],
        location: Optional[SourceSpan] = None,
    ) -> Type:
        signatures = self._signatures(signature_exprs)
        if signatures is None:
            return NEVER
        receiver_type = self.build(receiver, eager=False) if receiver is not None else None
        return FunctionType(signatures, receiver_type)

    def _signatures(self, exprs: Sequence[SignatureExpr]) -> Optional[Tuple[Signature, ...]]:
        signatures = []
        for sig in exprs:
            params = tuple(
                Parameter(p.name, self.build(p.type, eager=False), p.optional, p.rest)
                for p in sig.params
            )
            built = self._guarded(
                lambda: Signature(params, self.build(sig.return_type, eager=False)),
                sig.span,
            )
            if is_never(built):
                return None
            signatures.append(built)
        if not signatures:
            self._diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH, "A function type needs at least one signature."
            )
            return None
        return tuple(signatures)

    def _reference(self, expr: TypeName, eager: bool) -> Type:
        if eager or not self._env.is_defined(expr.name):
            return self._env.resolve(expr.name, expr.span)
        return AliasRef(expr.name)

    def _guarded(self, make, location: Optional[SourceSpan]):
        try:
            return make()
        except TypeDefinitionError as exc:
            self._diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH,
                f"{exc.message[0].upper()}{exc.message[1:]}.",
                location=location,
            )
            return NEVER


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class CheckResult:
    """Outcome of checking one program.

    Attributes:
        diagnostics: Every diagnostic, in report order
        value_types: Type bound to each value name
        alias_types: Resolved type of each alias and interface
    """

    diagnostics: Tuple[Diagnostic, ...]
    value_types: Mapping[str, Type]
    alias_types: Mapping[str, Type]
    node_types: Mapping[Node, Type] = field(default_factory=dict, repr=False)

    def type_of(self, node: Node) -> Optional[Type]:
        """The type the pass assigned to a tree node, if any."""
        return self.node_types.get(node)

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)

    def kinds(self) -> List[DiagnosticKind]:
        return [d.kind for d in self.diagnostics]

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def render(self) -> str:
        return "\n".join(d.render() for d in self.diagnostics)


# =============================================================================
# The pass
# =============================================================================


class CheckingPass:
    """One checking pass: fresh environment, cache and diagnostics."""

    def __init__(self, config: Optional[CheckerConfig] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.diagnostics = DiagnosticCollector()
        self.env = SymbolEnvironment(self.diagnostics)
        self.checker = AssignabilityChecker(self.env, self.config)
        self.overloads = OverloadResolver(self.checker)
        self.receivers = ReceiverChecker(self.checker)
        self.builder = TypeBuilder(self.env, self.diagnostics)
        self.scope: ValueScope = EMPTY_SCOPE
        self._node_types: Dict[Node, Type] = {}
        self._alias_types: Dict[str, Type] = {}
        self._pending_extensions: List[Tuple[InterfaceDecl, Type, Dict[str, Property]]] = []

    def run(self, program: Program) -> CheckResult:
        self._register(program.declarations)
        for decl in program.declarations:
            self.check_declaration(decl)
        self._check_deferred()
        logger.debug(
            f"Checked {len(program.declarations)} declaration(s): "
            f"{len(self.diagnostics)} diagnostic(s), "
            f"cache {self.checker.cache_hits} hit(s) / {self.checker.cache_misses} miss(es)"
        )
        return CheckResult(
            diagnostics=self.diagnostics.diagnostics,
            value_types=self.scope.all_bindings(),
            alias_types=dict(self._alias_types),
            node_types=dict(self._node_types),
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _register(self, declarations: Sequence[Declaration]) -> None:
        for decl in declarations:
            if isinstance(decl, TypeAliasDecl):
                self._define(decl.name, self._alias_producer(decl), decl.span)
            elif isinstance(decl, InterfaceDecl):
                self._define(decl.name, self._interface_producer(decl), decl.span)

        for decl in declarations:
            if isinstance(decl, FunctionDecl):
                fn = self.builder.build_function(decl.signatures, decl.receiver, decl.span)
                self._node_types[decl] = fn
                self._bind(decl.name, fn, decl.span)

    def _define(self, name: str, producer, location: Optional[SourceSpan]) -> None:
        try:
            self.env.define(name, producer, location)
        except TypeDefinitionError:
            self.diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH,
                f"Duplicate identifier '{name}'.",
                location=location,
            )

    def _alias_producer(self, decl: TypeAliasDecl):
        def produce() -> Type:
            return self.builder.build(decl.type, eager=True, name=decl.name)

        return produce

    def _interface_producer(self, decl: InterfaceDecl):
        def produce() -> Type:
            inherited: Dict[str, Property] = {}
            index = decl.index_signature
            base_index: Optional[IndexSignature] = None
            for base_ref in decl.extends:
                base = self.checker.resolve(self.env.resolve(base_ref.name, base_ref.span))
                if is_any(base) or is_never(base):
                    continue
                if not isinstance(base, ObjectType):
                    self.diagnostics.report(
                        DiagnosticKind.TYPE_MISMATCH,
                        f"An interface can only extend an object type; "
                        f"'{base_ref.name}' is '{format_type(base)}'.",
                        location=base_ref.span,
                    )
                    continue
                for prop in base.properties:
                    inherited.setdefault(prop.name, prop)
                if base.index_signature is not None and base_index is None:
                    base_index = base.index_signature

            built = self.builder.build_object(
                decl.properties,
                index,
                decl.name,
                decl.span,
                inherited=tuple(inherited.values()),
            )
            if index is None and base_index is not None and isinstance(built, ObjectType):
                built = self._with_index(built, base_index, decl.span)
            self._pending_extensions.append((decl, built, inherited))
            return built

        return produce

    def _with_index(
        self, obj: ObjectType, index: IndexSignature, location: Optional[SourceSpan]
    ) -> ObjectType:
        try:
            extended = ObjectType(obj.properties, index, obj.name)
        except TypeDefinitionError as exc:
            self.diagnostics.report(
                DiagnosticKind.INDEX_SIGNATURE_VIOLATION,
                f"{exc.message[0].upper()}{exc.message[1:]}.",
                location=location,
                expected=index.value_type,
            )
            return obj
        if defers_index_check(index.value_type) or any(
            defers_index_check(p.type) for p in extended.properties
        ):
            self.builder.pending_index_checks.append((extended, location))
        return extended

    def _check_extension(
        self, decl: InterfaceDecl, built: Type, inherited: Mapping[str, Property]
    ) -> None:
        if not isinstance(built, ObjectType):
            return
        for sig in decl.properties:
            base_prop = inherited.get(sig.name)
            own = built.get_property(sig.name)
            if base_prop is None or own is None or own is base_prop:
                continue
            result = self.checker.check(own.type, base_prop.type)
            if not result:
                self.diagnostics.report(
                    DiagnosticKind.TYPE_MISMATCH,
                    f"Interface '{decl.name}' incorrectly extends its base: property "
                    f"'{sig.name}' of type '{format_type(own.type)}' is not assignable "
                    f"to '{format_type(base_prop.type)}'.",
                    location=sig.span or decl.span,
                    expected=base_prop.type,
                    actual=own.type,
                )

    def _bind(self, name: str, typ: Type, location: Optional[SourceSpan]) -> None:
        if self.scope.contains(name):
            self.diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH,
                f"Cannot redeclare block-scoped variable '{name}'.",
                location=location,
            )
        self.scope = self.scope.bind(name, typ)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def check_declaration(self, decl: Declaration) -> None:
        if isinstance(decl, (TypeAliasDecl, InterfaceDecl)):
            resolved = self.env.resolve(decl.name, decl.span)
            self._alias_types.setdefault(decl.name, resolved)
            self._node_types[decl] = resolved
        elif isinstance(decl, FunctionDecl):
            pass
        elif isinstance(decl, ValueDecl):
            self._check_value(decl)
        elif isinstance(decl, ExprStmt):
            self._node_types[decl] = self.type_of(decl.expression)
        else:
            raise TypeError(f"not a declaration: {type(decl).__name__}")

    def _check_value(self, decl: ValueDecl) -> None:
        declared = self.builder.build(decl.annotation) if decl.annotation is not None else None

        if decl.initializer is None:
            bound = declared if declared is not None else ANY
        else:
            actual = self.type_of(decl.initializer)
            if declared is not None:
                result = self.checker.check(actual, declared)
                if not result:
                    self.report_mismatch(
                        result.mismatch, actual, declared, decl.initializer.span or decl.span
                    )
                bound = declared
            elif decl.kind is BindingKind.LET and self.config.widen_let_literals:
                bound = widen(actual)
            else:
                bound = actual

        self._node_types[decl] = bound
        self._bind(decl.name, bound, decl.span)

    def report_mismatch(
        self,
        mismatch: Mismatch,
        source: Type,
        target: Type,
        location: Optional[SourceSpan],
    ) -> Diagnostic:
        """Report an assignability failure using the kind from its mismatch trail."""
        notes: Tuple[str, ...] = ()
        expected, actual = target, source
        if mismatch.kind is DiagnosticKind.TYPE_MISMATCH:
            message = (
                f"Type '{format_type(source)}' is not assignable to type "
                f"'{format_type(target)}'."
            )
            if mismatch.path or mismatch.detail:
                notes = (mismatch.message,)
        else:
            message = mismatch.message
            expected, actual = mismatch.expected, mismatch.actual
            if len(mismatch.path) > 1:
                notes = (f"at '{mismatch.location}'",)
        return self.diagnostics.report(
            mismatch.kind,
            message,
            location=location,
            expected=expected,
            actual=actual,
            notes=notes,
        )

    def _check_deferred(self) -> None:
        for decl, built, inherited in self._pending_extensions:
            self._check_extension(decl, built, inherited)
        for obj, location in self.builder.pending_index_checks:
            index = obj.index_signature
            for prop in obj.properties:
                if not (defers_index_check(prop.type) or defers_index_check(index.value_type)):
                    continue
                if not self.checker.is_assignable(prop.type, index.value_type):
                    self.diagnostics.report(
                        DiagnosticKind.INDEX_SIGNATURE_VIOLATION,
                        f"Property '{prop.name}' of type '{format_type(prop.type)}' is not "
                        f"assignable to index signature type '{format_type(index.value_type)}'.",
                        location=location,
                        expected=index.value_type,
                        actual=prop.type,
                    )

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def type_of(self, expr: Expression) -> Type:
        """Synthesize and record the type of an expression."""
        typ = self._synthesize(expr)
        self._node_types[expr] = typ
        return typ

    def _synthesize(self, expr: Expression) -> Type:
        if isinstance(expr, LiteralExpr):
            if expr.value is None:
                return NULL
            return literal(expr.value)

        if isinstance(expr, Identifier):
            found = self.scope.lookup(expr.name)
            if found is not None:
                return found
            if expr.name == "undefined":
                return UNDEFINED
            self.diagnostics.report(
                DiagnosticKind.UNRESOLVED_REFERENCE,
                f"Cannot find name '{expr.name}'.",
                location=expr.span,
            )
            return ANY

        if isinstance(expr, ObjectLiteral):
            props: Dict[str, Property] = {}
            for assignment in expr.properties:
                value = widen(self.type_of(assignment.value))
                if assignment.name in props:
                    self.diagnostics.report(
                        DiagnosticKind.TYPE_MISMATCH,
                        "An object literal cannot have multiple properties "
                        f"with the same name '{assignment.name}'.",
                        location=assignment.span or expr.span,
                    )
                props[assignment.name] = Property(assignment.name, value)
            return ObjectType(tuple(props.values()))

        if isinstance(expr, ArrayLiteral):
            return TupleType(tuple(widen(self.type_of(e)) for e in expr.elements))

        if isinstance(expr, PropertyAccess):
            owner = self.type_of(expr.object)
            found = property_type(owner, expr.name, self.checker)
            if found is None:
                self.diagnostics.report(
                    DiagnosticKind.TYPE_MISMATCH,
                    f"Property '{expr.name}' does not exist on type '{format_type(owner)}'.",
                    location=expr.span,
                    actual=owner,
                )
                return NEVER
            return found

        if isinstance(expr, CallExpr):
            return self._check_call(expr)

        if isinstance(expr, NewExpr):
            return self._check_new(expr)

        raise TypeError(f"not an expression: {type(expr).__name__}")

    def _check_call(self, expr: CallExpr) -> Type:
        callee_type = self.type_of(expr.callee)
        if expr.receiver is not None:
            bound = self.type_of(expr.receiver)
        elif isinstance(expr.callee, PropertyAccess):
            bound = self._node_types[expr.callee.object]
        else:
            bound = UNBOUND
        args = [self.type_of(a) for a in expr.args]

        fn = self.checker.resolve(callee_type)
        if is_any(fn):
            return ANY
        if is_never(fn):
            return NEVER
        if not isinstance(fn, FunctionType):
            self.diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH,
                f"This expression is not callable. Type '{format_type(fn)}' has no call signatures.",
                location=expr.callee.span or expr.span,
                actual=fn,
            )
            return NEVER

        violation = self.receivers.check_invocation(fn, bound)
        if violation is not None:
            self.diagnostics.report(
                DiagnosticKind.THIS_CONTEXT_UNSATISFIED,
                violation.message,
                location=expr.span,
                expected=violation.required,
                actual=None if bound is UNBOUND else bound,
                notes=(violation.mismatch.message,) if violation.mismatch is not None else (),
            )

        return self._resolve(fn.signatures, args, expr, _callee_name(expr.callee), fn.receiver)

    def _check_new(self, expr: NewExpr) -> Type:
        callee_type = self.type_of(expr.callee)
        args = [self.type_of(a) for a in expr.args]
        ctor = self.checker.resolve(callee_type)
        if is_any(ctor):
            return ANY
        if is_never(ctor):
            return NEVER
        if not isinstance(ctor, ConstructorType):
            self.diagnostics.report(
                DiagnosticKind.TYPE_MISMATCH,
                f"This expression is not constructable. Type '{format_type(ctor)}' "
                "has no construct signatures.",
                location=expr.callee.span or expr.span,
                actual=ctor,
            )
            return NEVER
        return self._resolve(ctor.signatures, args, expr, _callee_name(expr.callee))

    def _resolve(
        self,
        signatures: Sequence[Signature],
        args: Sequence[Type],
        expr,
        callee: str,
        receiver: Optional[Type] = None,
    ) -> Type:
        resolution = self.overloads.resolve_call(signatures, args)
        if resolution.matched:
            return resolution.return_type

        report_no_matching_overload(self.diagnostics, callee, resolution, args, expr.span, receiver)
        return NEVER


def _callee_name(expr: Expression) -> str:
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, PropertyAccess):
        return f"{_callee_name(expr.object)}.{expr.name}"
    return "<expression>"


# =============================================================================
# Entry points
# =============================================================================


def check_program(program: Program, config: Optional[CheckerConfig] = None) -> CheckResult:
    """Check one program with a fresh pass."""
    return CheckingPass(config).run(program)


def check_programs(
    programs: Sequence[Program],
    config: Optional[CheckerConfig] = None,
    max_workers: Optional[int] = None,
) -> List[CheckResult]:
    """Check independent programs concurrently.

    Each program gets its own pass (environment, cache, diagnostics), so
    workers share nothing but the read-only config.

    Returns:
        One CheckResult per program, in input order
    """
    config = config if config is not None else DEFAULT_CONFIG
    workers = max_workers if max_workers is not None else config.max_workers
    results: List[Optional[CheckResult]] = [None] * len(programs)
    if not programs:
        return []

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(check_program, program, config): i
            for i, program in enumerate(programs)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    logger.debug(f"Checked {len(programs)} program(s) with max_workers={workers}")
    return results
