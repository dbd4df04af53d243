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
"""Type representation for the structural type checker.

This module defines the closed set of type shapes the checker understands:

- Primitive types: string, number, boolean, undefined, null, void
- Special types: any (escape hatch) and never (bottom)
- Literal types: 'hello', 42, true
- Array types: T[]
- Tuple types: [T, U, V] (length is part of the type)
- Object types: { key: Type, key?: Type, [key: string]: Type }
- Union/Intersection types: A | B, A & B
- Function types with ordered overload signatures and an optional receiver
- Constructor types: new (x: T) => R
- Alias references: named indirection cells resolved through the
  SymbolEnvironment, which is what makes self-referencing shapes possible

Every node is an immutable, hashable frozen dataclass. Nodes are built once
while declarations are processed and then shared read-only by every check.
Equality is structural.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)


class TypeDefinitionError(Exception):
    """A type or environment definition is malformed.

    Raised while *building* the type graph (duplicate property names, a union
    with fewer than two members, an index signature its own properties
    violate, ...). Problems found while *checking* a program are reported as
    diagnostics instead.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Base
# =============================================================================


class Type(ABC):
    """Abstract base class for all types.

    Subclasses are frozen dataclasses, so __eq__ and __hash__ are structural
    and generated automatically.
    """

    def children(self) -> Tuple["Type", ...]:
        """Return the types directly nested in this one."""
        return ()


# =============================================================================
# Primitive types
# =============================================================================


class PrimitiveKind(Enum):
    """The primitive type kinds, including the `any` and `never` extremes."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    UNDEFINED = "undefined"
    NULL = "null"
    ANY = "any"
    NEVER = "never"
    VOID = "void"


LITERAL_KINDS: FrozenSet[PrimitiveKind] = frozenset(
    {PrimitiveKind.STRING, PrimitiveKind.NUMBER, PrimitiveKind.BOOLEAN}
)


@dataclass(frozen=True, slots=True)
class PrimitiveType(Type):
    """A primitive type.

    Attributes:
        kind: Which primitive this is
    """

    kind: PrimitiveKind

    def __repr__(self) -> str:
        return self.kind.value


STRING = PrimitiveType(PrimitiveKind.STRING)
NUMBER = PrimitiveType(PrimitiveKind.NUMBER)
BOOLEAN = PrimitiveType(PrimitiveKind.BOOLEAN)
UNDEFINED = PrimitiveType(PrimitiveKind.UNDEFINED)
NULL = PrimitiveType(PrimitiveKind.NULL)
ANY = PrimitiveType(PrimitiveKind.ANY)
NEVER = PrimitiveType(PrimitiveKind.NEVER)
VOID = PrimitiveType(PrimitiveKind.VOID)

PRIMITIVES: Dict[PrimitiveKind, PrimitiveType] = {
    p.kind: p for p in (STRING, NUMBER, BOOLEAN, UNDEFINED, NULL, ANY, NEVER, VOID)
}


def is_any(t: Type) -> bool:
    return isinstance(t, PrimitiveType) and t.kind is PrimitiveKind.ANY


def is_never(t: Type) -> bool:
    return isinstance(t, PrimitiveType) and t.kind is PrimitiveKind.NEVER


# =============================================================================
# Literal types
# =============================================================================

LiteralValue = Union[str, int, float, bool]


@dataclass(frozen=True, slots=True)
class LiteralType(Type):
    """A literal type: exactly one value of a string, number or boolean kind.

    A literal is a subtype of its base primitive, never the other way round.

    Attributes:
        kind: The base primitive kind
        value: The single value this type admits
    """

    kind: PrimitiveKind
    value: LiteralValue

    def __post_init__(self) -> None:
        if self.kind not in LITERAL_KINDS:
            raise TypeDefinitionError(
                f"literal types must be string, number or boolean, not {self.kind.value}"
            )
        if self.kind is PrimitiveKind.BOOLEAN:
            valid = isinstance(self.value, bool)
        elif self.kind is PrimitiveKind.NUMBER:
            valid = isinstance(self.value, (int, float)) and not isinstance(self.value, bool)
        else:
            valid = isinstance(self.value, str)
        if not valid:
            raise TypeDefinitionError(
                f"value {self.value!r} is not a {self.kind.value} literal"
            )

    @property
    def base(self) -> PrimitiveType:
        """The primitive this literal widens to."""
        return PRIMITIVES[self.kind]

    def __repr__(self) -> str:
        if self.kind is PrimitiveKind.STRING:
            return f'"{self.value}"'
        if self.kind is PrimitiveKind.BOOLEAN:
            return "true" if self.value else "false"
        return repr(self.value)


def literal(value: LiteralValue) -> LiteralType:
    """Create a literal type, inferring the kind from the Python value."""
    if isinstance(value, bool):
        return LiteralType(PrimitiveKind.BOOLEAN, value)
    if isinstance(value, (int, float)):
        return LiteralType(PrimitiveKind.NUMBER, value)
    if isinstance(value, str):
        return LiteralType(PrimitiveKind.STRING, value)
    raise TypeDefinitionError(f"cannot make a literal type from {value!r}")


# =============================================================================
# Arrays and tuples
# =============================================================================


@dataclass(frozen=True, slots=True)
class ArrayType(Type):
    """A homogeneous array type: T[]."""

    element: Type

    def children(self) -> Tuple[Type, ...]:
        return (self.element,)

    def __repr__(self) -> str:
        if isinstance(self.element, (UnionType, IntersectionType, FunctionType, ConstructorType)):
            return f"({self.element!r})[]"
        return f"{self.element!r}[]"


@dataclass(frozen=True, slots=True)
class TupleType(Type):
    """A fixed-length tuple type: [T, U, V].

    Tuples of different lengths are never mutually assignable.
    """

    elements: Tuple[Type, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))

    def children(self) -> Tuple[Type, ...]:
        return self.elements

    def __len__(self) -> int:
        return len(self.elements)

    def __repr__(self) -> str:
        return "[" + ", ".join(repr(e) for e in self.elements) + "]"


# =============================================================================
# Object types
# =============================================================================


@dataclass(frozen=True, slots=True)
class Property:
    """A named object property.

    Attributes:
        name: Property name
        type: Property value type
        optional: True for `name?: T`
    """

    name: str
    type: Type
    optional: bool = False

    def __repr__(self) -> str:
        mark = "?" if self.optional else ""
        return f"{self.name}{mark}: {self.type!r}"


@dataclass(frozen=True, slots=True)
class IndexSignature:
    """An index signature: `[key: string]: T`.

    Attributes:
        key_kind: string or number
        value_type: Type every property value must be assignable to
    """

    key_kind: PrimitiveKind
    value_type: Type

    def __post_init__(self) -> None:
        if self.key_kind not in (PrimitiveKind.STRING, PrimitiveKind.NUMBER):
            raise TypeDefinitionError(
                f"index signature keys must be string or number, not {self.key_kind.value}"
            )

    def __repr__(self) -> str:
        return f"[key: {self.key_kind.value}]: {self.value_type!r}"


@dataclass(frozen=True, slots=True)
class ObjectType(Type):
    """A structural object type: { key: Type, key?: Type, [key: string]: Type }.

    Property order does not affect typing; it is kept so messages are stable.

    Attributes:
        properties: The declared properties (names unique)
        index_signature: Optional index signature constraining every property
        name: Display name (interface or alias name); not part of identity
    """

    properties: Tuple[Property, ...] = ()
    index_signature: Optional[IndexSignature] = None
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", tuple(self.properties))
        seen = set()
        for prop in self.properties:
            if prop.name in seen:
                raise TypeDefinitionError(f"duplicate property '{prop.name}'")
            seen.add(prop.name)
        if self.index_signature is not None:
            self._validate_index_signature()

    def _validate_index_signature(self) -> None:
        # Alias-referencing and callable types are validated by the checking
        # pass, once aliases are bound and under the pass configuration.
        from .subsumption import AssignabilityChecker

        value_type = self.index_signature.value_type
        if defers_index_check(value_type):
            return
        checker = AssignabilityChecker(environment=None)
        for prop in self.properties:
            if defers_index_check(prop.type):
                continue
            if not checker.is_assignable(prop.type, value_type):
                raise TypeDefinitionError(
                    f"property '{prop.name}' of type {prop.type!r} is not assignable "
                    f"to index signature type {value_type!r}"
                )

    def children(self) -> Tuple[Type, ...]:
        nested = tuple(p.type for p in self.properties)
        if self.index_signature is not None:
            nested += (self.index_signature.value_type,)
        return nested

    def get_property(self, name: str) -> Optional[Property]:
        """Look up a declared property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def property_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.properties)

    def __contains__(self, name: str) -> bool:
        return self.get_property(name) is not None

    def __repr__(self) -> str:
        parts = [repr(p) for p in self.properties]
        if self.index_signature is not None:
            parts.append(repr(self.index_signature))
        if not parts:
            return "{}"
        return "{ " + "; ".join(parts) + " }"


def object_type(
    properties: Mapping[str, Type],
    optional: Iterable[str] = (),
    index_signature: Optional[IndexSignature] = None,
    name: Optional[str] = None,
) -> ObjectType:
    """Convenience constructor from a name -> type mapping.

    Example:
        >>> object_type({"houseNumber": NUMBER, "streetName": STRING},
        ...             optional={"streetName"})
    """
    optional_names = frozenset(optional)
    unknown = optional_names - set(properties)
    if unknown:
        raise TypeDefinitionError(
            f"optional names not among properties: {', '.join(sorted(unknown))}"
        )
    props = tuple(
        Property(prop_name, prop_type, prop_name in optional_names)
        for prop_name, prop_type in properties.items()
    )
    return ObjectType(props, index_signature, name)


# =============================================================================
# Unions and intersections
# =============================================================================


def _ordered(members: Iterable[Type]) -> List[Type]:
    # Sort for deterministic iteration and messages
    return sorted(members, key=repr)


@dataclass(frozen=True)
class UnionType(Type):
    """A union of at least two distinct types (A | B | ...).

    Use union() to build one from arbitrary inputs; it flattens, dedupes and
    collapses singletons.
    """

    members: FrozenSet[Type]

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", frozenset(self.members))
        if len(self.members) < 2:
            raise TypeDefinitionError("a union needs at least two distinct members")

    def children(self) -> Tuple[Type, ...]:
        return tuple(self.ordered_members())

    def ordered_members(self) -> List[Type]:
        return _ordered(self.members)

    def __repr__(self) -> str:
        return " | ".join(repr(m) for m in self.ordered_members())

    def __hash__(self) -> int:
        return hash(("union", self.members))


@dataclass(frozen=True)
class IntersectionType(Type):
    """An intersection of at least two distinct types (A & B & ...)."""

    members: FrozenSet[Type]

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", frozenset(self.members))
        if len(self.members) < 2:
            raise TypeDefinitionError(
                "an intersection needs at least two distinct members"
            )

    def children(self) -> Tuple[Type, ...]:
        return tuple(self.ordered_members())

    def ordered_members(self) -> List[Type]:
        return _ordered(self.members)

    def __repr__(self) -> str:
        return " & ".join(repr(m) for m in self.ordered_members())

    def __hash__(self) -> int:
        return hash(("intersection", self.members))


def _unique(types: Iterable[Type]) -> List[Type]:
    result: List[Type] = []
    for t in types:
        if t not in result:
            result.append(t)
    return result


def union(*types: Type) -> Type:
    """Build a union, normalizing the members.

    - nested unions are flattened
    - `never` members are dropped, `any` absorbs everything
    - literals whose base primitive is also present are dropped
    - zero members gives `never`, one member gives that member
    """
    flat: List[Type] = []
    for t in types:
        if isinstance(t, UnionType):
            flat.extend(t.ordered_members())
        else:
            flat.append(t)
    if any(is_any(t) for t in flat):
        return ANY
    members = _unique(t for t in flat if not is_never(t))
    members = [
        t
        for t in members
        if not (isinstance(t, LiteralType) and t.base in members)
    ]
    if not members:
        return NEVER
    if len(members) == 1:
        return members[0]
    return UnionType(frozenset(members))


_DISJOINT_PRIMITIVES = frozenset(
    {
        PrimitiveKind.STRING,
        PrimitiveKind.NUMBER,
        PrimitiveKind.BOOLEAN,
        PrimitiveKind.UNDEFINED,
        PrimitiveKind.NULL,
        PrimitiveKind.VOID,
    }
)


def intersection(*types: Type) -> Type:
    """Build an intersection, normalizing the members.

    - nested intersections are flattened
    - `never` absorbs everything, as does `any`
    - two different primitive kinds (string & number, "a" & number) give `never`
    - two different literals give `never`; a literal absorbs its base primitive
    - zero members gives `any`, one member gives that member
    """
    flat: List[Type] = []
    for t in types:
        if isinstance(t, IntersectionType):
            flat.extend(t.ordered_members())
        else:
            flat.append(t)
    if any(is_never(t) for t in flat):
        return NEVER
    if any(is_any(t) for t in flat):
        return ANY
    members = _unique(flat)
    primitive_kinds = {
        t.kind
        for t in members
        if isinstance(t, (PrimitiveType, LiteralType)) and t.kind in _DISJOINT_PRIMITIVES
    }
    literals = [t for t in members if isinstance(t, LiteralType)]
    if len(primitive_kinds) > 1 or len(literals) > 1:
        return NEVER
    if literals:
        members = [t for t in members if t != literals[0].base]
    if not members:
        return ANY
    if len(members) == 1:
        return members[0]
    return IntersectionType(frozenset(members))


# =============================================================================
# Functions and constructors
# =============================================================================


@dataclass(frozen=True, slots=True)
class Parameter:
    """A call signature parameter.

    A rest parameter (`...name: T[]`) must come last; its type is the array
    type the trailing arguments are collected into.

    Attributes:
        name: Parameter name (for messages only)
        type: Declared type
        optional: True for `name?: T`
        rest: True for `...name: T[]`
    """

    name: str
    type: Type
    optional: bool = False
    rest: bool = False

    def __repr__(self) -> str:
        if self.rest:
            return f"...{self.name}: {self.type!r}"
        mark = "?" if self.optional else ""
        return f"{self.name}{mark}: {self.type!r}"


@dataclass(frozen=True, slots=True)
class Signature:
    """One call signature: ordered parameters and a return type."""

    parameters: Tuple[Parameter, ...]
    return_type: Type

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        seen_optional = False
        for i, param in enumerate(self.parameters):
            if param.rest:
                if i != len(self.parameters) - 1:
                    raise TypeDefinitionError(
                        f"rest parameter '{param.name}' must be last"
                    )
                if param.optional:
                    raise TypeDefinitionError(
                        f"rest parameter '{param.name}' cannot be optional"
                    )
            elif param.optional:
                seen_optional = True
            elif seen_optional:
                raise TypeDefinitionError(
                    f"required parameter '{param.name}' follows an optional one"
                )

    @property
    def rest_parameter(self) -> Optional[Parameter]:
        if self.parameters and self.parameters[-1].rest:
            return self.parameters[-1]
        return None

    @property
    def positional(self) -> Tuple[Parameter, ...]:
        """Parameters other than the rest parameter."""
        if self.rest_parameter is not None:
            return self.parameters[:-1]
        return self.parameters

    @property
    def min_arity(self) -> int:
        return sum(1 for p in self.positional if not p.optional)

    @property
    def max_arity(self) -> Optional[int]:
        """Maximum argument count, or None when a rest parameter is present."""
        if self.rest_parameter is not None:
            return None
        return len(self.parameters)

    def children(self) -> Tuple[Type, ...]:
        return tuple(p.type for p in self.parameters) + (self.return_type,)

    def render(self, receiver: Optional[Type] = None) -> str:
        params = [repr(p) for p in self.parameters]
        if receiver is not None:
            params.insert(0, f"this: {receiver!r}")
        return f"({', '.join(params)}) => {self.return_type!r}"

    def __repr__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True)
class FunctionType(Type):
    """A function type with one or more ordered call signatures.

    Several signatures model overloads; the first matching one wins. The
    optional receiver is the declared `this` type the function requires.

    Attributes:
        signatures: Ordered call signatures (at least one)
        receiver: Declared receiver type, if any
    """

    signatures: Tuple[Signature, ...]
    receiver: Optional[Type] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "signatures", tuple(self.signatures))
        if not self.signatures:
            raise TypeDefinitionError("a function type needs at least one signature")

    @property
    def params(self) -> Tuple[Type, ...]:
        """Parameter types of the first signature."""
        return tuple(p.type for p in self.signatures[0].parameters)

    @property
    def return_type(self) -> Type:
        return self.signatures[0].return_type

    @property
    def is_overloaded(self) -> bool:
        return len(self.signatures) > 1

    def children(self) -> Tuple[Type, ...]:
        nested: Tuple[Type, ...] = ()
        if self.receiver is not None:
            nested += (self.receiver,)
        for sig in self.signatures:
            nested += sig.children()
        return nested

    def __repr__(self) -> str:
        return " / ".join(s.render(self.receiver) for s in self.signatures)


@dataclass(frozen=True, slots=True)
class ConstructorType(Type):
    """A constructor type: new (x: T) => R, possibly overloaded."""

    signatures: Tuple[Signature, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "signatures", tuple(self.signatures))
        if not self.signatures:
            raise TypeDefinitionError(
                "a constructor type needs at least one signature"
            )

    @property
    def params(self) -> Tuple[Type, ...]:
        return tuple(p.type for p in self.signatures[0].parameters)

    @property
    def result_type(self) -> Type:
        return self.signatures[0].return_type

    def children(self) -> Tuple[Type, ...]:
        nested: Tuple[Type, ...] = ()
        for sig in self.signatures:
            nested += sig.children()
        return nested

    def __repr__(self) -> str:
        return " / ".join(f"new {s!r}" for s in self.signatures)


def function_type(
    params: Iterable[Union[Type, Parameter]],
    return_type: Type,
    receiver: Optional[Type] = None,
) -> FunctionType:
    """Build a single-signature function type.

    Bare types in `params` become required parameters named p0, p1, ...
    """
    return FunctionType((signature(params, return_type),), receiver)


def signature(params: Iterable[Union[Type, Parameter]], return_type: Type) -> Signature:
    parameters = []
    for i, p in enumerate(params):
        parameters.append(p if isinstance(p, Parameter) else Parameter(f"p{i}", p))
    return Signature(tuple(parameters), return_type)


# =============================================================================
# Alias references
# =============================================================================


@dataclass(frozen=True, slots=True)
class AliasRef(Type):
    """A reference to a named alias or interface.

    The reference only carries the name; the SymbolEnvironment owns the cell
    it resolves to. A shape that refers to
    itself does so by name, never by object identity.
    """

    name: str

    def __repr__(self) -> str:
        return self.name


# =============================================================================
# Utilities
# =============================================================================


def walk(t: Type) -> Iterator[Type]:
    """Yield t and every type nested in it (AliasRefs are not followed)."""
    stack = [t]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


def defers_index_check(t: Type) -> bool:
    """True if an index-signature check involving `t` waits for the checking pass.

    That holds for types that reference aliases and for function or
    constructor types, whose parameter variance is a pass setting.
    """
    return any(
        isinstance(node, (AliasRef, FunctionType, ConstructorType)) for node in walk(t)
    )


def widen(t: Type) -> Type:
    """Widen literal types to their base primitive (recursing into unions)."""
    if isinstance(t, LiteralType):
        return t.base
    if isinstance(t, UnionType):
        return union(*(widen(m) for m in t.ordered_members()))
    return t
