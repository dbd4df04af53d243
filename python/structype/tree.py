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
"""Declaration and expression tree consumed by the checking pass.

The tree is produced by an external front end; nothing here parses text.
Nodes are plain mutable dataclasses compared and hashed by identity, so the
pass can attach a type to each node without the nodes knowing about it.
Every node carries an optional SourceSpan used in diagnostics.

Example:
    >>> program = Program([
    ...     TypeAliasDecl("Address", ObjectTypeExpr([
    ...         PropertySig("houseNumber", PrimitiveTypeExpr(PrimitiveKind.NUMBER)),
    ...         PropertySig("streetName", PrimitiveTypeExpr(PrimitiveKind.STRING), optional=True),
    ...     ])),
    ...     ValueDecl("home", BindingKind.CONST, annotation=TypeName("Address"),
    ...               initializer=ObjectLiteral([PropertyAssignment("houseNumber", LiteralExpr(33))])),
    ... ])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .diagnostics.provenance import SourceSpan
from .types.model import LiteralValue, PrimitiveKind


@dataclass(eq=False)
class Node:
    """Base class for all tree nodes."""

    span: Optional[SourceSpan] = field(default=None, kw_only=True)


# =============================================================================
# Type expressions
# =============================================================================


@dataclass(eq=False)
class TypeExpr(Node):
    pass


@dataclass(eq=False)
class TypeName(TypeExpr):
    """A reference to a type alias or interface by name."""

    name: str


@dataclass(eq=False)
class PrimitiveTypeExpr(TypeExpr):
    kind: PrimitiveKind


@dataclass(eq=False)
class LiteralTypeExpr(TypeExpr):
    value: LiteralValue


@dataclass(eq=False)
class ArrayTypeExpr(TypeExpr):
    element: TypeExpr


@dataclass(eq=False)
class TupleTypeExpr(TypeExpr):
    elements: List[TypeExpr] = field(default_factory=list)


@dataclass(eq=False)
class PropertySig(Node):
    name: str
    type: TypeExpr
    optional: bool = False


@dataclass(eq=False)
class IndexSig(Node):
    key_kind: PrimitiveKind
    value_type: TypeExpr


@dataclass(eq=False)
class ObjectTypeExpr(TypeExpr):
    properties: List[PropertySig] = field(default_factory=list)
    index_signature: Optional[IndexSig] = None


@dataclass(eq=False)
class UnionTypeExpr(TypeExpr):
    members: List[TypeExpr]


@dataclass(eq=False)
class IntersectionTypeExpr(TypeExpr):
    members: List[TypeExpr]


@dataclass(eq=False)
class ParamExpr(Node):
    """A parameter; a rest parameter's type is the array type it collects into."""

    name: str
    type: TypeExpr
    optional: bool = False
    rest: bool = False


@dataclass(eq=False)
class SignatureExpr(Node):
    params: List[ParamExpr]
    return_type: TypeExpr


@dataclass(eq=False)
class FunctionTypeExpr(TypeExpr):
    """A function type, possibly overloaded, with an optional `this` type."""

    signatures: List[SignatureExpr]
    receiver: Optional[TypeExpr] = None


@dataclass(eq=False)
class ConstructorTypeExpr(TypeExpr):
    signatures: List[SignatureExpr]


# =============================================================================
# Expressions
# =============================================================================


@dataclass(eq=False)
class Expression(Node):
    pass


@dataclass(eq=False)
class LiteralExpr(Expression):
    """A literal value; None stands for `null`."""

    value: Optional[LiteralValue]


@dataclass(eq=False)
class Identifier(Expression):
    name: str


@dataclass(eq=False)
class PropertyAssignment(Node):
    name: str
    value: Expression


@dataclass(eq=False)
class ObjectLiteral(Expression):
    properties: List[PropertyAssignment] = field(default_factory=list)


@dataclass(eq=False)
class ArrayLiteral(Expression):
    elements: List[Expression] = field(default_factory=list)


@dataclass(eq=False)
class PropertyAccess(Expression):
    object: Expression
    name: str


@dataclass(eq=False)
class CallExpr(Expression):
    """A call.

    With `receiver` set the call binds that value as `this` (as `fn.call(obj)`
    would). Otherwise a PropertyAccess callee binds its object, and any other
    callee is invoked unbound.
    """

    callee: Expression
    args: List[Expression] = field(default_factory=list)
    receiver: Optional[Expression] = None


@dataclass(eq=False)
class NewExpr(Expression):
    callee: Expression
    args: List[Expression] = field(default_factory=list)


# =============================================================================
# Declarations
# =============================================================================


class BindingKind(Enum):
    LET = "let"
    CONST = "const"


@dataclass(eq=False)
class Declaration(Node):
    pass


@dataclass(eq=False)
class TypeAliasDecl(Declaration):
    name: str
    type: TypeExpr


@dataclass(eq=False)
class InterfaceDecl(Declaration):
    name: str
    properties: List[PropertySig] = field(default_factory=list)
    index_signature: Optional[IndexSig] = None
    extends: List[TypeName] = field(default_factory=list)


@dataclass(eq=False)
class ValueDecl(Declaration):
    """`let`/`const` binding. Without an initializer it only declares the name."""

    name: str
    kind: BindingKind = BindingKind.CONST
    annotation: Optional[TypeExpr] = None
    initializer: Optional[Expression] = None


@dataclass(eq=False)
class FunctionDecl(Declaration):
    """A function declared by its ordered overload signatures."""

    name: str
    signatures: List[SignatureExpr]
    receiver: Optional[TypeExpr] = None


@dataclass(eq=False)
class ExprStmt(Declaration):
    expression: Expression


@dataclass(eq=False)
class Program(Node):
    declarations: List[Declaration] = field(default_factory=list)

