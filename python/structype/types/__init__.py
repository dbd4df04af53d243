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
"""Structural types and the relations over them.

Key Components:
- model: Type hierarchy, factories and TypeDefinitionError
- format: TypeScript-like rendering for messages
- environment: Named alias cells with cycle detection, value scopes
- subsumption: Memoized structural assignability
- members: Property access on objects, unions and intersections
- overloads: First-match overload resolution
- receiver: `this` checking at call sites
"""

from .environment import EMPTY_SCOPE, ResolutionState, SymbolEnvironment, ValueScope
from .format import format_signature, format_type
from .members import accessible_properties, combined_object, property_type
from .model import (
    # Primitive singletons
    ANY,
    BOOLEAN,
    NEVER,
    NULL,
    NUMBER,
    STRING,
    UNDEFINED,
    VOID,
    # Type hierarchy
    AliasRef,
    ArrayType,
    ConstructorType,
    FunctionType,
    IndexSignature,
    IntersectionType,
    LiteralType,
    ObjectType,
    Parameter,
    PrimitiveKind,
    PrimitiveType,
    Property,
    Signature,
    TupleType,
    Type,
    TypeDefinitionError,
    UnionType,
    # Factories
    function_type,
    intersection,
    literal,
    object_type,
    signature,
    union,
    widen,
)
from .overloads import OverloadResolution, OverloadResolver, Rejection
from .receiver import UNBOUND, ReceiverChecker, ReceiverViolation
from .subsumption import AssignabilityChecker, AssignabilityResult, Mismatch, is_assignable

__all__ = [
    # Primitive singletons
    "ANY",
    "BOOLEAN",
    "NEVER",
    "NULL",
    "NUMBER",
    "STRING",
    "UNDEFINED",
    "VOID",
    # Type hierarchy
    "AliasRef",
    "ArrayType",
    "ConstructorType",
    "FunctionType",
    "IndexSignature",
    "IntersectionType",
    "LiteralType",
    "ObjectType",
    "Parameter",
    "PrimitiveKind",
    "PrimitiveType",
    "Property",
    "Signature",
    "TupleType",
    "Type",
    "TypeDefinitionError",
    "UnionType",
    # Factories
    "function_type",
    "intersection",
    "literal",
    "object_type",
    "signature",
    "union",
    "widen",
    # Rendering
    "format_signature",
    "format_type",
    # Environment
    "EMPTY_SCOPE",
    "ResolutionState",
    "SymbolEnvironment",
    "ValueScope",
    # Relations
    "AssignabilityChecker",
    "AssignabilityResult",
    "Mismatch",
    "is_assignable",
    "accessible_properties",
    "combined_object",
    "property_type",
    "OverloadResolution",
    "OverloadResolver",
    "Rejection",
    "UNBOUND",
    "ReceiverChecker",
    "ReceiverViolation",
]
