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
"""Render types in TypeScript-like syntax for diagnostics.

Rendering is deterministic: union and intersection members are sorted, so
two passes over the same graph produce byte-identical messages.
"""

from __future__ import annotations

from .model import (
    AliasRef,
    ArrayType,
    ConstructorType,
    FunctionType,
    IntersectionType,
    LiteralType,
    ObjectType,
    Parameter,
    PrimitiveKind,
    PrimitiveType,
    Signature,
    TupleType,
    Type,
    UnionType,
)


def format_type(typ: Type, expand: bool = False) -> str:
    """Format a type as TypeScript syntax.

    Args:
        typ: The type to render
        expand: Render named object types structurally instead of by name

    Returns:
        The rendered type
    """
    if isinstance(typ, PrimitiveType):
        return typ.kind.value

    if isinstance(typ, LiteralType):
        if typ.kind is PrimitiveKind.STRING:
            return f'"{typ.value}"'
        if typ.kind is PrimitiveKind.BOOLEAN:
            return "true" if typ.value else "false"
        return repr(typ.value)

    if isinstance(typ, AliasRef):
        return typ.name

    if isinstance(typ, ArrayType):
        elem_str = format_type(typ.element)
        # Wrap complex types in parens
        if isinstance(typ.element, (UnionType, IntersectionType, FunctionType, ConstructorType)):
            elem_str = f"({elem_str})"
        return f"{elem_str}[]"

    if isinstance(typ, TupleType):
        return "[" + ", ".join(format_type(e) for e in typ.elements) + "]"

    if isinstance(typ, ObjectType):
        if typ.name and not expand:
            return typ.name
        parts = []
        for prop in typ.properties:
            opt = "?" if prop.optional else ""
            parts.append(f"{prop.name}{opt}: {format_type(prop.type)}")
        if typ.index_signature is not None:
            sig = typ.index_signature
            parts.append(f"[key: {sig.key_kind.value}]: {format_type(sig.value_type)}")
        if not parts:
            return "{}"
        return "{ " + "; ".join(parts) + " }"

    if isinstance(typ, FunctionType):
        if len(typ.signatures) == 1:
            return format_signature(typ.signatures[0], receiver=typ.receiver)
        return "{ " + "; ".join(
            format_signature(sig, receiver=typ.receiver, arrow=False)
            for sig in typ.signatures
        ) + " }"

    if isinstance(typ, ConstructorType):
        if len(typ.signatures) == 1:
            return "new " + format_signature(typ.signatures[0])
        return "{ " + "; ".join(
            "new " + format_signature(sig, arrow=False) for sig in typ.signatures
        ) + " }"

    if isinstance(typ, UnionType):
        return " | ".join(_member(m) for m in _sorted(typ))

    if isinstance(typ, IntersectionType):
        return " & ".join(_member(m) for m in _sorted(typ))

    return repr(typ)


def format_parameter(param: Parameter) -> str:
    if param.rest:
        return f"...{param.name}: {format_type(param.type)}"
    opt = "?" if param.optional else ""
    return f"{param.name}{opt}: {format_type(param.type)}"


def format_signature(
    sig: Signature, receiver: Type | None = None, arrow: bool = True
) -> str:
    """Format one call signature.

    Arrow form `(a: T) => R` is used for standalone function types, member
    form `(a: T): R` inside an overload list.
    """
    params = [format_parameter(p) for p in sig.parameters]
    if receiver is not None:
        params.insert(0, f"this: {format_type(receiver)}")
    separator = " => " if arrow else ": "
    return f"({', '.join(params)}){separator}{format_type(sig.return_type)}"


def _sorted(typ: UnionType | IntersectionType) -> list:
    return sorted(typ.members, key=format_type)


def _member(typ: Type) -> str:
    rendered = format_type(typ)
    if isinstance(typ, (UnionType, IntersectionType, FunctionType, ConstructorType)):
        return f"({rendered})"
    return rendered
