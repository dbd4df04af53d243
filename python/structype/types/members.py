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
"""Member access on object, union and intersection types.

- Object: its declared properties; other names fall back to the index
  signature value type.
- Union: only properties every member has, each typed as the union of the
  members' property types. A value of unknown variant only safely offers
  what all variants offer.
- Intersection: properties of any member. When several members declare the
  same name the narrower type wins, two object shapes are intersected, and
  otherwise incompatible declarations collapse to `never`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from .model import (
    ANY,
    NEVER,
    UNDEFINED,
    IndexSignature,
    IntersectionType,
    ObjectType,
    Property,
    Type,
    UnionType,
    intersection,
    is_any,
    is_never,
    union,
)

if TYPE_CHECKING:
    from .subsumption import AssignabilityChecker


def accessible_properties(
    typ: Type, checker: "AssignabilityChecker"
) -> Optional[Dict[str, Property]]:
    """Return the properties accessible on a type, keyed by name.

    Returns:
        An ordered name -> Property mapping, or None for types without a
        property surface (primitives, arrays, functions, ...)
    """
    resolved = checker.resolve(typ)

    if isinstance(resolved, ObjectType):
        return {p.name: p for p in resolved.properties}

    if isinstance(resolved, UnionType):
        per_member = [accessible_properties(m, checker) for m in resolved.ordered_members()]
        if any(props is None for props in per_member):
            return {}
        first = per_member[0]
        common: Dict[str, Property] = {}
        for name in first:
            if not all(name in props for props in per_member):
                continue
            members = [props[name] for props in per_member]
            common[name] = Property(
                name,
                union(*(p.type for p in members)),
                optional=any(p.optional for p in members),
            )
        return common

    if isinstance(resolved, IntersectionType):
        merged: Dict[str, Property] = {}
        found = False
        for member in resolved.ordered_members():
            props = accessible_properties(member, checker)
            if props is None:
                continue
            found = True
            for name, prop in props.items():
                if name in merged:
                    merged[name] = _combine(merged[name], prop, checker)
                else:
                    merged[name] = prop
        return merged if found else None

    return None


def property_type(
    typ: Type, name: str, checker: "AssignabilityChecker"
) -> Optional[Type]:
    """Type of reading `name` from a value of type `typ`.

    Optional properties read as `T | undefined`.

    Returns:
        The property type, or None if the property is not accessible
    """
    resolved = checker.resolve(typ)
    if is_any(resolved):
        return ANY
    if is_never(resolved):
        return NEVER

    props = accessible_properties(resolved, checker)
    if props is not None and name in props:
        prop = props[name]
        return union(prop.type, UNDEFINED) if prop.optional else prop.type

    index = index_signature_of(resolved, checker)
    if index is not None:
        return index.value_type
    return None


def index_signature_of(
    typ: Type, checker: "AssignabilityChecker"
) -> Optional[IndexSignature]:
    """The index signature of an object, or the single one among intersection members."""
    resolved = checker.resolve(typ)
    if isinstance(resolved, ObjectType):
        return resolved.index_signature
    if isinstance(resolved, IntersectionType):
        found = [
            sig
            for sig in (index_signature_of(m, checker) for m in resolved.ordered_members())
            if sig is not None
        ]
        if len(found) == 1:
            return found[0]
    return None


def combined_object(
    typ: IntersectionType, checker: "AssignabilityChecker"
) -> Optional[ObjectType]:
    """Flatten an intersection of object-like members into one object shape.

    Returns:
        The combined shape, or None if no member contributes properties
    """
    props = accessible_properties(typ, checker)
    if props is None:
        return None
    index = index_signature_of(typ, checker)
    if index is not None and not all(
        checker.is_assignable(p.type, index.value_type) for p in props.values()
    ):
        index = None
    return ObjectType(tuple(props.values()), index)


def _combine(a: Property, b: Property, checker: "AssignabilityChecker") -> Property:
    if checker.is_assignable(a.type, b.type):
        combined = a.type
    elif checker.is_assignable(b.type, a.type):
        combined = b.type
    elif _object_like(a.type, checker) and _object_like(b.type, checker):
        combined = intersection(a.type, b.type)
    else:
        combined = NEVER
    return Property(a.name, combined, optional=a.optional and b.optional)


def _object_like(typ: Type, checker: "AssignabilityChecker") -> bool:
    return isinstance(checker.resolve(typ), (ObjectType, IntersectionType))
