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
"""End-to-end tests for the checking pass.

Programs are built directly as trees; each test mirrors a small
TypeScript snippet given in its docstring.
"""

import pytest

from structype import (
    CheckerConfig,
    CheckingPass,
    DiagnosticKind,
    ParameterVariance,
    SourceSpan,
    check_program,
    check_programs,
)
from structype.tree import (
    ArrayLiteral,
    ArrayTypeExpr,
    BindingKind,
    CallExpr,
    ConstructorTypeExpr,
    ExprStmt,
    FunctionDecl,
    FunctionTypeExpr,
    Identifier,
    IndexSig,
    InterfaceDecl,
    IntersectionTypeExpr,
    LiteralExpr,
    LiteralTypeExpr,
    NewExpr,
    ObjectLiteral,
    ObjectTypeExpr,
    ParamExpr,
    PrimitiveTypeExpr,
    Program,
    PropertyAccess,
    PropertyAssignment,
    PropertySig,
    SignatureExpr,
    TupleTypeExpr,
    TypeAliasDecl,
    TypeName,
    UnionTypeExpr,
    ValueDecl,
)
from structype.types import (
    NEVER,
    NUMBER,
    STRING,
    UNDEFINED,
    VOID,
    AliasRef,
    ObjectType,
    literal,
    union,
)
from structype.types.model import PrimitiveKind


def string_t():
    return PrimitiveTypeExpr(PrimitiveKind.STRING)


def number_t():
    return PrimitiveTypeExpr(PrimitiveKind.NUMBER)


def void_t():
    return PrimitiveTypeExpr(PrimitiveKind.VOID)


def at(line):
    return SourceSpan(line * 100, line * 100 + 10, "contacts.ts", line, 1)


def obj(**fields):
    return ObjectLiteral([PropertyAssignment(k, LiteralExpr(v)) for k, v in fields.items()])


def contact_interfaces():
    return [
        InterfaceDecl(
            "HasEmail",
            [PropertySig("name", string_t()), PropertySig("email", string_t())],
        ),
        InterfaceDecl(
            "HasPhoneNumber",
            [PropertySig("name", string_t()), PropertySig("phone", number_t())],
        ),
    ]


def contact_people_decl():
    """function contactPeople(method: "email", ...people: HasEmail[]): void;
    function contactPeople(method: "phone", ...people: HasPhoneNumber[]): void;"""
    return FunctionDecl(
        "contactPeople",
        [
            SignatureExpr(
                [
                    ParamExpr("method", LiteralTypeExpr("email")),
                    ParamExpr("people", ArrayTypeExpr(TypeName("HasEmail")), rest=True),
                ],
                void_t(),
            ),
            SignatureExpr(
                [
                    ParamExpr("method", LiteralTypeExpr("phone")),
                    ParamExpr("people", ArrayTypeExpr(TypeName("HasPhoneNumber")), rest=True),
                ],
                void_t(),
            ),
        ],
    )


def send_message_decl():
    """function sendMessage(this: HasEmail & HasPhoneNumber, preferredMethod: "phone" | "email"): void"""
    return FunctionDecl(
        "sendMessage",
        [
            SignatureExpr(
                [
                    ParamExpr(
                        "preferredMethod",
                        UnionTypeExpr([LiteralTypeExpr("phone"), LiteralTypeExpr("email")]),
                    )
                ],
                void_t(),
            )
        ],
        receiver=IntersectionTypeExpr([TypeName("HasEmail"), TypeName("HasPhoneNumber")]),
    )


class TestLiteralsAndWidening:
    def test_primitive_to_literal_mismatch(self):
        """let num = 6; const six: 6 = num;"""
        init = Identifier("num", span=at(2))
        result = check_program(
            Program(
                [
                    ValueDecl("num", BindingKind.LET, initializer=LiteralExpr(6)),
                    ValueDecl("six", BindingKind.CONST, LiteralTypeExpr(6), init, span=at(2)),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        diagnostic = result.diagnostics[0]
        assert diagnostic.message == "Type 'number' is not assignable to type '6'."
        assert diagnostic.location == at(2)
        assert diagnostic.expected == literal(6)
        assert diagnostic.actual == NUMBER

    def test_let_widens_const_keeps(self):
        """let a = 6; const b = 6;"""
        result = check_program(
            Program(
                [
                    ValueDecl("a", BindingKind.LET, initializer=LiteralExpr(6)),
                    ValueDecl("b", BindingKind.CONST, initializer=LiteralExpr(6)),
                ]
            )
        )
        assert not result.has_errors
        assert result.value_types["a"] == NUMBER
        assert result.value_types["b"] == literal(6)

    def test_let_widening_can_be_disabled(self):
        program = Program([ValueDecl("a", BindingKind.LET, initializer=LiteralExpr(6))])
        result = check_program(program, CheckerConfig(widen_let_literals=False))
        assert result.value_types["a"] == literal(6)

    def test_literal_to_annotated_primitive(self):
        """const n: number = 6;"""
        result = check_program(
            Program([ValueDecl("n", BindingKind.CONST, number_t(), LiteralExpr(6))])
        )
        assert not result.has_errors
        assert result.value_types["n"] == NUMBER


class TestArraysAndTuples:
    def test_array_literal_to_number_array(self):
        """const xs: number[] = [32, 31];"""
        literal_node = ArrayLiteral([LiteralExpr(32), LiteralExpr(31)])
        result = check_program(
            Program([ValueDecl("xs", BindingKind.CONST, ArrayTypeExpr(number_t()), literal_node)])
        )
        assert not result.has_errors
        assert repr(result.type_of(literal_node)) == "[number, number]"

    def test_tuple_length_mismatch(self):
        """const pair: [number, number] = [4, 5]; const quad: [number, number, number, number] = pair;"""
        result = check_program(
            Program(
                [
                    ValueDecl(
                        "pair",
                        BindingKind.CONST,
                        TupleTypeExpr([number_t(), number_t()]),
                        ArrayLiteral([LiteralExpr(4), LiteralExpr(5)]),
                    ),
                    ValueDecl(
                        "quad",
                        BindingKind.CONST,
                        TupleTypeExpr([number_t()] * 4),
                        Identifier("pair"),
                    ),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert "2 element(s)" in result.diagnostics[0].notes[0]


class TestObjects:
    def address_alias(self):
        return TypeAliasDecl(
            "Address",
            ObjectTypeExpr(
                [
                    PropertySig("houseNumber", number_t()),
                    PropertySig("streetName", string_t(), optional=True),
                ]
            ),
        )

    def test_optional_property(self):
        """const home: Address = { houseNumber: 33 }; home.streetName;"""
        access = PropertyAccess(Identifier("home"), "streetName")
        result = check_program(
            Program(
                [
                    self.address_alias(),
                    ValueDecl("home", BindingKind.CONST, TypeName("Address"), obj(houseNumber=33)),
                    ExprStmt(access),
                ]
            )
        )
        assert not result.has_errors
        assert result.type_of(access) == union(STRING, UNDEFINED)
        assert isinstance(result.alias_types["Address"], ObjectType)

    def test_missing_required_property(self):
        """const bad: Address = { streetName: "Main" };"""
        result = check_program(
            Program(
                [
                    self.address_alias(),
                    ValueDecl("bad", BindingKind.CONST, TypeName("Address"), obj(streetName="Main")),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.MISSING_REQUIRED_PROPERTY]
        assert result.diagnostics[0].message == (
            "Property 'houseNumber' is missing in type '{ streetName: string }' "
            "but required in type 'Address'."
        )

    def test_unknown_property_access(self):
        access = PropertyAccess(Identifier("home"), "zip", span=at(3))
        result = check_program(
            Program(
                [
                    self.address_alias(),
                    ValueDecl("home", BindingKind.CONST, TypeName("Address"), obj(houseNumber=1)),
                    ExprStmt(access),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert result.diagnostics[0].message == "Property 'zip' does not exist on type 'Address'."
        assert result.type_of(access) == NEVER

    def test_index_signature(self):
        """interface PhoneNumberDict { [numberName: string]: undefined | { areaCode: number; num: number } }"""
        entry = ObjectTypeExpr([PropertySig("areaCode", number_t()), PropertySig("num", number_t())])
        value = UnionTypeExpr([PrimitiveTypeExpr(PrimitiveKind.UNDEFINED), entry])
        office = ObjectLiteral(
            [PropertyAssignment("office", obj(areaCode=321, num=5551212))]
        )
        bad = ObjectLiteral([PropertyAssignment("office", LiteralExpr("none"))])
        result = check_program(
            Program(
                [
                    InterfaceDecl(
                        "PhoneNumberDict",
                        index_signature=IndexSig(PrimitiveKind.STRING, value),
                    ),
                    ValueDecl("ok", BindingKind.CONST, TypeName("PhoneNumberDict"), office),
                    ValueDecl("bad", BindingKind.CONST, TypeName("PhoneNumberDict"), bad),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.INDEX_SIGNATURE_VIOLATION]
        assert "'office'" in result.diagnostics[0].message

    def test_malformed_index_signature(self):
        """interface Bad { [k: string]: number; name: string }"""
        result = check_program(
            Program(
                [
                    InterfaceDecl(
                        "Bad",
                        [PropertySig("name", string_t())],
                        IndexSig(PrimitiveKind.STRING, number_t()),
                        span=at(1),
                    )
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.INDEX_SIGNATURE_VIOLATION]
        assert result.diagnostics[0].location == at(1)
        assert result.alias_types["Bad"].index_signature is None

    def test_index_signature_checked_after_resolution(self):
        """interface Dict { [k: string]: number; label: Label }  type Label = string"""
        result = check_program(
            Program(
                [
                    InterfaceDecl(
                        "Dict",
                        [PropertySig("label", TypeName("Label"))],
                        IndexSig(PrimitiveKind.STRING, number_t()),
                    ),
                    TypeAliasDecl("Label", string_t()),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.INDEX_SIGNATURE_VIOLATION]
        assert "'label'" in result.diagnostics[0].message

    @pytest.mark.parametrize(
        "variance, kinds",
        [
            (ParameterVariance.CONTRAVARIANT, [DiagnosticKind.INDEX_SIGNATURE_VIOLATION]),
            (ParameterVariance.BIVARIANT, []),
        ],
    )
    def test_callable_index_signature_uses_pass_variance(self, variance, kinds):
        """interface Handlers { [event: string]: (x: string) => void; onLetter: (x: "a") => void }"""
        handler = FunctionTypeExpr([SignatureExpr([ParamExpr("x", string_t())], void_t())])
        on_letter = FunctionTypeExpr(
            [SignatureExpr([ParamExpr("x", LiteralTypeExpr("a"))], void_t())]
        )
        program = Program(
            [
                InterfaceDecl(
                    "Handlers",
                    [PropertySig("onLetter", on_letter)],
                    IndexSig(PrimitiveKind.STRING, handler),
                )
            ]
        )
        result = check_program(program, CheckerConfig(parameter_variance=variance))
        assert result.kinds() == kinds
        assert result.alias_types["Handlers"].index_signature is not None

    def test_recursive_object_alias(self):
        """type Tree = { value: number; children: Tree[] }"""
        tree = TypeAliasDecl(
            "Tree",
            ObjectTypeExpr(
                [
                    PropertySig("value", number_t()),
                    PropertySig("children", ArrayTypeExpr(TypeName("Tree"))),
                ]
            ),
        )
        leaf = ObjectLiteral(
            [
                PropertyAssignment("value", LiteralExpr(2)),
                PropertyAssignment("children", ArrayLiteral()),
            ]
        )
        root = ObjectLiteral(
            [
                PropertyAssignment("value", LiteralExpr(1)),
                PropertyAssignment("children", ArrayLiteral([leaf])),
            ]
        )
        result = check_program(Program([tree, ValueDecl("t", BindingKind.CONST, TypeName("Tree"), root)]))
        assert not result.has_errors
        assert result.value_types["t"].name == "Tree"

    def test_same_shape_interfaces_reported_by_name(self):
        """interface HasX { x: number }  interface Point { x: number }
        const a: HasX = { y: 1 }; const b: Point = { y: 1 };"""
        result = check_program(
            Program(
                [
                    InterfaceDecl("HasX", [PropertySig("x", number_t())]),
                    InterfaceDecl("Point", [PropertySig("x", number_t())]),
                    ValueDecl("a", BindingKind.CONST, TypeName("HasX"), obj(y=1)),
                    ValueDecl("b", BindingKind.CONST, TypeName("Point"), obj(y=1)),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.MISSING_REQUIRED_PROPERTY] * 2
        first, second = result.diagnostics
        assert first.message.endswith("required in type 'HasX'.")
        assert second.message == (
            "Property 'x' is missing in type '{ y: number }' but required in type 'Point'."
        )
        assert second.expected.name == "Point"

    def test_interface_extends(self):
        """interface Named { name: string }  interface Emailable extends Named { email: string }"""
        result = check_program(
            Program(
                [
                    InterfaceDecl("Named", [PropertySig("name", string_t())]),
                    InterfaceDecl(
                        "Emailable",
                        [PropertySig("email", string_t())],
                        extends=[TypeName("Named")],
                    ),
                    ValueDecl("e", BindingKind.CONST, TypeName("Emailable"), obj(email="a@b.c")),
                ]
            )
        )
        assert result.alias_types["Emailable"].property_names() == ("name", "email")
        assert result.kinds() == [DiagnosticKind.MISSING_REQUIRED_PROPERTY]

    def test_interface_incorrectly_extends(self):
        result = check_program(
            Program(
                [
                    InterfaceDecl("Named", [PropertySig("name", string_t())]),
                    InterfaceDecl(
                        "Numbered",
                        [PropertySig("name", number_t())],
                        extends=[TypeName("Named")],
                    ),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert "incorrectly extends" in result.diagnostics[0].message


class TestUnionsAndIntersections:
    def program(self, annotation, name):
        return Program(
            contact_interfaces()
            + [ValueDecl("c", BindingKind.CONST, annotation), ExprStmt(PropertyAccess(Identifier("c"), name))]
        )

    def test_union_common_member(self):
        either = UnionTypeExpr([TypeName("HasEmail"), TypeName("HasPhoneNumber")])
        result = check_program(self.program(either, "name"))
        assert not result.has_errors

    def test_union_non_common_member(self):
        either = UnionTypeExpr([TypeName("HasEmail"), TypeName("HasPhoneNumber")])
        result = check_program(self.program(either, "email"))
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert result.diagnostics[0].message == (
            "Property 'email' does not exist on type 'HasEmail | HasPhoneNumber'."
        )

    @pytest.mark.parametrize("name", ["name", "email", "phone"])
    def test_intersection_any_member(self, name):
        both = IntersectionTypeExpr([TypeName("HasEmail"), TypeName("HasPhoneNumber")])
        assert not check_program(self.program(both, name)).has_errors


class TestAliases:
    def test_circular_alias_reported_once(self):
        """type NumVal = 1 | NumArr; type NumArr = NumVal[];"""
        result = check_program(
            Program(
                [
                    TypeAliasDecl(
                        "NumVal",
                        UnionTypeExpr([LiteralTypeExpr(1), TypeName("NumArr")]),
                        span=at(1),
                    ),
                    TypeAliasDecl("NumArr", ArrayTypeExpr(TypeName("NumVal")), span=at(2)),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.CIRCULAR_ALIAS]
        assert "NumVal" in result.diagnostics[0].message
        assert result.diagnostics[0].location == at(1)
        assert result.alias_types["NumVal"] == NEVER

    def test_self_array_alias(self):
        """type A = A[]"""
        result = check_program(Program([TypeAliasDecl("A", ArrayTypeExpr(TypeName("A")))]))
        assert result.kinds() == [DiagnosticKind.CIRCULAR_ALIAS]

    def test_unresolved_type_name(self):
        result = check_program(
            Program([ValueDecl("x", BindingKind.CONST, TypeName("Missing"), LiteralExpr(1))])
        )
        assert result.kinds() == [DiagnosticKind.UNRESOLVED_REFERENCE]

    def test_unresolved_value_name(self):
        result = check_program(Program([ExprStmt(Identifier("nowhere"))]))
        assert result.kinds() == [DiagnosticKind.UNRESOLVED_REFERENCE]
        assert result.diagnostics[0].message == "Cannot find name 'nowhere'."

    def test_duplicate_alias(self):
        result = check_program(
            Program([TypeAliasDecl("A", string_t()), TypeAliasDecl("A", number_t())])
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert result.alias_types["A"] == STRING


class TestCalls:
    def test_overload_email_selected(self):
        """contactPeople("email", { name: "foo", email: "" })"""
        call = CallExpr(
            Identifier("contactPeople"), [LiteralExpr("email"), obj(name="foo", email="")]
        )
        result = check_program(Program(contact_interfaces() + [contact_people_decl(), ExprStmt(call)]))
        assert not result.has_errors
        assert result.type_of(call) == VOID

    def test_no_matching_overload(self):
        """contactPeople("email", { name: "foo", phone: 12345678 })"""
        call = CallExpr(
            Identifier("contactPeople"),
            [LiteralExpr("email"), obj(name="foo", phone=12345678)],
            span=at(9),
        )
        result = check_program(Program(contact_interfaces() + [contact_people_decl(), ExprStmt(call)]))
        assert result.kinds() == [DiagnosticKind.NO_MATCHING_OVERLOAD]
        diagnostic = result.diagnostics[0]
        assert diagnostic.location == at(9)
        assert len(diagnostic.notes) == 2
        assert result.type_of(call) == NEVER

    def test_single_signature_argument_mismatch(self):
        """function greet(name: string): void; greet(5);"""
        arg = LiteralExpr(5)
        result = check_program(
            Program(
                [
                    FunctionDecl("greet", [SignatureExpr([ParamExpr("name", string_t())], void_t())]),
                    ExprStmt(CallExpr(Identifier("greet"), [arg], span=at(4))),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.NO_MATCHING_OVERLOAD]
        diagnostic = result.diagnostics[0]
        assert diagnostic.location == at(4)
        assert diagnostic.message == "No overload of 'greet' matches this call with arguments (5)."
        assert diagnostic.notes == (
            "overload 1 (name: string) => void: argument 1 for parameter 'name': "
            "Type '5' is not assignable to type 'string'.",
        )

    def test_arity_mismatch(self):
        result = check_program(
            Program(
                [
                    FunctionDecl("greet", [SignatureExpr([ParamExpr("name", string_t())], void_t())]),
                    ExprStmt(CallExpr(Identifier("greet"))),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.NO_MATCHING_OVERLOAD]
        assert "expected 1 argument(s), got 0" in result.diagnostics[0].notes[0]

    def test_not_callable(self):
        result = check_program(
            Program(
                [
                    ValueDecl("n", BindingKind.CONST, initializer=LiteralExpr(1)),
                    ExprStmt(CallExpr(Identifier("n"))),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]
        assert "not callable" in result.diagnostics[0].message

    def test_new_expression(self):
        """declare const Contact: new (name: string) => HasEmail; new Contact("x"); new Contact(5);"""
        ctor = ConstructorTypeExpr([SignatureExpr([ParamExpr("name", string_t())], TypeName("HasEmail"))])
        good = NewExpr(Identifier("Contact"), [LiteralExpr("x")])
        bad = NewExpr(Identifier("Contact"), [LiteralExpr(5)])
        result = check_program(
            Program(
                contact_interfaces()
                + [
                    ValueDecl("Contact", BindingKind.CONST, ctor),
                    ExprStmt(good),
                    ExprStmt(bad),
                ]
            )
        )
        assert result.type_of(good) == AliasRef("HasEmail")
        assert result.kinds() == [DiagnosticKind.NO_MATCHING_OVERLOAD]

    def test_new_requires_constructor(self):
        result = check_program(
            Program(
                [
                    ValueDecl("n", BindingKind.CONST, initializer=LiteralExpr(1)),
                    ExprStmt(NewExpr(Identifier("n"))),
                ]
            )
        )
        assert "not constructable" in result.diagnostics[0].message


class TestReceivers:
    def contact_value(self):
        return ValueDecl(
            "c",
            BindingKind.CONST,
            initializer=obj(name="Mike", phone=3215551212, email="mike@example.com"),
        )

    def test_unbound_call_fails(self):
        """sendMessage("email")"""
        call = CallExpr(Identifier("sendMessage"), [LiteralExpr("email")], span=at(7))
        result = check_program(Program(contact_interfaces() + [send_message_decl(), ExprStmt(call)]))
        assert result.kinds() == [DiagnosticKind.THIS_CONTEXT_UNSATISFIED]
        assert result.diagnostics[0].location == at(7)

    def test_explicit_receiver_succeeds(self):
        """sendMessage.call(c, "email")"""
        call = CallExpr(Identifier("sendMessage"), [LiteralExpr("email")], receiver=Identifier("c"))
        result = check_program(
            Program(contact_interfaces() + [send_message_decl(), self.contact_value(), ExprStmt(call)])
        )
        assert not result.has_errors
        assert result.type_of(call) == VOID

    def test_method_call_binds_object(self):
        """const holder = { send: sendMessage }; holder.send("email")"""
        holder = ValueDecl(
            "holder",
            BindingKind.CONST,
            initializer=ObjectLiteral([PropertyAssignment("send", Identifier("sendMessage"))]),
        )
        call = CallExpr(PropertyAccess(Identifier("holder"), "send"), [LiteralExpr("email")])
        result = check_program(Program(contact_interfaces() + [send_message_decl(), holder, ExprStmt(call)]))
        assert result.kinds() == [DiagnosticKind.THIS_CONTEXT_UNSATISFIED]
        assert result.diagnostics[0].notes

    def test_bad_argument_and_receiver_both_reported(self):
        call = CallExpr(Identifier("sendMessage"), [LiteralExpr("fax")])
        result = check_program(Program(contact_interfaces() + [send_message_decl(), ExprStmt(call)]))
        assert result.kinds() == [
            DiagnosticKind.THIS_CONTEXT_UNSATISFIED,
            DiagnosticKind.NO_MATCHING_OVERLOAD,
        ]


class TestPass:
    def error_program(self):
        return Program(
            contact_interfaces()
            + [
                contact_people_decl(),
                send_message_decl(),
                TypeAliasDecl("A", ArrayTypeExpr(TypeName("A"))),
                ValueDecl("x", BindingKind.CONST, TypeName("Missing")),
                ExprStmt(CallExpr(Identifier("sendMessage"), [LiteralExpr("email")])),
                ExprStmt(
                    CallExpr(
                        Identifier("contactPeople"),
                        [LiteralExpr("email"), obj(name="foo", phone=1)],
                    )
                ),
            ]
        )

    def test_all_errors_reported(self):
        result = check_program(self.error_program())
        assert result.kinds() == [
            DiagnosticKind.CIRCULAR_ALIAS,
            DiagnosticKind.UNRESOLVED_REFERENCE,
            DiagnosticKind.THIS_CONTEXT_UNSATISFIED,
            DiagnosticKind.NO_MATCHING_OVERLOAD,
        ]

    def test_deterministic(self):
        first = check_program(self.error_program())
        second = check_program(self.error_program())
        assert first.render() == second.render()
        assert first.diagnostics == second.diagnostics

    def test_function_declarations_hoisted(self):
        call = CallExpr(Identifier("later"), [])
        result = check_program(
            Program(
                [
                    ExprStmt(call),
                    FunctionDecl("later", [SignatureExpr([], number_t())]),
                ]
            )
        )
        assert not result.has_errors
        assert result.type_of(call) == NUMBER

    def test_redeclared_value(self):
        result = check_program(
            Program(
                [
                    ValueDecl("x", BindingKind.CONST, initializer=LiteralExpr(1)),
                    ValueDecl("x", BindingKind.CONST, initializer=LiteralExpr(2)),
                ]
            )
        )
        assert result.kinds() == [DiagnosticKind.TYPE_MISMATCH]

    def test_check_programs_matches_sequential(self):
        programs = [self.error_program(), Program(contact_interfaces()), self.error_program()]
        parallel = check_programs(programs, max_workers=2)
        sequential = [check_program(p) for p in programs]
        assert [r.render() for r in parallel] == [r.render() for r in sequential]
        assert not parallel[1].has_errors

    def test_check_programs_empty(self):
        assert check_programs([]) == []

    def test_pass_exposes_components(self):
        checking_pass = CheckingPass()
        result = checking_pass.run(Program(contact_interfaces()))
        assert checking_pass.env.is_defined("HasEmail")
        assert set(result.alias_types) == {"HasEmail", "HasPhoneNumber"}
