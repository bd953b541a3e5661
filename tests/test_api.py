"""Tests for the Decoder facade."""

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from schemacast.api import DecodeResult, Decoder
from schemacast.kernel.builders import CasterBuilder, ClassBuilder
from schemacast.kernel.casters import NULL, STRING, refine, union
from schemacast.kernel.descriptor import (
    GenericType,
    array_of,
    list_of,
    literal,
    one_of,
    prop,
    ref,
    schema,
)
from schemacast.kernel.errors import (
    ConstructionError,
    DuplicateNameError,
    EmptySchemaError,
    ForwardReferenceError,
    IllegalTypeError,
    UnknownFactoryError,
    UnknownTypeError,
)


@dataclass(frozen=True)
class Guest:
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


GUEST_SCHEMA = schema("IGuest", prop("first_name", "string"), prop("last_name", "string"))


def _collect():
    seen = []
    return seen, seen.extend


def test_user_scenario_success(user_schema, user_data):
    """Optional ``title`` stays absent in the decoded value."""
    dec = Decoder([user_schema])
    value = dec.decode("User", user_data)
    assert value == {"name": "Yang", "houses": ["1111 Mission St"]}
    assert "title" not in value


def test_user_scenario_two_errors(user_schema):
    dec = Decoder([user_schema])
    errors, on_error = _collect()
    assert dec.decode("User", {"name": 123, "houses": "x"}, on_error) is None
    assert errors == [
        "User.name: Input should be a valid string (got 123)",
        "User.houses: Input should be a valid list (got 'x')",
    ]


def test_missing_required_field_named(user_schema):
    dec = Decoder([user_schema])
    errors, on_error = _collect()
    assert dec.decode("User", {"houses": []}, on_error) is None
    assert errors == ["User.name: Field required"]


@pytest.mark.parametrize("data", [None, 42, "User", [], {"name": ["x"], "houses": [1, None]}])
def test_decode_never_raises_on_bad_input(user_schema, data):
    dec = Decoder([user_schema])
    errors, on_error = _collect()
    assert dec.decode("User", data, on_error) is None
    assert errors


def test_decode_without_callback_returns_none(user_schema):
    dec = Decoder([user_schema])
    assert dec.decode("User", {}) is None


def test_round_trip(user_schema):
    dec = Decoder([user_schema])
    data = {"name": "Yang", "title": "Dr", "houses": ["a", "b"]}
    value = dec.decode("User", data)
    assert value == data
    assert dec.encode("User", value) == data


def test_try_decode_tells_null_apart_from_failure():
    dec = Decoder(casters={"Nothing": NULL})
    ok = dec.try_decode("Nothing", None)
    assert isinstance(ok, DecodeResult)
    assert ok.ok is True
    assert ok.value is None

    bad = dec.try_decode("Nothing", 0)
    assert bad.ok is False
    assert bad.errors == ["Nothing: Input should be None (got 0)"]


def test_nested_generics(user_schema, user_data):
    dec = Decoder([user_schema])
    nested = array_of(array_of("User"))
    assert dec.decode(nested, [[user_data]]) == [[user_data]]
    assert dec.encode(nested, [[user_data]]) == [[user_data]]
    assert dec.decode({"tag": "Array", "arg": {"tag": "Array", "arg": "User"}}, [[user_data], []]) == [[user_data], []]


def test_nested_generic_errors_use_label(user_schema, user_data):
    dec = Decoder([user_schema])
    errors, on_error = _collect()
    assert dec.decode(array_of(array_of("User")), [[user_data, {"name": "x"}]], on_error) is None
    assert errors == ["Array<Array<User>>.0.1.houses: Field required"]


def test_generic_casters_are_memoised(user_schema):
    dec = Decoder([user_schema])
    assert dec.caster(array_of("User")) is dec.caster({"tag": "Array", "arg": "User"})


def test_decode_array_alias(user_schema, user_data):
    dec = Decoder([user_schema])
    assert dec.decode_array("User", [user_data, user_data]) == [user_data, user_data]
    errors, on_error = _collect()
    assert dec.decode_array("User", user_data, on_error) is None
    assert errors[0].startswith("Array<User>: Input should be a valid list")


def test_unknown_type_is_programmer_error(user_schema):
    dec = Decoder([user_schema])
    with pytest.raises(UnknownTypeError):
        dec.decode("Customer", {})
    with pytest.raises(UnknownFactoryError):
        dec.decode({"tag": "Set", "arg": "User"}, [])
    with pytest.raises(IllegalTypeError):
        dec.decode({"kind": "array"}, [])


def test_union_with_null():
    dec = Decoder([
        schema("Customer", prop("id", "string")),
        schema("Order", prop("customer", one_of(ref("Customer"), None))),
    ])
    assert dec.decode("Order", {"customer": None}) == {"customer": None}
    assert dec.decode("Order", {"customer": {"id": "c1"}}) == {"customer": {"id": "c1"}}
    errors, on_error = _collect()
    assert dec.decode("Order", {"customer": 7}, on_error) is None
    assert errors
    assert all(e.startswith("Order.customer") for e in errors)


def test_attrs_synthesized_when_absent():
    dec = Decoder([
        schema("WithAttrs", prop("name", "string"), prop("attrs", literal(prop("marker", ref("Icon"))))),
    ])
    value = dec.decode("WithAttrs", {"name": "pin"})
    assert value == {"name": "pin", "attrs": {}}
    assert dec.registry.has_attrs("WithAttrs")
    assert dec.encode("WithAttrs", value) == {"name": "pin"}


def test_attrs_synthesized_in_arrays():
    dec = Decoder([schema("Pin", prop("name", "string"), prop("attrs", literal(prop("x", "number"))))])
    assert dec.decode_array("Pin", [{"name": "a"}, {"name": "b"}]) == [
        {"name": "a", "attrs": {}},
        {"name": "b", "attrs": {}},
    ]


def test_each_decode_gets_fresh_attrs():
    dec = Decoder([schema("Pin", prop("name", "string"), prop("attrs", literal(prop("x", "number"))))])
    first = dec.decode("Pin", {"name": "a"})
    first["attrs"]["icon"] = object()
    assert dec.decode("Pin", {"name": "a"})["attrs"] == {}


def test_class_builder_constructs_instance():
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: Guest(**d))])
    guest = dec.decode("Guest", {"first_name": "Ada", "last_name": "Lovelace"})
    assert isinstance(guest, Guest)
    assert guest.full_name == "Ada Lovelace"
    # the underlying schema still decodes to plain data
    assert dec.decode("IGuest", {"first_name": "Ada", "last_name": "Lovelace"}) == {
        "first_name": "Ada",
        "last_name": "Lovelace",
    }


def test_class_builder_encodes_structural_shape():
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: Guest(**d))])
    assert dec.encode("Guest", Guest("Ada", "Lovelace")) == {"first_name": "Ada", "last_name": "Lovelace"}


class GuestModel(BaseModel):
    first_name: str
    last_name: str


class GuestRecord:
    def __init__(self, first_name, last_name):
        self.first_name = first_name
        self.last_name = last_name
        self.visits = 0


def test_class_builder_encodes_pydantic_model():
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: GuestModel(**d))])
    guest = dec.decode("Guest", {"first_name": "Ada", "last_name": "Lovelace"})
    assert isinstance(guest, GuestModel)
    assert dec.encode("Guest", guest) == {"first_name": "Ada", "last_name": "Lovelace"}


def test_class_builder_encodes_plain_object_attributes():
    """Attributes outside the schema (``visits``) are not encoded."""
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: GuestRecord(**d))])
    guest = dec.decode("Guest", {"first_name": "Ada", "last_name": "Lovelace"})
    guest.visits = 3
    assert dec.encode("Guest", guest) == {"first_name": "Ada", "last_name": "Lovelace"}


def test_class_builder_encodes_mapping_limited_to_schema_keys():
    def with_full_name(data):
        return {**data, "full_name": f"{data['first_name']} {data['last_name']}"}

    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", with_full_name)])
    guest = dec.decode("Guest", {"first_name": "Ada", "last_name": "Lovelace"})
    assert guest["full_name"] == "Ada Lovelace"
    assert dec.encode("Guest", guest) == {"first_name": "Ada", "last_name": "Lovelace"}


def test_class_builder_custom_deconstruct():
    builder = ClassBuilder(
        GUEST_SCHEMA,
        "GuestName",
        lambda d: f"{d['first_name']} {d['last_name']}",
        deconstruct=lambda s: dict(zip(("first_name", "last_name"), s.split(" ", 1))),
    )
    dec = Decoder([builder])
    assert dec.decode("GuestName", {"first_name": "Ada", "last_name": "Lovelace"}) == "Ada Lovelace"
    assert dec.encode("GuestName", "Ada Lovelace") == {"first_name": "Ada", "last_name": "Lovelace"}


def test_class_builder_invalid_input_is_reported_not_constructed():
    calls = []
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: calls.append(d) or Guest(**d))])
    errors, on_error = _collect()
    assert dec.decode("Guest", {"first_name": "Ada"}, on_error) is None
    assert errors == ["Guest.last_name: Field required"]
    assert calls == []


def test_construction_failure_propagates():
    def explode(data):
        raise ValueError("no guests today")

    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", explode)])
    errors, on_error = _collect()
    with pytest.raises(ConstructionError) as exc_info:
        dec.decode("Guest", {"first_name": "Ada", "last_name": "Lovelace"}, on_error)
    assert exc_info.value.class_name == "Guest"
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert errors == []


def test_construction_inside_array():
    dec = Decoder([ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: Guest(**d))])
    guests = dec.decode_array("Guest", [{"first_name": "A", "last_name": "B"}])
    assert guests == [Guest("A", "B")]


def test_builder_referenced_by_later_schema():
    dec = Decoder([
        ClassBuilder(GUEST_SCHEMA, "Guest", lambda d: Guest(**d)),
        schema("Party", prop("host", ref("Guest")), prop("guests", list_of(ref("Guest")))),
    ])
    party = dec.decode("Party", {
        "host": {"first_name": "A", "last_name": "B"},
        "guests": [{"first_name": "C", "last_name": "D"}],
    })
    assert party["host"].full_name == "A B"
    assert party["guests"] == [Guest("C", "D")]


def test_custom_caster_by_reference():
    percent = refine(STRING, lambda s: s.endswith("%"), "Percent")
    dec = Decoder(
        [schema("Discount", prop("amount", ref("Percent")))],
        casters={"Percent": percent},
    )
    assert dec.decode("Discount", {"amount": "10%"}) == {"amount": "10%"}
    errors, on_error = _collect()
    dec.decode("Discount", {"amount": "10"}, on_error)
    assert errors == ["Discount.amount: Input should be a valid Percent (got '10')"]


def test_caster_builder_in_schema_list():
    dec = Decoder([CasterBuilder("Code", STRING), schema("Item", prop("code", ref("Code")))])
    assert dec.decode("Item", {"code": "X1"}) == {"code": "X1"}


def test_custom_factory():
    dec = Decoder(
        [schema("Box", prop("content", GenericType(parameter_name="Maybe", parameter_type="string")))],
        factories={"Maybe": lambda c: union(c, NULL)},
    )
    assert dec.decode("Box", {"content": None}) == {"content": None}
    assert dec.decode({"tag": "Maybe", "arg": "Box"}, None) is None
    assert dec.try_decode({"tag": "Maybe", "arg": "Box"}, None).ok


def test_register_after_construction(user_schema):
    dec = Decoder()
    dec.register(user_schema)
    dec.register_factory("Maybe", lambda c: union(c, NULL))
    assert dec.try_decode({"tag": "Maybe", "arg": "User"}, None).ok


def test_setup_errors_raise_from_constructor():
    with pytest.raises(ForwardReferenceError):
        Decoder([schema("Order", prop("customer", ref("Customer"))), schema("Customer", prop("id", "string"))])
    with pytest.raises(DuplicateNameError):
        Decoder([schema("A", prop("x", "string")), schema("A", prop("x", "string"))])
    with pytest.raises(EmptySchemaError):
        Decoder([schema("Empty")])


def test_raw_schema_mappings():
    dec = Decoder([
        {"name": "Tag", "properties": [{"name": "label", "type": "string"}]},
        {"name": "Post", "props": [{"name": "tags", "type": {"kind": "array", "element": {"name": "Tag"}}}]},
    ])
    assert dec.decode("Post", {"tags": [{"label": "py"}]}) == {"tags": [{"label": "py"}]}


def test_decode_reports_input_with_failing_repr(user_schema):
    class Opaque:
        def __repr__(self):
            raise RuntimeError("boom")

    dec = Decoder([user_schema])
    errors, on_error = _collect()
    assert dec.decode("User", {"name": Opaque(), "houses": []}, on_error) is None
    assert errors == ["User.name: Input should be a valid string (got <unrepresentable Opaque>)"]
