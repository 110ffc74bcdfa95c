from __future__ import annotations

import copy
import json
import pickle

import pytest

from molly import ABSENT, InvalidSerialization, JsonCodec, Model, State, YamlCodec
from molly.codec import get_codec

from conftest import Account, Person, Point


class Part(Model):
    NAMES = ("sku",)
    KEYS = ("sku",)


class Order(Model):
    NAMES = ("ref", "part", "tags", "extra")


# ============================================================================
# ROUND TRIP
# ============================================================================


def test_json_round_trip(person: Person):
    restored = Person.deserialize(person.serialize())
    assert restored.equals(person)
    assert restored is not person


def test_yaml_round_trip(person: Person):
    text = person.serialize("yaml")
    assert "full_name" not in text
    assert Person.deserialize(text, "yaml").equals(person)


def test_absent_survives_round_trip():
    p = Person({"first": "Ada", "last": "Lovelace", "email": "ada@example.org"})
    for codec in (JsonCodec(), YamlCodec()):
        restored = Person.deserialize(p.serialize(codec), codec)
        assert restored.get("age") is ABSENT


def test_empty_instance_round_trip():
    restored = Point.deserialize(Point().serialize())
    assert restored.get("x") is ABSENT
    assert restored.state() == State.INCOMPLETE


def test_serialize_writes_only_literals(person: Person):
    data = json.loads(person.serialize())
    assert set(data) == {"first", "last", "email", "age"}


def test_serialize_includes_non_enumerable_literals():
    a = Account({"owner": "ada"})
    a.set("password", "hunter2")
    restored = Account.deserialize(a.serialize())
    assert restored.get("secret_hash") == "hash:7"


# ============================================================================
# STRUCTURAL CHECKS
# ============================================================================


def test_extra_key_rejected(point: Point):
    text = json.dumps({"x": 1, "y": 2, "z": 3})
    with pytest.raises(InvalidSerialization) as excinfo:
        Point.deserialize(text)
    assert excinfo.value.expected == ["x", "y"]
    assert excinfo.value.actual == ["x", "y", "z"]
    assert "unexpected=['z']" in str(excinfo.value)


def test_missing_key_rejected():
    with pytest.raises(InvalidSerialization) as excinfo:
        Point.deserialize(json.dumps({"x": 1}))
    assert "missing=['y']" in str(excinfo.value)


def test_key_order_does_not_matter():
    restored = Point.deserialize(json.dumps({"y": 2, "x": 1}))
    assert list(restored) == [("x", 1), ("y", 2)]


def test_non_mapping_payload_rejected():
    with pytest.raises(InvalidSerialization):
        Point.deserialize("[1, 2]")
    with pytest.raises(InvalidSerialization):
        Point.deserialize("- 1\n- 2\n", "yaml")


def test_malformed_text_rejected():
    with pytest.raises(InvalidSerialization):
        Point.deserialize("{not json")
    with pytest.raises(InvalidSerialization):
        Point.deserialize("x: [unclosed", "yaml")


def test_deserialize_skips_validation():
    restored = Point.deserialize(json.dumps({"x": "one", "y": 2}))
    assert restored.get("x") == "one"
    assert restored.state() == State.INVALID


# ============================================================================
# PICKLE AND COPY
# ============================================================================


def test_pickle_round_trip(person: Person):
    restored = pickle.loads(pickle.dumps(person))
    assert type(restored) is Person
    assert restored.equals(person)
    assert restored.get("full_name") == "Ada Lovelace"


def test_pickle_preserves_absent():
    restored = pickle.loads(pickle.dumps(Point()))
    assert restored.get("x") is ABSENT


def test_copy_and_deepcopy():
    class Bag(Point):
        pass

    items = Point({"x": 1, "y": 2})
    shallow = copy.copy(items)
    assert shallow.equals(items)
    shallow.set("x", 5)
    assert items.get("x") == 1

    nested = Person({"first": "Ada", "last": "Lovelace", "email": "ada@example.org"})
    deep = copy.deepcopy(nested)
    assert deep.equals(nested)
    assert deep.same(nested)

    assert copy.copy(Bag({"x": 0, "y": 0})).equals(Bag({"x": 0, "y": 0}))


def test_setstate_checks_keys(point: Point):
    with pytest.raises(InvalidSerialization):
        point.__setstate__({"x": 1})


# ============================================================================
# CODECS
# ============================================================================


def test_get_codec():
    assert isinstance(get_codec("json"), JsonCodec)
    assert isinstance(get_codec(" YAML "), YamlCodec)
    assert isinstance(get_codec("yml"), YamlCodec)
    with pytest.raises(ValueError):
        get_codec("xml")


def test_json_codec_tags_absent():
    text = JsonCodec().encode({"a": ABSENT, "b": None})
    assert json.loads(text) == {"a": {"$absent": True}, "b": None}
    assert JsonCodec().decode(text) == {"a": ABSENT, "b": None}


def test_yaml_codec_tags_absent():
    text = YamlCodec().encode({"a": ABSENT, "b": None})
    assert "$absent" in text
    assert YamlCodec().decode(text) == {"a": ABSENT, "b": None}


# ============================================================================
# VALUES WITHOUT A NATIVE ENCODING
# ============================================================================


@pytest.mark.parametrize("codec", ["json", "yaml"])
def test_nested_model_round_trip(codec: str):
    order = Order({"ref": "o-1", "part": Part({"sku": "p-9"}), "tags": (), "extra": None})
    restored = Order.deserialize(order.serialize(codec), codec)

    assert restored.equals(order)
    part = restored.get("part")
    assert type(part) is Part
    assert part.same(order.get("part"))


@pytest.mark.parametrize("codec", ["json", "yaml"])
def test_container_types_round_trip(codec: str):
    order = Order(
        {
            "ref": "o-2",
            "part": [Part({"sku": "a"}), (1, 2)],
            "tags": ("x", ("y", 1)),
            "extra": {"set": {1, 2}, "frozen": frozenset({"z"}), "absent": ABSENT},
        }
    )
    restored = Order.deserialize(order.serialize(codec), codec)

    assert restored.equals(order)
    assert restored.get("tags") == ("x", ("y", 1))
    assert restored.get("extra")["set"] == {1, 2}
    assert isinstance(restored.get("extra")["frozen"], frozenset)
    assert restored.get("extra")["absent"] is ABSENT


@pytest.mark.parametrize("codec", ["json", "yaml"])
def test_tag_like_and_non_string_keyed_mappings_round_trip(codec: str):
    lookalike = {"$absent": True}
    keyed = {1: "one", ("a", 2): "pair"}
    order = Order({"ref": "o-3", "part": lookalike, "tags": keyed, "extra": ABSENT})
    restored = Order.deserialize(order.serialize(codec), codec)

    assert restored.get("part") == {"$absent": True}
    assert restored.get("tags") == keyed
    assert restored.get("extra") is ABSENT
    assert restored.equals(order)


def test_unknown_nested_model_type_rejected():
    text = json.dumps(
        {
            "ref": "o-4",
            "part": {"$model": "nowhere.Missing", "literals": {}},
            "tags": [],
            "extra": None,
        }
    )
    with pytest.raises(InvalidSerialization, match="unknown model type"):
        Order.deserialize(text)


def test_nested_model_key_set_is_checked():
    text = json.dumps(
        {
            "ref": "o-5",
            "part": {"$model": f"{Part.__module__}.Part", "literals": {"code": "p"}},
            "tags": [],
            "extra": None,
        }
    )
    with pytest.raises(InvalidSerialization):
        Order.deserialize(text)


def test_unknown_tag_rejected():
    with pytest.raises(InvalidSerialization, match="unknown tag"):
        Point.deserialize(json.dumps({"x": {"$decimal": ["1.0"]}, "y": 2}))
    with pytest.raises(InvalidSerialization):
        Point.deserialize(json.dumps({"x": {"$tuple": [1], "$set": [2]}, "y": 2}))
