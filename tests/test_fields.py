import pytest

from jolokia_client import ConfigurationError, EncodeError, Request, Response


def test_set_stores_a_deep_copy() -> None:
    request = Request()
    value = {"nested": [1, 2]}
    request.set("value", value)
    value["nested"].append(3)
    value["other"] = True
    assert request.get("value") == {"nested": [1, 2]}


def test_batch_set_from_mapping() -> None:
    request = Request()
    request.set({"a": 1, "b": 2})
    assert request.get("a") == 1
    assert request.get("b") == 2


def test_batch_set_from_pairs() -> None:
    request = Request()
    request.set([("type", "read"), ("mbean", "java.lang:type=Memory")])
    assert request.type() == "read"
    assert request.mbean() == "java.lang:type=Memory"


@pytest.mark.parametrize("batch", [["a"], [("a",)], [("a", 1, 2)]])
def test_batch_set_rejects_malformed_pairs(batch) -> None:
    request = Request()
    with pytest.raises(ConfigurationError):
        request.set(batch)
    assert request.to_wire_object() == {}


@pytest.mark.parametrize("key", [None, "", 0])
def test_falsy_key_is_a_no_op(key) -> None:
    request = Request()
    assert request.set(key, "ignored") is request
    assert request.to_wire_object() == {}


def test_set_failure_is_raised_and_field_left_unset() -> None:
    request = Request()
    cyclic: list = []
    cyclic.append(cyclic)
    with pytest.raises(EncodeError):
        request.set("value", cyclic)
    assert request.get("value") is None
    assert "value" not in request.to_wire_object()


def test_accessors_read_and_write_with_chaining() -> None:
    request = Request()
    assert request.type() is None
    returned = request.type("read").mbean("java.lang:type=Memory").attribute("HeapMemoryUsage")
    assert returned is request
    assert request.attribute() == "HeapMemoryUsage"


def test_accessor_can_store_explicit_none() -> None:
    response = Response().value(None)
    assert response.to_wire_object() == {"value": None}


def test_object_accessor_replace_merge_and_single_key() -> None:
    request = Request()
    request.arguments({"a": 1})
    assert request.arguments() == {"a": 1}

    request.arguments(False, {"b": 2})
    assert request.arguments() == {"a": 1, "b": 2}

    request.arguments(True, {"c": 3})
    assert request.arguments() == {"c": 3}

    request.arguments("d", [4])
    assert request.arguments() == {"c": 3, "d": [4]}


def test_object_accessor_merge_keeps_copy_isolation() -> None:
    request = Request()
    extra = {"list": [1]}
    request.arguments(False, extra)
    extra["list"].append(2)
    assert request.arguments() == {"list": [1]}


def test_object_accessor_sets_list_entries() -> None:
    request = Request().arguments(["x", "y"])
    request.arguments(1, "z")
    assert request.arguments() == ["x", "z"]


def test_object_accessor_appends_list_entry_at_end() -> None:
    request = Request().arguments(["x"])
    request.arguments(1, "y")
    request.arguments(3, "w")
    assert request.arguments() == ["x", "y", None, "w"]


def test_object_accessor_merges_lists_by_index() -> None:
    request = Request().arguments(["x", "y", "q"])
    request.arguments(False, ["z"])
    assert request.arguments() == ["z", "y", "q"]

    request.arguments(False, ["a", "b", "c", "d"])
    assert request.arguments() == ["a", "b", "c", "d"]


@pytest.mark.parametrize("index", ["first", -1, 1.5])
def test_object_accessor_rejects_bad_list_index(index) -> None:
    request = Request().arguments(["x"])
    with pytest.raises(ConfigurationError):
        request.arguments(index, "y")
    assert request.arguments() == ["x"]


def test_object_accessor_rejects_extra_arguments() -> None:
    with pytest.raises(TypeError):
        Request().arguments("a", 1, 2)
