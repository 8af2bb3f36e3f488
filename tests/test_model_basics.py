"""
Tests for the record runtime (plaster.models.base) on flat models:
construction, coercion through the write path, the mapping protocol,
error collection and write callbacks.
"""

import copy
import datetime
import decimal

import pytest

from plaster.faults import SetterRejection, WriteAbortedFault
from plaster.models import Model

UTC = datetime.timezone.utc


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    def test_values_are_coerced(self, User):
        user = User({
            "first_name": "Joe",
            "age": "42",
            "date_of_birth": "1990-12-10T08:33:00.000Z",
            "active": "true",
        })
        assert user.first_name == "Joe"
        assert user.age == 42
        assert user.date_of_birth == datetime.datetime(1990, 12, 10, 8, 33, tzinfo=UTC)
        assert user.active is True

    def test_keyword_construction(self, User):
        user = User(first_name="Joe", last_name="Smith")
        assert user == {"first_name": "Joe", "last_name": "Smith"}

    def test_new_record_is_empty(self, User):
        user = User()
        assert dict(user) == {}
        assert len(user) == 0
        assert user.first_name is None

    def test_unknown_fields_are_dropped_when_strict(self, User):
        user = User({"first_name": "Joe", "foo": 1})
        assert "foo" not in user
        assert user.get("foo") is None
        assert dict(user) == {"first_name": "Joe"}
        with pytest.raises(AttributeError):
            user.foo

    def test_rejected_initial_value_is_recorded(self, User):
        user = User({"age": "old"})
        assert user.age is None
        assert len(user.get_errors()) == 1

    def test_mutable_default_is_not_shared(self, registry):
        Doc = registry.model("Doc", {"meta": {"type": dict, "default": {}}})
        a, b = Doc(), Doc()
        a["meta.x"] = 1
        assert a.meta == {"x": 1}
        assert b.meta == {}
        assert a.meta is not b.meta

    def test_decimal_field(self, registry):
        Item = registry.model("Item", {"price": decimal.Decimal})
        item = Item({"price": decimal.Decimal("1.50")})
        assert item.price == decimal.Decimal("1.50")
        assert not item.has_errors()

    def test_arbitrary_object_is_not_a_boolean(self, User):
        user = User({"active": datetime.datetime(2020, 1, 1)})
        assert user.active is None
        assert len(user.get_errors()) == 1

    def test_keys_follow_declared_order(self, User):
        user = User({"last_name": "Smith", "age": 30, "first_name": "Joe"})
        assert list(user) == ["first_name", "last_name", "age"]

    def test_base_model_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            Model()

    def test_data_must_be_a_mapping(self, User):
        with pytest.raises(TypeError):
            User(["first_name", "Joe"])

    def test_clone_copies_input(self, registry):
        Doc = registry.model("Doc", {"meta": dict})
        source = {"a": {"b": 1}}
        assert Doc({"meta": source}).meta is source
        cloned = Doc({"meta": source}, clone=True)
        assert cloned.meta == source
        assert cloned.meta is not source

    def test_init_method_runs_after_construction(self, registry):
        schema = registry.schema({"name": str, "greeting": str})

        def init(self):
            self.greeting = f"Hello {self.name}"

        schema.method("init", init)
        Person = registry.model("Person", schema)
        assert Person(name="Joe").greeting == "Hello Joe"


# ============================================================================
# Write path
# ============================================================================

class TestWritePath:

    def test_attribute_and_item_access_agree(self, User):
        user = User()
        user.first_name = 12
        assert user["first_name"] == "12"
        user["last_name"] = "Smith"
        assert user.last_name == "Smith"

    def test_rejection_keeps_previous_value(self, User):
        user = User({"email": "joe@example.com"})
        user.email = "much-too-long@example.com"
        assert user.email == "joe@example.com"
        errors = user.get_errors()
        assert len(errors) == 1
        assert isinstance(errors[0], SetterRejection)
        assert errors[0].field_name == "email"
        assert errors[0].previous == "joe@example.com"

    def test_numeric_bounds(self, User):
        user = User({"age": 30})
        user.age = 200
        user.age = -1
        user.age = True
        assert user.age == 30
        assert len(user.get_errors()) == 3

    def test_set_accepts_pair_or_mapping(self, User):
        user = User()
        assert user.set("first_name", "Joe") is user
        user.set({"last_name": "Smith", "age": "5"})
        assert user == {"first_name": "Joe", "last_name": "Smith", "age": 5}

    def test_set_needs_a_mapping_without_value(self, User):
        with pytest.raises(TypeError):
            User().set("first_name")

    def test_update_goes_through_write_path(self, User):
        user = User()
        user.update({"age": "7"})
        assert user.age == 7

    def test_none_clears_a_field(self, User):
        user = User({"first_name": "Joe"})
        user.first_name = None
        assert "first_name" not in user

    def test_custom_validator(self, registry):
        Contact = registry.model("Contact", {
            "email": {"type": str, "validate": lambda value: "@" in value},
        })
        contact = Contact({"email": "joe@example.com"})
        contact.email = "nope"
        assert contact.email == "joe@example.com"
        assert contact.has_errors()

    def test_read_only_field(self, registry):
        Token = registry.model("Token", {
            "code": {"type": str, "read_only": True, "default": "fixed"},
        })
        token = Token()
        assert token.code == "fixed"
        token.code = "changed"
        assert token.code == "fixed"
        assert not token.has_errors()
        assert Token({"code": "given"}).code == "given"

    def test_callable_default(self, registry):
        Counter = registry.model("Counter", {"count": {"type": int, "default": lambda: 3}})
        assert Counter().count == 3
        assert Counter({"count": 9}).count == 9

    def test_model_name_is_read_only(self, User):
        user = User()
        assert user.model_name == "User"
        with pytest.raises(AttributeError):
            user.model_name = "Other"


# ============================================================================
# Non-strict models
# ============================================================================

class TestNonStrict:

    @pytest.fixture
    def Loose(self, registry):
        return registry.model("Loose", registry.schema({"name": str}, {"strict": False}))

    def test_dynamic_slots(self, Loose):
        loose = Loose({"name": "Joe", "extra": 5})
        loose.more = [1]
        assert loose.extra == 5
        assert loose["more"] == [1]
        assert list(loose) == ["name", "extra", "more"]

    def test_deleting_a_dynamic_slot(self, Loose):
        loose = Loose({"extra": 5})
        del loose.extra
        assert "extra" not in loose
        with pytest.raises(AttributeError):
            loose.extra

    def test_clear_drops_dynamic_slots(self, Loose):
        loose = Loose({"name": "Joe", "extra": 5})
        loose.clear()
        assert dict(loose) == {}


# ============================================================================
# Mapping protocol
# ============================================================================

class TestMappingProtocol:

    def test_getitem_unknown_key(self, User):
        with pytest.raises(KeyError):
            User()["nope"]

    def test_get_default(self, User):
        user = User()
        assert user.get("first_name", "fallback") == "fallback"
        assert user.get("nope", 1) == 1

    def test_delete(self, User):
        user = User({"first_name": "Joe", "age": 4})
        del user.first_name
        del user["age"]
        assert dict(user) == {}
        with pytest.raises(KeyError):
            del user["nope"]

    def test_equality_with_mappings(self, User):
        assert User(first_name="Joe") == {"first_name": "Joe"}
        assert User(first_name="Joe") == User(first_name="Joe")
        assert User(first_name="Joe") != User(first_name="Ann")

    def test_clear_resets_fields_but_keeps_errors(self, User):
        user = User({"first_name": "Joe", "age": "x"})
        user.clear()
        assert dict(user) == {}
        assert len(user.get_errors()) == 1

    def test_repr(self, User):
        assert repr(User(first_name="Joe")) == "<User {'first_name': 'Joe'}>"

    def test_copies_are_independent(self, User):
        user = User(first_name="Joe")
        for duplicate in (copy.copy(user), copy.deepcopy(user)):
            assert duplicate == user
            duplicate.first_name = "Ann"
            assert user.first_name == "Joe"


# ============================================================================
# Errors
# ============================================================================

class TestErrors:

    def test_get_errors_returns_a_copy(self, User):
        user = User({"age": "x"})
        errors = user.get_errors()
        errors.clear()
        assert len(user.get_errors()) == 1

    def test_clear_errors(self, User):
        user = User({"age": "x"})
        assert user.has_errors()
        user.clear_errors()
        assert not user.has_errors()
        assert user.get_errors() == []


# ============================================================================
# Write callbacks
# ============================================================================

class TestWriteCallbacks:

    def test_on_before_value_set(self, registry):
        seen = {}

        def before(value, key):
            seen.update(value=value, key=key)
            if value == "Smith":
                return False
            if value == "ErrorTest":
                raise RuntimeError("Test error")

        Guarded = registry.model("Guarded", registry.schema(
            {"name": str}, {"on_before_value_set": before, "strict": False}
        ))
        guarded = Guarded()

        guarded.name = "Joe"
        assert seen == {"value": "Joe", "key": "name"}
        assert guarded.name == "Joe"

        guarded.notstrict = "Smith"
        assert seen == {"value": "Smith", "key": "notstrict"}
        assert guarded.get("notstrict") is None
        assert not guarded.has_errors()

        guarded.errortest = "ErrorTest"
        errors = guarded.get_errors()
        assert len(errors) == 1
        assert isinstance(errors[0], WriteAbortedFault)
        assert isinstance(errors[0].__cause__, RuntimeError)
        assert guarded.get("errortest") is None

    def test_on_value_set_sees_coerced_value(self, registry):
        seen = []
        Watched = registry.model("Watched", registry.schema(
            {"age": int}, {"on_value_set": lambda value, key: seen.append((key, value))}
        ))
        watched = Watched()
        watched.age = "5"
        watched.age = "not a number"
        assert seen == [("age", 5)]

    def test_rejected_array_assignment_is_not_announced(self, registry):
        seen = []
        Acc = registry.model("Acc", registry.schema(
            {"tags": [int]}, {"on_value_set": lambda value, key: seen.append((key, list(value)))}
        ))
        acc = Acc({"tags": [1, 2]})
        assert seen == [("tags", [1, 2])]

        acc.tags = [3, "nope"]
        assert acc.tags == [1, 2]
        assert seen == [("tags", [1, 2])]
        assert len(acc.get_errors()) == 1
