"""
Tests for typed collections (plaster.models.collection).
"""

import copy

import pytest

from plaster.faults import SetterRejection
from plaster.models import TypedCollection


@pytest.fixture
def Tag(registry):
    return registry.model("Tag", {"label": str})


@pytest.fixture
def Account(registry, Tag):
    return registry.model("Account", {
        "usernames": [str],
        "scores": {"type": [int], "unique": True},
        "tags": [Tag],
        "grid": [[int]],
        "anything": [],
    })


# ============================================================================
# push and friends
# ============================================================================

class TestPush:

    def test_push_coerces_and_returns_length(self, Account):
        account = Account()
        assert account.usernames.push("a", 1, True) == 3
        assert account.usernames == ["a", "1", "true"]

    def test_rejected_element_is_dropped_and_recorded(self, Account):
        account = Account({"usernames": ["a"]})
        account.usernames.push({"a": 1})
        assert account.usernames == ["a"]
        errors = account.get_errors()
        assert len(errors) == 1
        assert isinstance(errors[0], SetterRejection)

    def test_good_values_survive_bad_neighbours(self, Account):
        account = Account()
        account.usernames.push({"a": 1}, "ok", [2])
        assert account.usernames == ["ok"]
        assert len(account.get_errors()) == 2

    def test_none_is_skipped_without_error(self, Account):
        account = Account()
        account.usernames.push(None, "a")
        assert account.usernames == ["a"]
        assert not account.has_errors()

    def test_append_extend_insert(self, Account):
        account = Account()
        account.usernames.append(5)
        account.usernames.extend([True])
        account.usernames.insert(0, "first")
        assert account.usernames == ["first", "5", "true"]

        account.usernames.insert(0, {"x": 1})
        assert account.usernames == ["first", "5", "true"]
        assert len(account.get_errors()) == 1

    def test_item_assignment(self, Account):
        account = Account({"usernames": ["a", "b"]})
        account.usernames[0] = 7
        assert account.usernames == ["7", "b"]
        account.usernames[1] = {}
        assert account.usernames == ["7", "b"]
        assert account.has_errors()

    def test_in_place_add_keeps_identity(self, Account):
        account = Account({"usernames": ["a"]})
        ref = account.usernames
        account.usernames += [1]
        assert account.usernames is ref
        assert ref == ["a", "1"]

    def test_unique_skips_existing_values(self, Account):
        account = Account()
        account.scores.push(1, 2, 1)
        assert account.scores == [1, 2]
        account.scores.push("2", 3)
        assert account.scores == [1, 2, 3]

    def test_records_as_elements(self, Account, Tag):
        account = Account()
        account.tags.push({"label": 5}, Tag(label="x"))
        assert all(isinstance(tag, Tag) for tag in account.tags)
        assert [tag.label for tag in account.tags] == ["5", "x"]

        account.tags.push("not a tag")
        assert len(account.tags) == 2
        assert len(account.get_errors()) == 1

    def test_nested_collections(self, Account):
        account = Account()
        account.grid.push([1, "2"])
        assert isinstance(account.grid[0], TypedCollection)
        assert account.grid == [[1, 2]]

    def test_untyped_elements_pass_through(self, Account):
        marker = object()
        account = Account()
        account.anything.push(marker, "a", 1)
        assert account.anything == [marker, "a", 1]


# ============================================================================
# set / assignment
# ============================================================================

class TestSet:

    def test_set_replaces_contents(self, Account):
        account = Account({"usernames": ["a"]})
        account.usernames.set(["b", "c"])
        assert account.usernames == ["b", "c"]

    def test_set_is_all_or_nothing(self, Account):
        account = Account({"usernames": ["a", "b"]})
        account.usernames.set(["c", {"bad": 1}])
        assert account.usernames == ["a", "b"]
        assert len(account.get_errors()) == 1

    def test_assignment_keeps_identity(self, Account):
        account = Account()
        ref = account.usernames
        account.usernames = ["x"]
        assert account.usernames is ref
        assert ref == ["x"]

    def test_rejected_assignment_leaves_contents(self, Account):
        account = Account({"usernames": ["keep"]})
        account.usernames = ["x", {}]
        assert account.usernames == ["keep"]
        assert account.has_errors()

    def test_each_rejected_element_is_recorded_once(self, Account):
        account = Account({"usernames": ["keep"]})
        account.usernames = ["x", {}, []]
        assert account.usernames == ["keep"]
        assert len(account.get_errors()) == 2

    def test_nested_rejection_is_recorded_once(self, Account):
        account = Account()
        account.grid.push([1, "x"])
        assert account.grid == []
        assert len(account.get_errors()) == 1

    def test_clear_keeps_identity(self, Account):
        account = Account({"usernames": ["a", "b"]})
        ref = account.usernames
        account.clear()
        assert account.usernames is ref
        assert len(ref) == 0
        ref.push("c")
        assert account.usernames == ["c"]

    def test_non_iterable_assignment_is_rejected(self, Account):
        account = Account({"usernames": ["a"]})
        account.usernames = "abc"
        assert account.usernames == ["a"]
        assert len(account.get_errors()) == 1


# ============================================================================
# Derived collections and snapshots
# ============================================================================

class TestDerived:

    def test_concat_returns_new_collection(self, Account):
        account = Account({"usernames": ["a"]})
        combined = account.usernames.concat(["b", {}], ("c",))
        assert isinstance(combined, TypedCollection)
        assert combined == ["a", "b", "c"]
        assert combined is not account.usernames
        assert account.usernames == ["a"]
        assert len(account.get_errors()) == 1

    def test_plus_operator_concats(self, Account):
        account = Account({"usernames": ["a"]})
        combined = account.usernames + [1]
        assert combined == ["a", "1"]
        assert account.usernames == ["a"]

    def test_to_array_projects_records(self, Account):
        account = Account({"tags": [{"label": "x"}]})
        snapshot = account.tags.to_array()
        assert snapshot == [{"label": "x"}]
        assert type(snapshot[0]) is dict
        snapshot[0]["label"] = "changed"
        assert account.tags[0].label == "x"

    def test_to_json_matches_to_array(self, Account):
        account = Account({"usernames": ["a", "b"]})
        assert account.usernames.to_json() == account.usernames.to_array() == ["a", "b"]

    def test_deepcopy(self, Account):
        account = Account({"usernames": ["a"]})
        duplicate = copy.deepcopy(account.usernames)
        assert isinstance(duplicate, TypedCollection)
        assert duplicate == ["a"]
        assert duplicate is not account.usernames

    def test_list_methods_still_work(self, Account):
        account = Account({"usernames": ["b", "a", "c"]})
        account.usernames.sort()
        assert account.usernames == ["a", "b", "c"]
        assert account.usernames.pop() == "c"
        assert account.usernames.index("b") == 1

    def test_standalone_collection(self):
        collection = TypedCollection(values=[1, None, "a"])
        assert collection == [1, "a"]
        assert collection.owner is None
