"""
Tests for the model registry (plaster.models.registry).
"""

import pytest

import plaster
from plaster import Plaster
from plaster.faults import ConfigInvalidFault, ModelNotFoundFault, ModelRegistrationFault
from plaster.models import Model, Schema


class TestRegistration:

    def test_model_is_registered(self, registry):
        User = registry.model("User", {"name": str})
        assert issubclass(User, Model)
        assert registry.get_model("User") is User
        assert registry.require_model("User") is User
        assert "User" in registry
        assert registry.model_names() == ["User"]
        assert User.registry is registry

    def test_existing_name_returns_existing_model(self, registry):
        first = registry.model("User", {"name": str})
        second = registry.model("User", {"other": int})
        assert second is first
        assert "other" not in second.descriptor.fields

    def test_accepts_schema_instances(self, registry):
        schema = Schema({"name": str})
        User = registry.model("User", schema)
        assert User.schema is schema

    @pytest.mark.parametrize("name", ["", None, 5])
    def test_invalid_names(self, registry, name):
        with pytest.raises(ModelRegistrationFault):
            registry.model(name, {"name": str})

    def test_missing_model(self, registry):
        assert registry.get_model("Ghost") is None
        with pytest.raises(ModelNotFoundFault):
            registry.require_model("Ghost")
        with pytest.raises(LookupError):
            registry.require_model("Ghost")

    def test_registries_are_independent(self, registry):
        other = Plaster()
        registry.model("User", {"name": str})
        assert other.get_model("User") is None

    def test_reset(self, registry):
        registry.model("User", {"name": str})
        registry.reset()
        assert registry.model_names() == []

    def test_nested_shapes_resolve_through_the_owner(self, registry):
        registry.model("Person", {"name": str})
        Team = registry.model("Team", {"lead": {"ref": {"type": Model, "model_name": "Person"}}})
        team = Team()
        team.lead = {"ref": {"name": "Ann"}}
        assert team.lead.ref.name == "Ann"


class TestRegistryOptions:

    def test_options_are_schema_defaults(self):
        registry = Plaster({"strict": False})
        assert registry.get("strict") is False
        assert registry.schema({"name": str}).options["strict"] is False
        Loose = registry.model("Loose", {"name": str})
        assert Loose({"extra": 1}).extra == 1

    def test_schema_options_override_registry(self):
        registry = Plaster({"strict": False})
        assert registry.schema({}, {"strict": True}).options["strict"] is True

    def test_invalid_option(self):
        with pytest.raises(ConfigInvalidFault):
            Plaster({"minimize": "sometimes"})

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PLASTER_STRICT", "false")
        monkeypatch.setenv("PLASTER_MINIMIZE", "no")
        registry = Plaster.from_env()
        assert registry.get("strict") is False
        assert registry.get("minimize") is False
        assert registry.get("dot_notation") is True


class TestDefaultRegistry:

    def test_package_level_entry_points(self):
        User = plaster.model("User", plaster.schema({"name": str}))
        assert plaster.get_model("User") is User
        assert plaster.model_names() == ["User"]
        assert plaster.default.get_model("User") is User

    def test_default_registry_resolves_unbound_models(self):
        from plaster.models import compile_model

        plaster.model("Person", {"name": str})
        Site = compile_model({"owner": {"type": Model, "model_name": "Person"}}, name="Site")
        site = Site()
        site.owner = {"name": "Joe"}
        assert site.owner.name == "Joe"
