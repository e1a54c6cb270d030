"""
Unit tests for ResourceTypeSchema and PropertyDeclaration.

These tests use a small ad-hoc resource type so that the schema rules are
checked independently of the rabbitmq_user declaration.
"""

from unittest.mock import MagicMock

import pytest

from rabbitmq_declarative.errors import (
    DuplicateNameError,
    InvalidIdentityError,
    SchemaError,
    ValidationError,
)
from rabbitmq_declarative.models import (
    AutoRequirement,
    InsyncContext,
    PropertyDeclaration,
    PropertyKind,
    ResourceInstance,
    ResourceTypeSchema,
    format_value,
)


def _reject_upper(value):
    if value != value.lower():
        raise ValidationError("must be lowercase", field="color")


def _make_schema() -> ResourceTypeSchema:
    """Create a widget type with a namevar, a scalar and a list property."""
    schema = ResourceTypeSchema("widget")
    schema.register(PropertyDeclaration("name", kind=PropertyKind.NAMEVAR))
    schema.register(
        PropertyDeclaration(
            "color",
            validate=_reject_upper,
            munge=str.strip,
            default=lambda: "blue",
        )
    )
    schema.register(
        PropertyDeclaration("labels", kind=PropertyKind.ORDERED_LIST, munge=str.upper)
    )
    return schema


class TestSchemaRegistration:
    """Test cases for building the declaration table."""

    def test_ensure_is_declared_automatically(self):
        """Every schema starts with the ensure property."""
        schema = ResourceTypeSchema("widget")
        assert "ensure" in schema
        assert schema.get("ensure").kind == PropertyKind.ENSURABLE
        assert len(schema) == 1

    def test_duplicate_property_rejected(self):
        """Registering the same name twice raises DuplicateNameError."""
        schema = _make_schema()
        with pytest.raises(DuplicateNameError) as exc_info:
            schema.register(PropertyDeclaration("color"))
        assert exc_info.value.name == "color"

    def test_duplicate_ensure_rejected(self):
        """The automatic ensure property cannot be re-registered."""
        schema = ResourceTypeSchema("widget")
        with pytest.raises(DuplicateNameError):
            schema.register(PropertyDeclaration("ensure", kind=PropertyKind.ENSURABLE))

    def test_second_namevar_rejected(self):
        """A schema has exactly one namevar."""
        schema = _make_schema()
        with pytest.raises(SchemaError):
            schema.register(PropertyDeclaration("title", kind=PropertyKind.NAMEVAR))

    def test_missing_namevar(self):
        """Building instances requires a namevar."""
        schema = ResourceTypeSchema("widget")
        with pytest.raises(SchemaError):
            schema.build_instance({"name": "x"})

    def test_invalid_default_ensure(self):
        """The default ensure value must be an allowed value."""
        with pytest.raises(SchemaError):
            ResourceTypeSchema("widget", default_ensure="running")

    def test_properties_excludes_namevar_and_ensure(self):
        """properties() lists managed properties in declaration order."""
        schema = _make_schema()
        assert [p.name for p in schema.properties()] == ["color", "labels"]
        assert [p.name for p in schema] == ["ensure", "name", "color", "labels"]

    def test_get_unknown_property(self):
        """Looking up an undeclared property raises KeyError."""
        with pytest.raises(KeyError):
            _make_schema().get("size")


class TestBuildInstance:
    """Test cases for turning declared attributes into instances."""

    def test_defaults_applied(self):
        """Unspecified properties get their defaults; ensure defaults to present."""
        instance = _make_schema().build_instance({"name": "w1"})

        assert instance.identity == "w1"
        assert instance.ensure == "present"
        assert instance.desired_values == {"color": "blue", "labels": None}

    def test_validate_then_munge(self):
        """Desired values are validated then munged once at build time."""
        instance = _make_schema().build_instance({"name": "w1", "color": " red "})
        assert instance.desired("color") == "red"

        with pytest.raises(ValidationError):
            _make_schema().build_instance({"name": "w1", "color": "RED"})

    def test_list_entries_munged(self):
        """Ordered-list rules apply per entry; a scalar becomes a one-item list."""
        schema = _make_schema()
        assert schema.build_instance({"name": "w", "labels": ["a", "b"]}).desired(
            "labels"
        ) == ["A", "B"]
        assert schema.build_instance({"name": "w", "labels": "a"}).desired(
            "labels"
        ) == ["A"]

    def test_invalid_identities(self):
        """Empty, missing or whitespace identities raise InvalidIdentityError."""
        schema = _make_schema()
        for attributes in [{}, {"name": ""}, {"name": "a b"}, {"name": "a\n"}, {"name": 3}]:
            with pytest.raises(InvalidIdentityError):
                schema.build_instance(attributes)

    def test_invalid_identity_is_validation_error(self):
        """Identity failures are reported as validation errors."""
        with pytest.raises(ValidationError):
            _make_schema().build_instance({"name": "two words"})

    def test_unknown_attribute_rejected(self):
        """Attributes that are not declared are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _make_schema().build_instance({"name": "w", "size": 3})
        assert exc_info.value.field == "size"

    def test_invalid_ensure_rejected(self):
        """Only declared ensure values are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            _make_schema().build_instance({"name": "w", "ensure": "running"})
        assert exc_info.value.field == "ensure"

    def test_custom_ensure_values(self):
        """Schemas may declare extra named ensure states."""
        schema = ResourceTypeSchema(
            "widget", ensure_values=("present", "absent", "disabled")
        )
        schema.register(PropertyDeclaration("name", kind=PropertyKind.NAMEVAR))
        assert schema.build_instance({"name": "w", "ensure": "disabled"}).ensure == "disabled"

    def test_instance_validator_runs(self):
        """Instance validators see the identity and canonical values."""
        schema = _make_schema()
        validator = MagicMock()
        schema.add_instance_validator(validator)

        schema.build_instance({"name": "w", "ensure": "absent"})

        validator.assert_called_once_with(
            "w", {"ensure": "absent", "color": "blue", "labels": None}
        )

    def test_instance_is_frozen(self):
        """The identity cannot change once the instance exists."""
        instance = _make_schema().build_instance({"name": "w"})
        with pytest.raises(Exception):
            instance.identity = "other"

    def test_desired_values_are_read_only(self):
        """Neither the mapping nor a stored list can be changed in place."""
        instance = _make_schema().build_instance({"name": "w", "labels": ["a"]})

        with pytest.raises(TypeError):
            instance.desired_values["labels"] = ["b"]
        with pytest.raises(AttributeError):
            instance.desired_values["labels"].append("b")
        assert instance.desired_values["labels"] == ("A",)

    def test_desired_returns_copies(self):
        """Lists handed out by desired() are detached from the instance."""
        instance = _make_schema().build_instance({"name": "w", "labels": ["a"]})

        instance.desired("labels").append("B")
        instance.desired_mapping()["labels"].append("C")

        assert instance.desired("labels") == ["A"]

    def test_check_instance_accepts_built_instance(self):
        """Canonical values pass validation a second time."""
        schema = _make_schema()
        schema.check_instance(schema.build_instance({"name": "w", "color": " red "}))

    @pytest.mark.parametrize(
        ("identity", "desired_values", "error"),
        [
            ("bad name", {"color": "red"}, InvalidIdentityError),
            ("w", {"color": "RED"}, ValidationError),
            ("w", {"size": 3}, ValidationError),
            ("w", {"name": "w"}, ValidationError),
        ],
    )
    def test_check_instance_rejects_direct_instance(self, identity, desired_values, error):
        """Instances built without the schema are held to the same rules."""
        instance = ResourceInstance(
            resource_type="widget", identity=identity, desired_values=desired_values
        )
        with pytest.raises(error):
            _make_schema().check_instance(instance)

    def test_check_instance_rejects_unknown_ensure(self):
        """Ensure values outside the schema are rejected."""
        instance = ResourceInstance(resource_type="widget", identity="w", ensure="disabled")
        with pytest.raises(ValidationError):
            _make_schema().check_instance(instance)

    def test_autorequire(self):
        """Auto-requirements are resolved per instance, callables lazily."""
        schema = _make_schema()
        names = iter(["svc-a", "svc-b"])
        schema.autorequire("service", lambda: next(names))
        schema.autorequire("package", "widgetd")

        first = schema.build_instance({"name": "w1"})
        second = schema.build_instance({"name": "w2"})

        assert first.requirements == (
            AutoRequirement(resource_type="service", name="svc-a"),
            AutoRequirement(resource_type="package", name="widgetd"),
        )
        assert second.requirements[0].name == "svc-b"
        assert str(first.requirements[0]) == "Service[svc-a]"


class TestPropertyDeclaration:
    """Test cases for per-property rules."""

    def test_default_insync_is_equality(self):
        """Without a custom check, insync compares values."""
        declaration = PropertyDeclaration("color")
        context = InsyncContext(resource_type="widget", identity="w", provider=MagicMock())
        assert declaration.is_insync("red", "red", context)
        assert not declaration.is_insync("red", "blue", context)

    def test_custom_insync_receives_context(self):
        """A custom check receives both values and the context."""
        check = MagicMock(return_value=True)
        declaration = PropertyDeclaration("color", insync=check)
        context = InsyncContext(resource_type="widget", identity="w", provider=MagicMock())

        assert declaration.is_insync("a", "b", context)
        check.assert_called_once_with("a", "b", context)

    def test_display_and_messages(self):
        """Values are displayed literally unless redacted."""
        declaration = PropertyDeclaration("labels", kind=PropertyKind.ORDERED_LIST)
        assert declaration.display_from(["a"]) == "[a]"
        assert declaration.display_to(["a", "b"]) == "[a, b]"
        assert declaration.describe_change(["a"], ["a", "b"]) == "labels changed '[a]' to '[a, b]'"
        assert declaration.describe_change(None, ["a"]) == "defined 'labels' as '[a]'"

    def test_redacted_display(self):
        """Redacted properties never show their values."""
        declaration = PropertyDeclaration("token", redact=True)
        assert declaration.display_from("old") == "[old token redacted]"
        assert declaration.display_to("new") == "[new token redacted]"
        assert "new" not in declaration.describe_change("old", "new").replace(
            "token", ""
        )

    def test_format_value(self):
        """format_value renders missing values and lists."""
        assert format_value(None) == "absent"
        assert format_value([]) == "[]"
        assert format_value(("a", "b")) == "[a, b]"
        assert format_value("x") == "x"
