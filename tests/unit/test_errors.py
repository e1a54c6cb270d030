"""
Unit tests for the resource error hierarchy.
"""

from rabbitmq_declarative.errors import (
    DuplicateIdentityError,
    DuplicateNameError,
    InsyncCheckError,
    InvalidIdentityError,
    ProviderError,
    ResourceError,
    SchemaError,
    ValidationError,
)


class TestResourceErrors:
    """Test categorization and guidance of resource errors."""

    def test_user_action_in_str(self):
        """Guidance is appended to the message."""
        error = ResourceError("broken", category="provider", user_action="Fix it")
        assert str(error) == "broken\nAction required: Fix it"

    def test_validation_error(self):
        """Validation errors are permanent and name their field."""
        error = ValidationError("bad value", field="tags")
        assert error.category == "validation"
        assert error.retryable is False
        assert error.field == "tags"
        assert str(error).startswith("Validation error in field 'tags': bad value")

    def test_identity_errors_are_validation_errors(self):
        """Identity problems are reported as validation errors on name."""
        invalid = InvalidIdentityError("a b", "rabbitmq_user", r"^\S+$")
        duplicate = DuplicateIdentityError("rabbitmq_user", "dan")
        for error in (invalid, duplicate):
            assert isinstance(error, ValidationError)
            assert error.field == "name"
        assert "'a b'" in str(invalid)
        assert "dan" in str(duplicate)

    def test_schema_errors(self):
        """Schema errors are permanent."""
        error = DuplicateNameError("rabbitmq_user", "tags")
        assert isinstance(error, SchemaError)
        assert error.retryable is False
        assert error.name == "tags"

    def test_provider_error(self):
        """Provider errors are retryable by default and name their target."""
        cause = TimeoutError("timed out")
        error = ProviderError(
            "timed out", operation="update", identity="dan", property_name="tags", cause=cause
        )
        assert error.retryable is True
        assert error.cause is cause
        assert error.applied_changes == []
        assert str(error).startswith("Provider update failed for dan.tags: timed out")

    def test_insync_check_error(self):
        """Insync failures are provider errors of the insync operation."""
        error = InsyncCheckError("auth down", identity="dan", property_name="password")
        assert isinstance(error, ProviderError)
        assert error.operation == "insync"
        assert "dan.password" in str(error)
