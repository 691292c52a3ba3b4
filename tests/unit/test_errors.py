"""Tests for error classes."""

import pytest

from kafka_panel.utils.errors import (
    ApiError,
    BusinessRuleError,
    ConnectionFailure,
    KafkaConnectionError,
    KafkaOperationError,
    KafkaPanelError,
    NotConnectedError,
    ReplicationFactorExceeded,
    TopicAlreadyExists,
    TopicNotFound,
    ValidationError,
)


class TestErrorHierarchy:
    """Tests for error class hierarchy."""

    def test_kafka_panel_error_is_base(self) -> None:
        """Test KafkaPanelError is base exception."""
        error = KafkaPanelError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    def test_not_connected_default_message(self) -> None:
        """Test NotConnectedError carries the standard message."""
        error = NotConnectedError()
        assert isinstance(error, KafkaPanelError)
        assert str(error) == "Not connected to Kafka cluster"

    def test_kafka_connection_error_category(self) -> None:
        """Test KafkaConnectionError keeps its failure category."""
        error = KafkaConnectionError("refused", ConnectionFailure.REFUSED)
        assert isinstance(error, KafkaPanelError)
        assert error.category == ConnectionFailure.REFUSED

    def test_kafka_connection_error_default_category(self) -> None:
        """Test KafkaConnectionError defaults to unknown category."""
        assert KafkaConnectionError("boom").category == ConnectionFailure.UNKNOWN

    def test_kafka_operation_error(self) -> None:
        """Test KafkaOperationError inherits from KafkaPanelError."""
        error = KafkaOperationError("operation failed")
        assert isinstance(error, KafkaPanelError)

    def test_business_rule_errors(self) -> None:
        """Test business rule errors share a base."""
        for cls in (TopicAlreadyExists, TopicNotFound, ReplicationFactorExceeded):
            error = cls("rejected")
            assert isinstance(error, BusinessRuleError)
            assert isinstance(error, KafkaPanelError)

    def test_errors_can_be_raised(self) -> None:
        """Test all errors can be raised and caught."""
        with pytest.raises(KafkaConnectionError):
            raise KafkaConnectionError("test")

        with pytest.raises(KafkaPanelError):
            raise TopicNotFound("test")

        with pytest.raises(BusinessRuleError):
            raise TopicAlreadyExists("test")


class TestValidationError:
    """Tests for ValidationError field reporting."""

    def test_single_field_problem(self) -> None:
        """Test the field and message become the only problem."""
        error = ValidationError("Topic name is required", field="name")
        assert error.field == "name"
        assert error.problems == [{"field": "name", "message": "Topic name is required"}]

    def test_explicit_problems(self) -> None:
        """Test explicit problems replace the default one."""
        problems = [{"field": "partitions", "message": "Must have at least 1 partition"}]
        error = ValidationError("Invalid topic creation parameters", problems=problems)
        assert error.field is None
        assert error.problems == problems

    def test_empty_problems_kept(self) -> None:
        """Test an explicit empty list is not replaced."""
        assert ValidationError("Invalid JSON in request body", problems=[]).problems == []


class TestApiError:
    """Tests for ApiError."""

    def test_status_and_details(self) -> None:
        """Test ApiError keeps status and details."""
        error = ApiError("Topic 'x' not found", 404, {"success": False})
        assert str(error) == "Topic 'x' not found"
        assert error.status == 404
        assert error.details == {"success": False}

    def test_network_failure_status_zero(self) -> None:
        """Test details default to None."""
        error = ApiError("Network error: refused", 0)
        assert error.status == 0
        assert error.details is None
