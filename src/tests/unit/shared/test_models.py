"""Unit tests for shared Pydantic models."""

from datetime import UTC, datetime

from shared.models import (
    APIResponse,
    DomainEvent,
    ErrorInfo,
    EventCategory,
    EventType,
    PaginationMeta,
    PaginationParams,
)


class TestPaginationMeta:
    """Test pagination window math."""

    def test_last_page(self) -> None:
        """47 items at 10 per page: page 5 is the last page."""
        meta = PaginationMeta.from_counts(page=5, per_page=10, total_items=47)
        assert meta.total_pages == 5
        assert meta.has_next_page is False
        assert meta.has_prev_page is True

    def test_first_page(self) -> None:
        meta = PaginationMeta.from_counts(page=1, per_page=10, total_items=47)
        assert meta.has_next_page is True
        assert meta.has_prev_page is False

    def test_empty(self) -> None:
        """Zero items means zero pages and no neighbours."""
        meta = PaginationMeta.from_counts(page=1, per_page=10, total_items=0)
        assert meta.total_pages == 0
        assert meta.has_next_page is False
        assert meta.has_prev_page is False

    def test_exact_multiple(self) -> None:
        meta = PaginationMeta.from_counts(page=2, per_page=10, total_items=20)
        assert meta.total_pages == 2
        assert meta.has_next_page is False

    def test_camel_case_serialization(self) -> None:
        meta = PaginationMeta.from_counts(page=1, per_page=10, total_items=11)
        assert meta.model_dump(by_alias=True) == {
            "currentPage": 1,
            "perPage": 10,
            "totalPages": 2,
            "totalItems": 11,
            "hasNextPage": True,
            "hasPrevPage": False,
        }


class TestPaginationParams:
    """Test pagination parameters."""

    def test_defaults(self) -> None:
        params = PaginationParams()
        assert params.page == 1
        assert params.limit == 10
        assert params.offset == 0

    def test_offset(self) -> None:
        assert PaginationParams(page=3, limit=25).offset == 50


class TestAPIResponse:
    """Test the response envelope."""

    def test_ok_envelope(self) -> None:
        envelope = APIResponse.ok(200, "Users retrieved successfully", data={"id": 1})
        body = envelope.to_json()
        assert body == {
            "success": True,
            "statusCode": 200,
            "message": "Users retrieved successfully",
            "data": {"id": 1},
        }

    def test_fail_envelope(self) -> None:
        envelope = APIResponse.fail(
            404,
            "User not found",
            error=ErrorInfo(code="NOT_FOUND", message="User not found", request_id="abc"),
        )
        body = envelope.to_json()
        assert body["success"] is False
        assert body["statusCode"] == 404
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["requestId"] == "abc"
        assert "timestamp" in body["error"]
        assert "data" not in body


class TestDomainEvent:
    """Test domain event model."""

    def test_routing_key(self) -> None:
        event = DomainEvent(
            category=EventCategory.USER.value,
            event_type=EventType.CREATED.value,
            subject_id=7,
        )
        assert event.routing_key == "user.created"

    def test_message_body(self) -> None:
        timestamp = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        event = DomainEvent(
            category="system",
            event_type="health_check",
            data={"status": "healthy"},
            timestamp=timestamp,
        )
        assert event.to_message() == {
            "event_type": "health_check",
            "subject_id": None,
            "data": {"status": "healthy"},
            "timestamp": "2024-05-01T12:00:00+00:00",
        }

    def test_timestamp_defaults_to_utc(self) -> None:
        event = DomainEvent(category="user", event_type="deleted", subject_id=1)
        assert event.timestamp.tzinfo is not None
