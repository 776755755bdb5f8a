"""Tests for wire models, the ISO-8601 codec and the error taxonomy."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from goplaces.errors import ClientError, ErrorCode, error_code_from_server
from goplaces.jobs.models import Job, JobState
from goplaces.models.api import (
    JobPhase,
    JobResult,
    JobStatus,
    LoadingCategory,
    LoadingMessage,
    ServerErrorPayload,
    TaskAccepted,
)
from goplaces.models.collections import (
    CollectionPlace,
    CreatePlaceRequest,
    PlaceCollection,
    PlaceWithSelection,
    UpdateCollectionRequest,
)
from goplaces.models.dates import format_iso8601, parse_iso8601
from goplaces.models.place import Place
from goplaces.network.requests import encode_json_body


# ---------------------------------------------------------------------------
# ISO-8601
# ---------------------------------------------------------------------------

class TestISO8601:
    def test_fractional_and_whole_seconds_agree_after_truncation(self) -> None:
        fractional = parse_iso8601("2025-09-05T00:35:57.458710Z")
        whole = parse_iso8601("2025-09-05T00:35:57Z")
        assert fractional.replace(microsecond=0) == whole
        assert fractional.microsecond == 458710

    def test_short_fraction_is_padded(self) -> None:
        assert parse_iso8601("2025-09-05T00:35:57.5Z").microsecond == 500000

    def test_long_fraction_is_truncated(self) -> None:
        assert parse_iso8601("2025-09-05T00:35:57.123456789Z").microsecond == 123456

    def test_offset(self) -> None:
        parsed = parse_iso8601("2025-09-05T09:35:57+09:00")
        assert parsed == datetime(2025, 9, 5, 0, 35, 57, tzinfo=timezone.utc)

    def test_naive_string_is_utc(self) -> None:
        assert parse_iso8601("2025-09-05T00:35:57").tzinfo == timezone.utc

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_iso8601("yesterday")

    def test_format_is_whole_second_utc(self) -> None:
        value = datetime(2025, 9, 5, 9, 35, 57, 458710, tzinfo=timezone(timedelta(hours=9)))
        assert format_iso8601(value) == "2025-09-05T00:35:57Z"


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------

class TestTaskAccepted:
    def test_minimal(self) -> None:
        accepted = TaskAccepted.model_validate_json(b'{"task_id": "abc", "estimated_completion_seconds": 10}')
        assert accepted.task_id == "abc"
        assert accepted.status == "queued"
        assert accepted.quick_metadata.accessible is True

    def test_empty_task_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TaskAccepted.model_validate_json(b'{"task_id": ""}')

    def test_unknown_fields_ignored(self) -> None:
        accepted = TaskAccepted.model_validate({"task_id": "abc", "extra": 1, "quick_metadata": {"page_title": "x"}})
        assert accepted.quick_metadata.page_title == "x"


class TestJobStatus:
    def test_both_timestamp_precisions_decode(self) -> None:
        status = JobStatus.model_validate_json(
            b'{"task_id": "abc", "status": "processing",'
            b' "created_at": "2025-09-05T00:35:57.458710Z",'
            b' "updated_at": "2025-09-05T00:35:57Z"}'
        )
        assert status.created_at is not None and status.updated_at is not None
        assert status.created_at.replace(microsecond=0) == status.updated_at

    def test_phase(self) -> None:
        assert JobStatus(task_id="a", status="COMPLETE").phase is JobPhase.COMPLETE
        assert JobStatus(task_id="a", status="failed").is_terminal
        assert not JobStatus(task_id="a", status="processing").is_terminal

    def test_unknown_phase(self) -> None:
        status = JobStatus(task_id="a", status="warming_up")
        assert status.phase is None
        assert not status.is_terminal

    def test_progress_clamped(self) -> None:
        assert JobStatus(task_id="a", status="processing", progress_percentage=140).progress_percentage == 100
        assert JobStatus(task_id="a", status="processing", progress_percentage=-3).progress_percentage == 0

    def test_frozen(self) -> None:
        status = JobStatus(task_id="a", status="queued")
        with pytest.raises(ValidationError):
            status.status = "complete"

    def test_serializes_whole_seconds(self) -> None:
        status = JobStatus.model_validate({"task_id": "a", "status": "queued", "created_at": "2025-09-05T00:35:57.4Z"})
        assert '"created_at":"2025-09-05T00:35:57Z"' in status.model_dump_json()


class TestJobResult:
    def test_to_places(self) -> None:
        result = JobResult.model_validate(
            {
                "url": "https://example.com/p/1",
                "metadata": {"thumbnail_url": "https://cdn.example.com/t.jpg"},
                "places": [
                    {"name": "Test Place", "location": "1 Main St", "rating": 4.5, "confidence_score": 0.92},
                    {"name": "No Rating", "photo_url": "https://cdn.example.com/p.jpg"},
                ],
            }
        )
        places = result.to_places("https://example.com/p/1?utm_source=share#top")

        assert [p.name for p in places] == ["Test Place", "No Rating"]
        assert places[0].address == "1 Main St"
        assert places[0].rating == 4.5
        assert places[0].photo_url == "https://cdn.example.com/t.jpg"
        assert places[0].confidence_score == 0.92
        assert places[1].rating is None
        assert places[1].formatted_rating is None
        assert places[1].photo_url == "https://cdn.example.com/p.jpg"
        assert all(p.source_url == "https://example.com/p/1" for p in places)

    def test_no_places(self) -> None:
        result = JobResult(url="https://example.com/p/1")
        assert result.to_places("https://example.com/p/1") == []

    @pytest.mark.parametrize(
        "place",
        [
            {"name": "Test Place", "rating": -1.0},
            {"name": "Test Place", "confidence_score": 1.5},
        ],
    )
    def test_out_of_range_place_fields_rejected_on_decode(self, place: dict) -> None:
        with pytest.raises(ValidationError):
            JobResult.model_validate({"url": "https://example.com/p/1", "places": [place]})


class TestServerErrorPayload:
    def test_message(self) -> None:
        payload = ServerErrorPayload.model_validate({"code": "TASK_NOT_FOUND", "message": "gone"})
        assert payload.text == "gone"

    def test_detail_string(self) -> None:
        assert ServerErrorPayload.model_validate({"detail": "bad input"}).text == "bad input"

    def test_detail_list_has_no_text(self) -> None:
        assert ServerErrorPayload.model_validate({"detail": [{"loc": ["url"]}]}).text is None


class TestLoadingMessage:
    def test_category_enum(self) -> None:
        assert LoadingMessage(message="hi", category="analysis").category_enum is LoadingCategory.ANALYSIS
        assert LoadingMessage(message="hi", category="other").category_enum is LoadingCategory.RANDOM

    def test_every_category_has_fallback(self) -> None:
        for category in LoadingCategory:
            assert category.fallback_message


class TestCollectionModels:
    def test_collection(self) -> None:
        collection = PlaceCollection.model_validate(
            {
                "id": "c1",
                "name": "Weekend",
                "place_count": 1,
                "created_at": "2025-09-05T00:35:57.458710Z",
                "updated_at": "2025-09-05T00:35:58Z",
                "is_favorite": True,
            }
        )
        assert collection.theme_color == "coral"
        assert collection.place_count_text == "1 place"
        assert collection.tags == []
        assert collection.model_copy(update={"place_count": 3}).place_count_text == "3 places"

    def test_place_with_selection_marks_low_confidence(self) -> None:
        sure = PlaceWithSelection(id="p1", name="Cafe", confidence_score=0.95)
        unsure = PlaceWithSelection(id="p2", name="Bakery", confidence_score=0.4)
        assert (sure.display_name, sure.is_high_confidence) == ("Cafe", True)
        assert (unsure.display_name, unsure.is_high_confidence) == ("Bakery?", False)
        assert unsure.display_address == "Location unknown"

    def test_collection_place_uses_camel_case_keys(self) -> None:
        place = CollectionPlace.model_validate(
            {
                "id": "p1",
                "name": "Cafe",
                "address": "1 Main St",
                "socialURL": "https://example.com/p/1",
                "photoURL": "https://cdn.example.com/p.jpg",
                "addedDate": "2025-09-05",
            }
        )
        converted = place.to_place()
        assert converted.source_url == "https://example.com/p/1"
        assert converted.photo_url == "https://cdn.example.com/p.jpg"
        assert converted.rating is None

    def test_requests_encode_aliases_and_skip_unset_fields(self) -> None:
        create = CreatePlaceRequest(name="Cafe", social_url="https://example.com/p/1")
        update = UpdateCollectionRequest(is_favorite=False)

        assert json.loads(encode_json_body(create)) == {
            "name": "Cafe",
            "address": "",
            "socialURL": "https://example.com/p/1",
        }
        assert json.loads(encode_json_body(update)) == {"is_favorite": False}


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------

class TestPlace:
    def test_defaults(self) -> None:
        place = Place(name="", source_url="https://example.com")
        assert place.display_name == "Unnamed Place"
        assert place.display_address == "Unknown Address"
        assert place.rating is None
        assert place.confidence_score is None
        assert place.formatted_rating is None
        assert place.id

    def test_formatted_rating(self) -> None:
        assert Place(name="x", source_url="https://example.com", rating=4.56).formatted_rating == "4.6"

    def test_negative_rating_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Place(name="x", source_url="https://example.com", rating=-1)


class TestJob:
    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            Job(job_id="", source_url="https://example.com", submitted_at=0.0)

    def test_id_is_immutable(self) -> None:
        job = Job(job_id="abc", source_url="https://example.com", submitted_at=0.0)
        with pytest.raises(AttributeError):
            job.job_id = "other"
        job.phase = JobPhase.PROCESSING
        assert job.phase is JobPhase.PROCESSING

    def test_terminal_states(self) -> None:
        assert {s for s in JobState if s.is_terminal} == {JobState.COMPLETE, JobState.FAILED, JobState.TIMED_OUT}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestClientError:
    def test_default_message(self) -> None:
        error = ClientError.network_unavailable()
        assert error.code is ErrorCode.NETWORK_UNAVAILABLE
        assert str(error) == "Network connection unavailable"
        assert error.details == {}

    def test_processing_failed(self) -> None:
        error = ClientError.processing_failed("Could not fetch page", "abc")
        assert error.message == "Processing failed: Could not fetch page"
        assert error.details == {"stage_message": "Could not fetch page", "task_id": "abc"}

    def test_with_details_keeps_existing_keys(self) -> None:
        error = ClientError.task_not_found("abc").with_details(task_id="other", attempt=3)
        assert error.details == {"task_id": "abc", "attempt": 3}

    def test_codes_are_strings(self) -> None:
        assert ErrorCode.TOO_MANY_REQUESTS == "too_many_requests"


class TestErrorCodeFromServer:
    def test_known(self) -> None:
        assert error_code_from_server("TASK_NOT_COMPLETE") is ErrorCode.TASK_NOT_COMPLETE

    def test_unknown(self) -> None:
        assert error_code_from_server("RATE_LIMITED") is None
        assert error_code_from_server(None) is None
