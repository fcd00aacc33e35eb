"""Tests for source record normalization."""

from datetime import UTC, datetime

import pytest

from src.activity.errors import MalformedRecordError
from src.activity.normalizer import normalize_record, normalize_records
from src.models.activity import ActivityType, Priority

CREATED = "2024-01-10T09:30:00+00:00"


class TestCompanyUpdate:
    """Tests for company update posts."""

    def test_maps_author_and_content(self):
        """Should use the author as actor and content as detail."""
        item = normalize_record(
            ActivityType.COMPANY_UPDATE,
            {
                "id": "u1",
                "company_id": "c1",
                "content": "Kickoff went well",
                "created_at": CREATED,
                "author_id": "user-1",
                "author_name": "Dana",
            },
        )

        assert item.id == "update-u1"
        assert item.type is ActivityType.COMPANY_UPDATE
        assert item.actor is not None
        assert item.actor.display_name == "Dana"
        assert item.summary == "Dana posted an update"
        assert item.detail == "Kickoff went well"
        assert item.is_action_item is False

    def test_missing_author_name_falls_back(self):
        """Should label unnamed authors as 'Team member'."""
        item = normalize_record(
            ActivityType.COMPANY_UPDATE,
            {
                "id": "u1",
                "company_id": "c1",
                "content": "x",
                "created_at": CREATED,
                "author_id": "user-1",
            },
        )
        assert item.actor.display_name == "Team member"

    def test_naive_timestamp_is_utc(self):
        """Should treat naive timestamps as UTC."""
        item = normalize_record(
            ActivityType.COMPANY_UPDATE,
            {"id": "u1", "company_id": "c1", "content": "x", "created_at": "2024-01-10 09:30:00"},
        )
        assert item.timestamp == datetime(2024, 1, 10, 9, 30, tzinfo=UTC)


class TestActionableTypes:
    """Tests for types whose state drives classification."""

    def test_file_flag_keeps_audience_and_link(self):
        """Should carry flagged_for and link to the file."""
        item = normalize_record(
            ActivityType.FILE_FLAG,
            {
                "id": "f1",
                "company_id": "c1",
                "file_id": "file-9",
                "file_name": "Brand guide.pdf",
                "flag_message": "Wrong logo",
                "flagged_for": "Client",
                "resolved": 0,
                "flagged_by": "user-2",
                "created_at": CREATED,
            },
        )

        assert item.id == "flag-f1"
        assert item.state.flagged_for == "client"
        assert item.state.resolved is False
        assert item.link.kind == "file"
        assert item.link.id == "file-9"

    def test_change_request_unresolved_by_default(self):
        """Should mark change requests unresolved unless approved."""
        item = normalize_record(
            ActivityType.CHANGE_REQUEST,
            {
                "id": "cr1",
                "company_id": "c1",
                "project_id": "p1",
                "project_name": "Launch",
                "change_request_text": "Swap hero image",
                "change_request_submitted_at": CREATED,
            },
        )
        assert item.state.resolved is False
        assert item.summary == "Change request on Launch"
        assert item.link.id == "p1"

    def test_change_request_resolved_when_approved(self):
        """Should mark change requests resolved once the deliverable is approved."""
        item = normalize_record(
            ActivityType.CHANGE_REQUEST,
            {
                "id": "cr1",
                "company_id": "c1",
                "project_id": "p1",
                "change_request_text": "Swap hero image",
                "change_request_submitted_at": CREATED,
                "is_approved": True,
            },
        )
        assert item.state.resolved is True

    def test_blocked_project_defaults_to_urgent(self):
        """Should default blocked projects to urgent priority."""
        item = normalize_record(
            ActivityType.PROJECT_BLOCKED,
            {
                "id": "p1",
                "company_id": "c1",
                "name": "Launch",
                "updated_at": CREATED,
            },
        )
        assert item.priority is Priority.URGENT
        assert item.state.is_blocked is True
        assert item.detail == "This project is currently blocked"

    def test_deliverable_review_pending(self):
        """Should keep is_approved None for pending deliverables."""
        item = normalize_record(
            ActivityType.DELIVERABLE_REVIEW,
            {
                "id": "d1",
                "company_id": "c1",
                "project_id": "p1",
                "content": "Homepage v2",
                "priority": "important",
                "created_at": CREATED,
            },
        )
        assert item.state.is_approved is None
        assert item.priority is Priority.IMPORTANT


class TestInformationalTypes:
    """Tests for informational types."""

    def test_hours_logged_summary(self):
        """Should summarize logged hours."""
        item = normalize_record(
            ActivityType.HOURS_LOGGED,
            {
                "id": "t1",
                "company_id": "c1",
                "user_id": "user-1",
                "hours": 2.5,
                "created_at": CREATED,
            },
        )
        assert item.summary == "2.5 hours logged"

    def test_negative_hours_rejected(self):
        """Should reject negative hour entries."""
        with pytest.raises(MalformedRecordError):
            normalize_record(
                ActivityType.HOURS_LOGGED,
                {
                    "id": "t1",
                    "company_id": "c1",
                    "user_id": "user-1",
                    "hours": -1,
                    "created_at": CREATED,
                },
            )

    def test_credential_never_exposes_value(self):
        """Should drop the secret value from credential records."""
        item = normalize_record(
            ActivityType.CREDENTIAL_ADDED,
            {
                "id": "k1",
                "company_id": "c1",
                "label": "WordPress admin",
                "value": "hunter2",
                "created_at": CREATED,
            },
        )
        assert "hunter2" not in item.model_dump_json()
        assert item.summary == "Credential added: WordPress admin"

    def test_approved_deliverable_prefers_approval_time(self):
        """Should use approved_at when present."""
        item = normalize_record(
            ActivityType.DELIVERABLE_APPROVED,
            {
                "id": "d1",
                "company_id": "c1",
                "project_id": "p1",
                "created_at": CREATED,
                "approved_at": "2024-01-12T10:00:00+00:00",
            },
        )
        assert item.timestamp == datetime(2024, 1, 12, 10, tzinfo=UTC)

    def test_every_type_has_a_mapping(self):
        """Should normalize a minimal record of every activity type."""
        minimal = {
            "id": "x",
            "company_id": "c1",
            "project_id": "p1",
            "file_id": "f1",
            "name": "Thing",
            "title": "Thing",
            "label": "Thing",
            "content": "Thing",
            "flag_message": "Thing",
            "flagged_for": "team",
            "change_request_text": "Thing",
            "change_request_submitted_at": CREATED,
            "user_id": "u1",
            "hours": 1,
            "created_at": CREATED,
            "updated_at": CREATED,
        }
        for activity_type in ActivityType:
            item = normalize_record(activity_type, minimal)
            assert item.type is activity_type


class TestMalformedRecords:
    """Tests for dropping bad records."""

    def test_missing_required_field_raises(self):
        """Should raise MalformedRecordError naming the field."""
        with pytest.raises(MalformedRecordError) as exc_info:
            normalize_record(
                ActivityType.FILE_FLAG,
                {"id": "f1", "company_id": "c1", "created_at": CREATED},
            )
        assert exc_info.value.record_id == "f1"
        assert "flag_message" in exc_info.value.reason

    def test_garbled_timestamp_raises(self):
        """Should reject unparseable timestamps."""
        with pytest.raises(MalformedRecordError):
            normalize_record(
                ActivityType.NOTE_ADDED,
                {"id": "n1", "company_id": "c1", "content": "x", "created_at": "yesterday-ish"},
            )

    def test_non_mapping_raises(self):
        """Should reject records that are not dicts."""
        with pytest.raises(MalformedRecordError):
            normalize_record(ActivityType.NOTE_ADDED, ["not", "a", "record"])

    def test_normalize_records_drops_and_reports(self):
        """Should keep good records in order and report bad ones."""
        items, errors = normalize_records(
            ActivityType.NOTE_ADDED,
            [
                {"id": "n1", "company_id": "c1", "content": "a", "created_at": CREATED},
                {"id": "n2", "company_id": "c1"},
                {"id": "n3", "company_id": "c1", "content": "c", "created_at": CREATED},
            ],
        )

        assert [i.id for i in items] == ["note-n1", "note-n3"]
        assert len(errors) == 1
        warning = errors[0].to_warning()
        assert warning.code == "malformed_record"
        assert warning.record_id == "n2"
        assert warning.source is ActivityType.NOTE_ADDED
