from datetime import datetime, timedelta, timezone

import pytest

from assignhub.errors import AssignmentValidationError
from assignhub.schemas.assignment import AssignmentDraft, validate_assignment_form

from conftest import NOW, make_assignment


def _draft(**overrides) -> AssignmentDraft:
    data = make_assignment().model_dump(exclude={"id", "created_at", "updated_at"})
    data.update(overrides)
    return AssignmentDraft(**data)


def test_complete_form_is_valid() -> None:
    assert validate_assignment_form(_draft()) == {}


def test_empty_form_reports_every_field() -> None:
    draft = AssignmentDraft(start_date=NOW, due_date=NOW)
    assert validate_assignment_form(draft) == {
        "title": "Assignment title is required",
        "description": "Assignment description is required",
        "course_id": "Course selection is required",
        "class_ids": "At least one class must be selected",
        "content_ids": "At least one content item must be selected",
        "assigned_to": "At least one student must be assigned",
        "due_date": "Due date must be after start date",
    }


@pytest.mark.parametrize("attempts, valid", [(0, False), (1, True), (10, True), (11, False)])
def test_max_attempts_bounds(attempts, valid) -> None:
    errors = validate_assignment_form(_draft(max_attempts=attempts))
    assert ("max_attempts" not in errors) is valid


@pytest.mark.parametrize("limit, valid", [(None, True), (0, False), (1, True), (300, True), (301, False)])
def test_time_limit_bounds(limit, valid) -> None:
    errors = validate_assignment_form(_draft(time_limit=limit))
    assert ("time_limit" not in errors) is valid


def test_due_date_must_follow_start() -> None:
    errors = validate_assignment_form(_draft(start_date=NOW, due_date=NOW - timedelta(minutes=1)))
    assert errors == {"due_date": "Due date must be after start date"}


def test_naive_dates_are_read_as_utc() -> None:
    draft = _draft(start_date=datetime(2026, 10, 19, 8, 0), due_date=datetime(2026, 10, 20, 8, 0))
    assert draft.start_date.tzinfo == timezone.utc


def test_defaults_for_new_form() -> None:
    draft = AssignmentDraft.defaults("teacher-1", NOW)
    assert draft.assigned_by == "teacher-1"
    assert draft.due_date - draft.start_date == timedelta(days=7)
    assert draft.is_active
    assert draft.allow_late_submission
    assert draft.max_attempts == 3


def test_from_record_drops_audit_fields() -> None:
    draft = AssignmentDraft.from_record(make_assignment())
    assert draft.title == "Mathematics Quiz"
    assert not hasattr(draft, "id")


def test_validation_error_carries_field_messages() -> None:
    error = AssignmentValidationError({"title": "Assignment title is required"})
    assert error.errors == {"title": "Assignment title is required"}
    assert "title" in str(error)
