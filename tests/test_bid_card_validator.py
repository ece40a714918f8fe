from datetime import date

import pytest

from conftest import TODAY
from instabids.core.exceptions import FieldValidationError
from instabids.utils.bid_card_validator import REQUIRED_FIELDS, validate


def fields_of(result):
    return [e.field for e in result.errors]


def test_valid_candidate_passes(valid_bid_card):
    result = validate(valid_bid_card, today=TODAY)
    assert result.ok
    assert result.errors == []
    assert result.value.title == "Kitchen remodel"
    assert result.value.bid_status == "not_open"
    assert result.value.visibility == "public"


@pytest.mark.parametrize("missing", ["title", "description", "status", "owner_id"])
def test_missing_required_field_reported_once(valid_bid_card, missing):
    del valid_bid_card[missing]
    result = validate(valid_bid_card, today=TODAY)
    assert not result.ok
    assert fields_of(result) == [missing]


def test_empty_candidate_lists_every_required_field():
    result = validate({}, draft=True, today=TODAY)
    assert sorted(fields_of(result)) == sorted(REQUIRED_FIELDS)


def test_blank_strings_count_as_missing(valid_bid_card):
    valid_bid_card["title"] = "   "
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["title"]


def test_timeline_end_before_start_fails_on_end(valid_bid_card):
    valid_bid_card["timeline_start"] = "2026-07-01"
    valid_bid_card["timeline_end"] = "2026-06-30"
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["timeline_end"]


def test_timeline_end_equal_to_start_passes(valid_bid_card):
    valid_bid_card["timeline_start"] = "2026-07-01"
    valid_bid_card["timeline_end"] = "2026-07-01"
    assert validate(valid_bid_card, today=TODAY).ok


def test_budget_max_below_min_fails_on_max(valid_bid_card):
    valid_bid_card["budget_min"] = 5000
    valid_bid_card["budget_max"] = 4000
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["budget_max"]


def test_negative_budget_rejected(valid_bid_card):
    valid_bid_card["budget_min"] = -1
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["budget_min"]
    assert result.errors[0].message == "Must not be negative"


def test_non_numeric_budget_is_field_scoped(valid_bid_card):
    valid_bid_card["budget_max"] = "lots"
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["budget_max"]
    assert result.errors[0].message == "Must be a number"


def test_bad_zip_code(valid_bid_card):
    valid_bid_card["zip_code"] = "7870"
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["zip_code"]


def test_nested_location_error_keeps_path(valid_bid_card):
    valid_bid_card["location"] = {"city": "Austin", "zip_code": "abc"}
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["location.zip_code"]


def test_bid_deadline_must_be_in_the_future(valid_bid_card):
    valid_bid_card["bid_deadline"] = TODAY.isoformat()
    result = validate(valid_bid_card, today=TODAY)
    assert fields_of(result) == ["bid_deadline"]


def test_iso_datetime_dates_reduce_to_the_day(valid_bid_card):
    valid_bid_card["bid_deadline"] = "2026-05-20T15:30:00.000Z"
    valid_bid_card["timeline_start"] = "2026-06-01T08:00:00Z"
    valid_bid_card["timeline_end"] = "2026-06-01T17:45:00+00:00"
    result = validate(valid_bid_card, today=TODAY)
    assert result.ok, fields_of(result)
    assert result.value.bid_deadline == date(2026, 5, 20)
    assert result.value.timeline_start == result.value.timeline_end == date(2026, 6, 1)


def test_garbage_datetime_is_still_rejected(valid_bid_card):
    valid_bid_card["bid_deadline"] = "2026-05-20Tnoon"
    assert fields_of(validate(valid_bid_card, today=TODAY)) == ["bid_deadline"]


def test_past_bid_deadline_allowed_when_editing(valid_bid_card):
    valid_bid_card["bid_deadline"] = "2026-01-01"
    assert validate(valid_bid_card, is_new=False, today=TODAY).ok


def test_terms_required_unless_draft(valid_bid_card):
    valid_bid_card["terms_accepted"] = False
    assert fields_of(validate(valid_bid_card, today=TODAY)) == ["terms_accepted"]
    assert validate(valid_bid_card, draft=True, today=TODAY).ok


def test_status_and_bid_status_are_independent(valid_bid_card):
    valid_bid_card["status"] = "draft"
    valid_bid_card["bid_status"] = "accepting_bids"
    result = validate(valid_bid_card, today=TODAY)
    assert result.value.status == "draft"
    assert result.value.bid_status == "accepting_bids"


def test_unknown_status_is_rejected(valid_bid_card):
    valid_bid_card["status"] = "active"
    assert fields_of(validate(valid_bid_card, today=TODAY)) == ["status"]


def test_raise_for_errors():
    with pytest.raises(FieldValidationError) as exc_info:
        validate({"title": "x"}, today=TODAY).raise_for_errors()
    assert "description" in exc_info.value.fields
