# instabids/utils/bid_card_validator.py
"""
Bid card validation.

`validate` never raises for bad input: it returns a ValidationResult whose
errors are all field-scoped ({field, message}) so a form can send the user
back to the step that owns the offending field.
"""
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from pydantic import BaseModel, ValidationError

from instabids.core.exceptions import FieldValidationError, FieldError
from instabids.schemas.bid_card_schema import BidCardCandidate, BidCardData

REQUIRED_FIELDS = ("title", "description", "status", "owner_id", "job_type_id")

REQUIRED_MESSAGES = {
    "title": "Title is required",
    "description": "Description is required",
    "status": "Status is required",
    "owner_id": "Owner is required",
    "job_type_id": "Please select a project type",
}


class ValidationResult(BaseModel):
    ok: bool
    value: Optional[BidCardData] = None
    errors: List[FieldError] = []

    def errors_for(self, fields: Set[str]) -> List[FieldError]:
        return [e for e in self.errors if field_root(e.field) in fields]

    def raise_for_errors(self) -> BidCardData:
        if not self.ok:
            raise FieldValidationError(self.errors)
        return self.value


def field_root(field: str) -> str:
    """'location.city' -> 'location'"""
    return field.split(".", 1)[0]


def _message_for(err: Dict[str, Any]) -> str:
    kind = err.get("type", "")
    if kind.startswith("float_") or kind.startswith("int_"):
        return "Must be a number"
    if kind.startswith("date_") or kind.startswith("datetime_"):
        return "Must be a valid date (YYYY-MM-DD)"
    if kind.startswith("bool_"):
        return "Must be true or false"
    if kind == "string_pattern_mismatch":
        return "Must be a valid ZIP code"
    if kind == "greater_than_equal":
        return "Must not be negative" if err.get("ctx", {}).get("ge") == 0 else err["msg"]
    return err["msg"]


def _coerce(raw: Dict[str, Any]) -> tuple[BidCardCandidate, List[FieldError]]:
    """
    Parse the raw mapping. Fields that fail type coercion are reported and
    dropped so the remaining rules can still run on the rest.
    """
    try:
        return BidCardCandidate.model_validate(raw), []
    except ValidationError as e:
        errors = []
        bad_fields = set()
        for err in e.errors():
            loc = [str(part) for part in err["loc"]]
            errors.append(FieldError(field=".".join(loc), message=_message_for(err)))
            bad_fields.add(loc[0])
        cleaned = {k: v for k, v in raw.items() if k not in bad_fields}
        return BidCardCandidate.model_validate(cleaned), errors


# --- Rules: each returns the errors it finds on the parsed candidate ---

def check_required(parsed: BidCardCandidate) -> List[FieldError]:
    errors = []
    for name in REQUIRED_FIELDS:
        value = getattr(parsed, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(FieldError(field=name, message=REQUIRED_MESSAGES[name]))
    return errors


def check_timeline(parsed: BidCardCandidate) -> List[FieldError]:
    if parsed.timeline_start and parsed.timeline_end and parsed.timeline_end < parsed.timeline_start:
        return [FieldError(field="timeline_end", message="End date cannot be before the start date")]
    return []


def check_budget(parsed: BidCardCandidate) -> List[FieldError]:
    if parsed.budget_min is not None and parsed.budget_max is not None and parsed.budget_max < parsed.budget_min:
        return [FieldError(field="budget_max", message="Maximum budget cannot be less than minimum budget")]
    return []


def check_bid_deadline(parsed: BidCardCandidate, today: date) -> List[FieldError]:
    if parsed.bid_deadline is not None and parsed.bid_deadline <= today:
        return [FieldError(field="bid_deadline", message="Bid deadline must be in the future")]
    return []


def check_terms(parsed: BidCardCandidate) -> List[FieldError]:
    if parsed.terms_accepted is not True:
        return [FieldError(field="terms_accepted", message="You must accept the terms to submit")]
    return []


def validate(
    candidate: Union[Mapping[str, Any], BaseModel],
    *,
    draft: bool = False,
    is_new: bool = True,
    today: Optional[date] = None,
) -> ValidationResult:
    """
    Validate a candidate bid card.

    - draft: skip the terms_accepted rule (saving a draft)
    - is_new: enforce that bid_deadline lies in the future (creation only)
    - today: reference date for the deadline rule, defaults to date.today()
    """
    if isinstance(candidate, BaseModel):
        raw = candidate.model_dump(exclude_unset=True)
    else:
        raw = dict(candidate)

    parsed, errors = _coerce(raw)
    failed = {field_root(e.field) for e in errors}

    found = check_required(parsed) + check_timeline(parsed) + check_budget(parsed)
    if is_new:
        found += check_bid_deadline(parsed, today or date.today())
    if not draft:
        found += check_terms(parsed)
    # a field that already failed coercion is reported once
    errors.extend(e for e in found if e.field not in failed)

    if errors:
        return ValidationResult(ok=False, errors=errors)
    return ValidationResult(ok=True, value=BidCardData.model_validate(parsed.model_dump()))
