# instabids/utils/bid_card_wizard.py
"""
Multi-step bid card wizard.

Pure state plus delegation: the wizard keeps the current step, the form data
collected so far and the attached media files. Persisting is left to the
injected on_submit / on_save_draft callbacks.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from instabids.core.exceptions import FieldError
from instabids.schemas.bid_card_schema import BidCardData, BidCardStatus
from instabids.utils.bid_card_validator import field_root, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WizardStep:
    key: str
    title: str
    fields: Tuple[str, ...] = ()


STEPS: Tuple[WizardStep, ...] = (
    WizardStep("project_type", "Project Type",
               ("job_type_id", "job_category_id", "intention_type_id", "property_type", "service_type")),
    WizardStep("project_details", "Project Details",
               ("title", "description", "job_size", "property_size", "square_footage", "special_requirements")),
    WizardStep("timeline_budget", "Timeline & Budget",
               ("timeline_horizon_id", "timeline_start", "timeline_end", "bid_deadline",
                "budget_min", "budget_max", "group_bidding_enabled", "visibility", "guidance_for_bidders")),
    WizardStep("location", "Location", ("zip_code", "city", "state", "location")),
    WizardStep("media_upload", "Media Upload"),
    WizardStep("review_submit", "Review & Submit", ("terms_accepted", "marketing_consent")),
)

# field -> index of the step that collects it
FIELD_STEPS: Dict[str, int] = {name: index for index, step in enumerate(STEPS) for name in step.fields}

SubmitCallback = Callable[[BidCardData, List[Any]], Awaitable[str]]


@dataclass
class StepResult:
    advanced: bool
    step: int
    errors: List[FieldError] = field(default_factory=list)


@dataclass
class SubmissionResult:
    ok: bool
    bid_card_id: Optional[str] = None
    errors: List[FieldError] = field(default_factory=list)
    # first step owning an offending field, so the UI can route back to it
    error_step: Optional[int] = None


def step_for_field(name: str) -> Optional[int]:
    return FIELD_STEPS.get(field_root(name))


class BidCardWizard:
    def __init__(
        self,
        owner_id: str,
        on_submit: SubmitCallback,
        on_save_draft: SubmitCallback,
        initial_data: Optional[Dict[str, Any]] = None,
        is_new: bool = True,
        today: Optional[date] = None,
    ):
        self.owner_id = owner_id
        self.on_submit = on_submit
        self.on_save_draft = on_save_draft
        self.is_new = is_new
        self.today = today
        self.data: Dict[str, Any] = dict(initial_data or {})
        self.media_files: List[Any] = []
        self.errors: List[FieldError] = []
        self._step = 0

    @classmethod
    def for_edit(cls, existing: BaseModel, on_submit: SubmitCallback, on_save_draft: SubmitCallback, **kwargs) -> "BidCardWizard":
        """Wizard pre-filled from a stored bid card (edit flow)."""
        data = existing.model_dump(exclude={"id", "media", "created_at", "updated_at", "owner_id", "status"})
        return cls(existing.owner_id, on_submit, on_save_draft, initial_data=data, is_new=False, **kwargs)

    # --- state ---

    @property
    def current_step(self) -> int:
        return self._step

    @property
    def step(self) -> WizardStep:
        return STEPS[self._step]

    @property
    def is_last_step(self) -> bool:
        return self._step == len(STEPS) - 1

    def update(self, **fields: Any) -> None:
        self.data.update(fields)

    def attach_media(self, file: Any) -> None:
        self.media_files.append(file)

    def remove_media(self, index: int) -> Any:
        return self.media_files.pop(index)

    # --- validation ---

    def _candidate(self, status: BidCardStatus) -> Dict[str, Any]:
        return {**self.data, "owner_id": self.owner_id, "status": status.value}

    def validate_step(self, index: Optional[int] = None) -> List[FieldError]:
        """Errors for the rules that concern the given step's fields only."""
        index = self._step if index is None else index
        result = validate(self._candidate(BidCardStatus.draft), draft=True, is_new=self.is_new, today=self.today)
        return result.errors_for(set(STEPS[index].fields))

    def is_step_valid(self, index: Optional[int] = None) -> bool:
        return not self.validate_step(index)

    # --- transitions ---

    def next(self) -> StepResult:
        if self.is_last_step:
            return StepResult(advanced=False, step=self._step)
        errors = self.validate_step()
        self.errors = errors
        if errors:
            return StepResult(advanced=False, step=self._step, errors=errors)
        self._step += 1
        return StepResult(advanced=True, step=self._step)

    def back(self) -> bool:
        if self._step == 0:
            return False
        self._step -= 1
        return True

    def jump_to(self, index: int) -> bool:
        # only already-reached steps; later steps must go through next()
        if index < 0 or index > self._step:
            return False
        self._step = index
        return True

    # --- terminal actions ---

    def _failed(self, errors: Sequence[FieldError]) -> SubmissionResult:
        self.errors = list(errors)
        steps = [s for s in (step_for_field(e.field) for e in errors) if s is not None]
        return SubmissionResult(ok=False, errors=list(errors), error_step=min(steps) if steps else None)

    async def submit(self) -> SubmissionResult:
        result = validate(self._candidate(BidCardStatus.published), is_new=self.is_new, today=self.today)
        if not result.ok:
            logger.info(f"Bid card submission rejected: {[e.field for e in result.errors]}")
            return self._failed(result.errors)
        bid_card_id = await self.on_submit(result.value, list(self.media_files))
        self.errors = []
        return SubmissionResult(ok=True, bid_card_id=bid_card_id)

    async def save_draft(self) -> SubmissionResult:
        result = validate(self._candidate(BidCardStatus.draft), draft=True, is_new=self.is_new, today=self.today)
        if not result.ok:
            return self._failed(result.errors)
        bid_card_id = await self.on_save_draft(result.value, list(self.media_files))
        self.errors = []
        return SubmissionResult(ok=True, bid_card_id=bid_card_id)
