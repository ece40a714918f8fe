# instabids/schemas/bid_card_schema.py
import enum
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


class BidCardStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    accepting_bids = "accepting_bids"
    awarded = "awarded"
    closed = "closed"


# Bidding progress; independent of BidCardStatus
class BidStatus(str, enum.Enum):
    not_open = "not_open"
    accepting_bids = "accepting_bids"
    reviewing = "reviewing"
    awarded = "awarded"
    closed = "closed"


class JobSize(str, enum.Enum):
    small = "small"
    medium = "medium"
    large = "large"
    extra_large = "extra_large"


class Visibility(str, enum.Enum):
    public = "public"
    private = "private"
    group = "group"


class MediaType(str, enum.Enum):
    photo = "photo"
    video = "video"
    document = "document"
    measurement = "measurement"


ZIP_CODE_PATTERN = r"^\d{5}(-\d{4})?$"

_DATETIME = TypeAdapter(datetime)


# 1. Structured address
class Address(BaseModel):
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = Field(None, pattern=ZIP_CODE_PATTERN)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# 2. Media attached to a bid card (output)
class BidCardMediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    media_type: MediaType
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    url: Optional[str] = None
    file_path: Optional[str] = None
    display_order: int = 0


# 3. Lenient form data: every field optional, types still enforced.
#    Used while the wizard is filling in data step by step.
class BidCardCandidate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    owner_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None

    job_type_id: Optional[str] = None
    job_category_id: Optional[str] = None
    intention_type_id: Optional[str] = None
    property_type: Optional[str] = None
    service_type: Optional[str] = None

    status: Optional[BidCardStatus] = None
    bid_status: BidStatus = BidStatus.not_open
    visibility: Visibility = Visibility.public

    job_size: Optional[JobSize] = None
    property_size: Optional[str] = None
    square_footage: Optional[float] = Field(None, ge=0)

    zip_code: Optional[str] = Field(None, pattern=ZIP_CODE_PATTERN)
    city: Optional[str] = None
    state: Optional[str] = None
    location: Optional[Address] = None

    timeline_horizon_id: Optional[str] = None
    timeline_start: Optional[date] = None
    timeline_end: Optional[date] = None
    bid_deadline: Optional[date] = None

    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)

    group_bidding_enabled: bool = False
    terms_accepted: Optional[bool] = None
    marketing_consent: Optional[bool] = None

    special_requirements: Optional[str] = None
    guidance_for_bidders: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        # HTML forms send "" for untouched inputs
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("timeline_start", "timeline_end", "bid_deadline", mode="before")
    @classmethod
    def datetime_to_date(cls, v: Any) -> Any:
        # date pickers send toISOString() values ("2026-05-20T15:30:00.000Z")
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            try:
                return _DATETIME.validate_python(v.strip()).date()
            except ValidationError:
                return v
        return v


# 4. Data that passed full validation; what the service layer accepts
class BidCardData(BidCardCandidate):
    owner_id: str
    title: str = Field(..., max_length=255)
    description: str
    status: BidCardStatus
    job_type_id: str


# 5. Stored bid card returned to clients
class BidCardOut(BidCardData):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    media: List[BidCardMediaOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# 6. Response bodies
class BidCardSaved(BaseModel):
    success: bool = True
    id: str


class BidCardEnvelope(BaseModel):
    bidCard: BidCardOut


class BidCardList(BaseModel):
    bidCards: List[BidCardOut] = []


class MockBidCardCreated(BaseModel):
    success: bool = True
    id: str
    message: str


def to_record_dict(data: BidCardData) -> Dict[str, Any]:
    """Column values for a bid card row (media handled separately)."""
    values = data.model_dump(exclude={"location"})
    values["location"] = data.location.model_dump() if data.location else None
    return values
