# instabids/routers/bid_card_router.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from instabids.core.database import get_db
from instabids.core.exceptions import FieldError, FieldValidationError, PermissionDeniedError
from instabids.core.security import CurrentUser, get_current_user
from instabids.repositories.bid_card_repo import BidCardRepository
from instabids.schemas.bid_card_schema import BidCardEnvelope, BidCardList, BidCardSaved, BidCardOut
from instabids.services.bid_card_service import BidCardService
from instabids.services.media_storage import MediaStorage, get_media_storage
from instabids.utils.bid_card_validator import validate
from instabids.utils.multipart import parse_data_field, parse_json_field, read_uploads

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/bid-cards",
    tags=["Bid Cards"],
    dependencies=[Depends(get_current_user)]
)


def get_bid_card_service(
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
) -> BidCardService:
    return BidCardService(BidCardRepository(db), storage)


def _apply_status(raw: Dict[str, Any], draft: bool) -> Dict[str, Any]:
    # ?draft=true saves whatever is there; otherwise the card is published
    if draft:
        raw["status"] = "draft"
    elif not raw.get("status") or raw.get("status") == "draft":
        raw["status"] = "published"
    return raw


def _ensure_owner(bid_card: BidCardOut, user: CurrentUser) -> None:
    if bid_card.owner_id != user.user_id:
        raise PermissionDeniedError("You do not have access to this bid card")


@router.post("", response_model=BidCardSaved, status_code=status.HTTP_201_CREATED)
async def create_bid_card(
    request: Request,
    draft: bool = Query(False),
    service: BidCardService = Depends(get_bid_card_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create a bid card from the wizard.

    - multipart `data`: JSON object with the bid card fields
    - files: `file-0..n` or `files`
    - `?draft=true` stores it as a draft (terms not required)
    """
    form = await request.form()
    raw = parse_data_field(form)
    raw["owner_id"] = current_user.user_id
    data = validate(_apply_status(raw, draft), draft=draft).raise_for_errors()

    files = await read_uploads(form)
    bid_card_id = await service.create_bid_card(data, files)
    return BidCardSaved(id=bid_card_id)


@router.get("", response_model=BidCardList)
async def list_my_bid_cards(
    service: BidCardService = Depends(get_bid_card_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Bid cards of the current user, newest first."""
    return BidCardList(bidCards=await service.list_bid_cards(current_user.user_id))


@router.get("/{bid_card_id}", response_model=BidCardEnvelope)
async def get_bid_card(
    bid_card_id: str,
    service: BidCardService = Depends(get_bid_card_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    bid_card = await service.get_bid_card(bid_card_id)
    _ensure_owner(bid_card, current_user)
    return BidCardEnvelope(bidCard=bid_card)


@router.patch("/{bid_card_id}", response_model=BidCardSaved)
async def update_bid_card(
    bid_card_id: str,
    request: Request,
    draft: bool = Query(False),
    service: BidCardService = Depends(get_bid_card_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Re-submit the edit form of an existing bid card.

    - `remove_media_ids`: JSON list of media ids to drop
    - new files are appended after the existing media
    """
    existing = await service.get_bid_card(bid_card_id)
    _ensure_owner(existing, current_user)

    form = await request.form()
    raw = parse_data_field(form)
    raw["owner_id"] = existing.owner_id
    data = validate(_apply_status(raw, draft), draft=draft, is_new=False).raise_for_errors()

    remove_media_ids = parse_json_field(form, "remove_media_ids", default=[])
    if not isinstance(remove_media_ids, list):
        raise FieldValidationError(
            [FieldError(field="remove_media_ids", message="Must be a JSON list of ids")]
        )

    files = await read_uploads(form)
    await service.update_bid_card(bid_card_id, data, files, [str(i) for i in remove_media_ids])
    return BidCardSaved(id=bid_card_id)
