# instabids/routers/mock_bid_card_router.py
# Development-only bid card API backed by memory (enabled with ENABLE_MOCK_API).
# No authentication; everything is lost on restart.
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from instabids.repositories.mock_bid_card_repo import InMemoryBidCardRepository
from instabids.schemas.bid_card_schema import BidCardEnvelope, BidCardList, BidCardOut, MockBidCardCreated
from instabids.services.bid_card_service import BidCardService
from instabids.services.media_storage import InMemoryMediaStorage
from instabids.utils.bid_card_validator import validate
from instabids.utils.multipart import parse_data_field, read_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mock-bid-cards", tags=["Mock Bid Cards"])

MOCK_OWNER_ID = "mock-user"

mock_repository = InMemoryBidCardRepository()
mock_storage = InMemoryMediaStorage()


def get_mock_bid_card_service() -> BidCardService:
    return BidCardService(mock_repository, mock_storage)


def sample_bid_card(bid_card_id: str) -> BidCardOut:
    """A fixed kitchen renovation card, returned under whatever id was asked for."""
    return BidCardOut.model_validate({
        "id": bid_card_id,
        "owner_id": "user-123",
        "title": "Kitchen Renovation Project",
        "description": "Complete kitchen renovation including new cabinets, countertops, and appliances.",
        "status": "published",
        "job_type_id": "renovation",
        "job_category_id": "kitchen",
        "job_size": "medium",
        "intention_type_id": "upgrade",
        "timeline_horizon_id": "within_3_months",
        "timeline_start": "2023-06-01",
        "timeline_end": "2023-08-31",
        "budget_min": 15000,
        "budget_max": 25000,
        "zip_code": "78701",
        "location": {
            "address_line1": "123 Main St",
            "city": "Austin",
            "state": "TX",
            "country": "USA",
            "zip_code": "78701",
        },
        "group_bidding_enabled": False,
        "visibility": "public",
        "created_at": "2023-04-15T12:00:00Z",
        "updated_at": "2023-04-15T12:00:00Z",
        "media": [
            {
                "id": "media-1",
                "media_type": "photo",
                "file_name": "kitchen-before.jpg",
                "content_type": "image/jpeg",
                "size_bytes": 1024000,
                "url": "https://images.unsplash.com/photo-1556911220-bda9f7f7597e?q=80&w=500",
                "display_order": 0,
            },
            {
                "id": "media-2",
                "media_type": "photo",
                "file_name": "kitchen-inspiration.jpg",
                "content_type": "image/jpeg",
                "size_bytes": 1548000,
                "url": "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136?q=80&w=500",
                "display_order": 1,
            },
        ],
    })


@router.post("", response_model=MockBidCardCreated)
async def create_mock_bid_card(
    request: Request,
    service: BidCardService = Depends(get_mock_bid_card_service),
):
    form = await request.form()
    if form.get("data") is None:
        return JSONResponse(status_code=400, content={"error": "Missing bid card data"})

    raw = parse_data_field(form)
    raw.setdefault("owner_id", MOCK_OWNER_ID)
    raw.setdefault("status", "draft")
    data = validate(raw, draft=True).raise_for_errors()

    bid_card_id = await service.create_bid_card(data, await read_uploads(form))
    logger.info(f"Mock bid card {bid_card_id} stored in memory")
    return MockBidCardCreated(
        id=bid_card_id,
        message="Project saved successfully (MOCK - no database storage)",
    )


@router.get("", response_model=BidCardList)
async def list_mock_bid_cards(service: BidCardService = Depends(get_mock_bid_card_service)):
    return BidCardList(bidCards=await service.list_bid_cards())


@router.get("/{bid_card_id}", response_model=BidCardEnvelope)
async def get_mock_bid_card(bid_card_id: str):
    return BidCardEnvelope(bidCard=sample_bid_card(bid_card_id))
