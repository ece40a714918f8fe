# instabids/repositories/mock_bid_card_repo.py
# In-memory stand-in for BidCardRepository. Development and tests only:
# nothing survives a restart.

import copy
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional


def mock_id() -> str:
    return f"mock-{int(time.time() * 1000)}-{random.randint(0, 999)}"


class InMemoryBidCardRepository:
    def __init__(self, id_factory: Callable[[], str] = mock_id):
        self.id_factory = id_factory
        self.records: Dict[str, Dict[str, Any]] = {}

    async def get_bid_card_by_id(self, bid_card_id: str) -> Optional[Dict[str, Any]]:
        record = self.records.get(bid_card_id)
        return copy.deepcopy(record) if record else None

    async def list_bid_cards_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return [r for r in await self.list_bid_cards() if r["owner_id"] == owner_id]

    async def list_bid_cards(self) -> List[Dict[str, Any]]:
        ordered = sorted(self.records.values(), key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(ordered)

    async def create_bid_card(self, values: Dict[str, Any], media: List[Dict[str, Any]]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        new_id = self.id_factory()
        # ids are time-based; two creates in the same millisecond can collide
        while new_id in self.records:
            new_id = self.id_factory()
        self.records[new_id] = {
            **copy.deepcopy(values),
            "id": new_id,
            "media": [
                {**item, "id": str(uuid.uuid4()), "display_order": index}
                for index, item in enumerate(media)
            ],
            "created_at": now,
            "updated_at": now,
        }
        return copy.deepcopy(self.records[new_id])

    async def update_bid_card(
        self,
        bid_card: Dict[str, Any],
        values: Dict[str, Any],
        new_media: List[Dict[str, Any]],
        removed_media_ids: Iterable[str] = (),
    ) -> Dict[str, Any]:
        record = self.records[bid_card["id"]]
        record.update(copy.deepcopy(values))
        removed = set(removed_media_ids)
        kept = [m for m in record["media"] if m["id"] not in removed]
        next_order = max((m["display_order"] for m in kept), default=-1) + 1
        record["media"] = kept + [
            {**item, "id": str(uuid.uuid4()), "display_order": next_order + index}
            for index, item in enumerate(new_media)
        ]
        record["updated_at"] = datetime.now(timezone.utc)
        return copy.deepcopy(record)
