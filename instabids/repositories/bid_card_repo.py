# instabids/repositories/bid_card_repo.py

import logging
import uuid
from typing import Any, Dict, Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from instabids.models.bid_card import BidCard, BidCardMedia

logger = logging.getLogger(__name__)


class BidCardRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_bid_card_by_id(self, bid_card_id: str) -> BidCard | None:
        """
        Single bid card; media comes along through lazy="selectin"
        """
        stmt = select(BidCard).where(BidCard.id == bid_card_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_bid_cards_by_owner(self, owner_id: str) -> List[BidCard]:
        stmt = (
            select(BidCard)
            .where(BidCard.owner_id == owner_id)
            .order_by(BidCard.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_bid_cards(self) -> List[BidCard]:
        result = await self.db.execute(select(BidCard).order_by(BidCard.created_at.desc()))
        return result.scalars().all()

    async def create_bid_card(self, values: Dict[str, Any], media: List[Dict[str, Any]]) -> BidCard:
        """
        Insert the bid card row and its media rows in one commit
        """
        new_id = str(uuid.uuid4())
        db_bid_card = BidCard(id=new_id, **values)
        db_bid_card.media = [
            BidCardMedia(id=str(uuid.uuid4()), display_order=index, **item)
            for index, item in enumerate(media)
        ]
        self.db.add(db_bid_card)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        # re-select so server defaults and media are loaded
        complete = await self._refetch(new_id)
        return complete

    async def update_bid_card(
        self,
        bid_card: BidCard,
        values: Dict[str, Any],
        new_media: List[Dict[str, Any]],
        removed_media_ids: Iterable[str] = (),
    ) -> BidCard:
        """
        Overwrite column values, drop removed media and append new media
        after the existing ones
        """
        for key, value in values.items():
            if hasattr(bid_card, key):
                setattr(bid_card, key, value)

        removed = set(removed_media_ids)
        kept = [m for m in bid_card.media if m.id not in removed]
        next_order = max((m.display_order or 0 for m in kept), default=-1) + 1
        appended = [
            BidCardMedia(id=str(uuid.uuid4()), display_order=next_order + index, **item)
            for index, item in enumerate(new_media)
        ]
        bid_card.media = kept + appended

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self._refetch(bid_card.id)

    async def _refetch(self, bid_card_id: str) -> BidCard:
        stmt = (
            select(BidCard)
            .where(BidCard.id == bid_card_id)
            .execution_options(populate_existing=True)
        )
        refreshed = (await self.db.execute(stmt)).scalars().first()
        if refreshed is None:
            raise LookupError(f"Bid card {bid_card_id} vanished after write")
        return refreshed
