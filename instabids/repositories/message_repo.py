# instabids/repositories/message_repo.py

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from instabids.models.bid import Bid
from instabids.models.bid_card import BidCard
from instabids.models.contractor_alias import ContractorAlias
from instabids.models.message import Message, MessageAttachment
from instabids.utils.sender_labels import extend_aliases

logger = logging.getLogger(__name__)


class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def project_exists(self, project_id: str) -> bool:
        result = await self.db.execute(select(BidCard.id).where(BidCard.id == project_id))
        return result.scalar() is not None

    async def get_project_messages(self, project_id: str, contractor_id: Optional[str] = None) -> List[Message]:
        """
        Thread of a project, oldest first. With contractor_id: the project's
        group messages plus individual messages sent by or to that contractor.
        """
        stmt = select(Message).where(Message.project_id == project_id)
        if contractor_id:
            stmt = stmt.where(
                or_(
                    Message.message_type == "group",
                    Message.sender_id == contractor_id,
                    Message.recipient_id == contractor_id,
                )
            )
        stmt = stmt.order_by(Message.created_at.asc(), Message.id.asc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def save_message(
        self,
        project_id: str,
        sender_id: str,
        content: str,
        message_type: str,
        recipient_id: Optional[str],
        attachments: List[Dict[str, Any]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        new_id = str(uuid.uuid4())
        new_message = Message(
            id=new_id,
            project_id=project_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            message_type=message_type,
            content=content,
            message_metadata=metadata or {},
        )
        new_message.attachments = [
            MessageAttachment(id=str(uuid.uuid4()), **item) for item in attachments
        ]
        self.db.add(new_message)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        stmt = (
            select(Message)
            .where(Message.id == new_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(stmt)).scalars().first()

    async def list_bids_for_project(self, project_id: str) -> List[Bid]:
        stmt = (
            select(Bid)
            .where(Bid.project_id == project_id)
            .order_by(Bid.created_at.asc(), Bid.id.asc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_contractor_aliases(self, project_id: str) -> Dict[str, str]:
        stmt = select(ContractorAlias.contractor_id, ContractorAlias.alias).where(
            ContractorAlias.project_id == project_id
        )
        result = await self.db.execute(stmt)
        return {contractor_id: alias for contractor_id, alias in result.all()}

    async def assign_contractor_aliases(self, project_id: str) -> Dict[str, str]:
        """
        Every stored alias of the project, after giving one to each contractor
        who bid or sent a message and has none yet. The project owner gets none.
        """
        aliases = await self.get_contractor_aliases(project_id)
        owner_id = (await self.db.execute(select(BidCard.owner_id).where(BidCard.id == project_id))).scalar()

        bids = await self.db.execute(
            select(Bid.contractor_id, Bid.created_at)
            .where(Bid.project_id == project_id)
            .order_by(Bid.created_at.asc(), Bid.id.asc())
        )
        senders = await self.db.execute(
            select(Message.sender_id, Message.created_at)
            .where(Message.project_id == project_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        interactions = [(who, at) for who, at in [*bids.all(), *senders.all()] if who != owner_id]

        added = extend_aliases(aliases, interactions)
        if not added:
            return aliases
        self.db.add_all([
            ContractorAlias(project_id=project_id, contractor_id=contractor_id, alias=alias)
            for contractor_id, alias in added.items()
        ])
        try:
            await self.db.commit()
        except IntegrityError:
            # a concurrent request stored its aliases first; keep those
            await self.db.rollback()
            return await self.get_contractor_aliases(project_id)
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Assigned contractor aliases {added} in project {project_id}")
        return {**aliases, **added}
