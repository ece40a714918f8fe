# models/bid.py
import uuid
from sqlalchemy import Column, String, DECIMAL, TIMESTAMP, ForeignKey, Enum, func
from instabids.core.database import Base


class Bid(Base):
    """A contractor's bid on a project; source of the contractor summary."""
    __tablename__ = "bids"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    contractor_id = Column(String(36), nullable=False, index=True)
    contractor_name = Column(String(255))
    company = Column(String(255))
    bid_amount = Column(DECIMAL(12, 2))
    status = Column(Enum('pending', 'accepted', 'rejected', name="bid_decision"), default='pending')
    created_at = Column(TIMESTAMP, server_default=func.now())
