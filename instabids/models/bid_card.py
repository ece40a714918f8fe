# models/bid_card.py
import uuid
from sqlalchemy import Column, String, TEXT, INT, BigInteger, Boolean, DECIMAL, Date, JSON, TIMESTAMP, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from instabids.core.database import Base

BID_CARD_STATUSES = ('draft', 'published', 'accepting_bids', 'awarded', 'closed')
BID_STATUSES = ('not_open', 'accepting_bids', 'reviewing', 'awarded', 'closed')


class BidCard(Base):
    # Bid cards live in the "projects" table of the hosted database
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Creator; never reassigned after insert
    owner_id = Column(String(36), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)

    # Taxonomy references
    job_type_id = Column(String(64))
    job_category_id = Column(String(64))
    intention_type_id = Column(String(64))
    property_type = Column(String(64))
    service_type = Column(String(64))

    # status and bid_status are separate lifecycles
    status = Column(Enum(*BID_CARD_STATUSES, name="bid_card_status"), nullable=False, default='draft')
    bid_status = Column(Enum(*BID_STATUSES, name="bid_status"), nullable=False, default='not_open')
    visibility = Column(Enum('public', 'private', 'group', name="bid_card_visibility"), default='public')

    job_size = Column(String(32))
    property_size = Column(String(64))
    square_footage = Column(DECIMAL(12, 2))

    zip_code = Column(String(10))
    city = Column(String(128))
    state = Column(String(64))
    location = Column(JSON)

    timeline_horizon_id = Column(String(64))
    timeline_start = Column(Date)
    timeline_end = Column(Date)
    bid_deadline = Column(Date)

    budget_min = Column(DECIMAL(12, 2))
    budget_max = Column(DECIMAL(12, 2))

    group_bidding_enabled = Column(Boolean, default=False)
    terms_accepted = Column(Boolean, default=False)
    marketing_consent = Column(Boolean)

    special_requirements = Column(TEXT)
    guidance_for_bidders = Column(TEXT)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # Media is owned by the bid card and removed with it
    media = relationship(
        "BidCardMedia",
        back_populates="bid_card",
        cascade="all, delete-orphan",
        order_by="BidCardMedia.display_order",
        lazy="selectin"
    )


class BidCardMedia(Base):
    __tablename__ = "bid_card_media"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    bid_card_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    media_type = Column(Enum('photo', 'video', 'document', 'measurement', name="bid_card_media_type"), nullable=False)
    file_name = Column(String(255))
    file_path = Column(String(500))
    content_type = Column(String(128))
    size_bytes = Column(BigInteger)
    url = Column(String(1000))
    display_order = Column(INT, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())

    bid_card = relationship("BidCard", back_populates="media")
