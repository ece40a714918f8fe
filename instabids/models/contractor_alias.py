# instabids/models/contractor_alias.py

import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, UniqueConstraint, func
from instabids.core.database import Base


class ContractorAlias(Base):
    """
    Anonymous label of a contractor within one project ("1" -> "Contractor 1").
    Assigned once, in order of first interaction, and never renumbered.
    """
    __tablename__ = "contractor_aliases"
    __table_args__ = (UniqueConstraint("project_id", "contractor_id", name="uq_contractor_alias"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    contractor_id = Column(String(36), nullable=False)
    alias = Column(String(16), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
