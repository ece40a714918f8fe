# instabids/models/message.py

import uuid
from sqlalchemy import Column, String, Text, ForeignKey, TIMESTAMP, BigInteger, Enum, JSON, func
from sqlalchemy.orm import relationship
from instabids.core.database import Base


class Message(Base):
    __tablename__ = "messages"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), nullable=False, index=True)
    # Set for individual messages only
    recipient_id = Column(String(36), nullable=True, index=True)
    message_type = Column(Enum('individual', 'group', name="message_type"), nullable=False, default='individual')
    content = Column(Text)
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    message_metadata = Column("metadata", JSON)
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)

    attachments = relationship(
        "MessageAttachment",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin"
    )


class MessageAttachment(Base):
    __tablename__ = "message_attachments"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    message_id = Column(String(36), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(128))
    file_size = Column(BigInteger)
    file_url = Column(String(1000), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    message = relationship("Message", back_populates="attachments")
