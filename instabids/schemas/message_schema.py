# instabids/schemas/message_schema.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import datetime

from instabids.core.exceptions import FieldError


class MessageAttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    file_url: str


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    project_id: str
    sender_id: str
    recipient_id: Optional[str] = None
    message_type: str
    content: Optional[str] = None
    created_at: Optional[datetime] = None
    metadata: Dict[str, Any] = {}
    attachments: List[MessageAttachmentOut] = []
    # Computed per viewer, never stored
    is_own: Optional[bool] = None
    is_from_contractor: bool = False
    sender_alias: Optional[str] = None
    sender_label: Optional[str] = None


class MessageCreate(BaseModel):
    """
    Body of a send action (multipart fields are mapped onto it by the router)
    """
    content: str = Field("", description="Message text")
    message_type: str = Field("individual", pattern="^(individual|group)$")
    recipient_id: Optional[str] = None
    has_attachments: bool = False

    def field_errors(self) -> List[FieldError]:
        errors = []
        if self.message_type == "individual" and not self.recipient_id:
            errors.append(FieldError(field="recipient_id", message="Individual messages need a recipient"))
        if not self.content.strip() and not self.has_attachments:
            errors.append(FieldError(field="content", message="Message cannot be empty"))
        return errors


class ContractorOut(BaseModel):
    """Contractor summary for a project, shown under an anonymous label."""
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: Optional[str] = None
    company: Optional[str] = None
    bid_amount: Optional[float] = None
    status: str = "pending"
    label: str
    display_name: str
