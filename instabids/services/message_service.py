# instabids/services/message_service.py

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from instabids.core.exceptions import NotFoundError, PersistenceError, RecordWriteError, MediaUploadError
from instabids.core.security import CurrentUser
from instabids.core.websocket_manager import ConnectionManager, manager
from instabids.schemas.message_schema import ContractorOut, MessageCreate, MessageOut
from instabids.services.media_storage import MediaStorage, MediaUpload, media_key
from instabids.utils.sender_labels import contractor_display_name, label_messages, last_alias_number

logger = logging.getLogger(__name__)

COLLABORATOR_ERRORS = (SQLAlchemyError, OSError, ConnectionError)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def message_to_dict(message: Any) -> Dict[str, Any]:
    """Flatten an ORM Message (or a plain dict) into the shape MessageOut reads."""
    metadata = _field(message, "metadata") if isinstance(message, Mapping) else _field(message, "message_metadata")
    return {
        "id": _field(message, "id"),
        "project_id": _field(message, "project_id"),
        "sender_id": _field(message, "sender_id"),
        "recipient_id": _field(message, "recipient_id"),
        "message_type": _field(message, "message_type", "individual"),
        "content": _field(message, "content"),
        "created_at": _field(message, "created_at"),
        "metadata": dict(metadata or {}),
        "attachments": [
            {
                "id": _field(a, "id"),
                "file_name": _field(a, "file_name"),
                "file_type": _field(a, "file_type"),
                "file_size": _field(a, "file_size"),
                "file_url": _field(a, "file_url"),
            }
            for a in (_field(message, "attachments") or [])
        ],
    }


class MessageService:
    """
    One messaging view: fetch a project thread, send messages, list the
    project's contractors. Contractor identities are shown as labels only.
    """

    def __init__(self, repo, storage: MediaStorage, connections: ConnectionManager = manager):
        self.repo = repo
        self.storage = storage
        self.connections = connections

    async def require_project(self, project_id: str) -> None:
        try:
            exists = await self.repo.project_exists(project_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to look up project {project_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load project") from e
        if not exists:
            raise NotFoundError(f"Project {project_id} not found")

    async def contractor_aliases(self, project_id: str) -> Dict[str, str]:
        """Stored contractor aliases of the project, assigning any that are missing."""
        try:
            return await self.repo.assign_contractor_aliases(project_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to assign contractor aliases in project {project_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load contractor aliases") from e

    async def get_thread(
        self, project_id: str, current_user_id: str, contractor_id: Optional[str] = None
    ) -> List[MessageOut]:
        """
        Messages of a (project, contractor) pair in thread order, each marked
        with is_own, is_from_contractor and sender_alias.
        """
        await self.require_project(project_id)
        aliases = await self.contractor_aliases(project_id)
        try:
            messages = await self.repo.get_project_messages(project_id, contractor_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to load messages for project {project_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load messages") from e

        rows = []
        for message in messages:
            row = message_to_dict(message)
            row["is_own"] = row["sender_id"] == current_user_id
            rows.append(row)

        decorated = []
        for row in label_messages(rows, aliases):
            if row["is_own"]:
                row["sender_label"] = "You"
            elif row["sender_alias"]:
                row["sender_label"] = contractor_display_name(row["sender_alias"])
            decorated.append(MessageOut.model_validate(row))
        return decorated

    async def send_message(
        self,
        project_id: str,
        sender: CurrentUser,
        body: MessageCreate,
        files: Sequence[MediaUpload] = (),
    ) -> MessageOut:
        """
        Store an immutable message (attachments uploaded first) and push it to
        live listeners of the project.
        """
        await self.require_project(project_id)

        attachments = []
        for upload in files:
            key = media_key(f"messages/{project_id}", upload)
            try:
                url = await self.storage.upload(key, upload)
            except COLLABORATOR_ERRORS as e:
                logger.error(f"Attachment upload failed for {upload.file_name}: {e}", exc_info=True)
                raise MediaUploadError(
                    "Attachment failed to upload",
                    uploaded_urls=[a["file_url"] for a in attachments],
                ) from e
            attachments.append({
                "file_name": upload.file_name,
                "file_type": upload.content_type,
                "file_size": upload.size_bytes,
                "file_url": url,
            })

        try:
            saved = await self.repo.save_message(
                project_id=project_id,
                sender_id=sender.user_id,
                content=body.content,
                message_type=body.message_type,
                recipient_id=body.recipient_id if body.message_type == "individual" else None,
                attachments=attachments,
            )
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to store message in project {project_id}: {e}", exc_info=True)
            raise RecordWriteError(
                "Message not sent",
                uploaded_urls=[a["file_url"] for a in attachments],
            ) from e

        message_out = MessageOut.model_validate({**message_to_dict(saved), "is_own": True, "sender_label": "You"})
        logger.info(f"Message {message_out.id} sent by {sender.user_id} in project {project_id}")

        # listeners compute is_own / labels on their side
        broadcast = message_out.model_copy(update={"is_own": None, "sender_label": None})
        await self.connections.broadcast_message(project_id, broadcast.model_dump_json())
        return message_out

    async def list_contractors(self, project_id: str) -> List[ContractorOut]:
        """
        Contractors who bid on the project, in bid order, under the same stored
        alias the thread shows.
        """
        await self.require_project(project_id)
        aliases = dict(await self.contractor_aliases(project_id))
        try:
            bids = await self.repo.list_bids_for_project(project_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to load bids for project {project_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load contractors") from e

        contractors: Dict[str, ContractorOut] = {}
        for bid in bids:
            contractor_id = _field(bid, "contractor_id")
            if contractor_id in contractors:
                continue
            if contractor_id not in aliases:
                # the project owner never gets a stored alias
                aliases[contractor_id] = str(last_alias_number(aliases) + 1)
            label = aliases[contractor_id]
            amount = _field(bid, "bid_amount")
            contractors[contractor_id] = ContractorOut(
                id=contractor_id,
                name=_field(bid, "contractor_name"),
                company=_field(bid, "company"),
                bid_amount=float(amount) if amount is not None else None,
                status=_field(bid, "status") or "pending",
                label=label,
                display_name=contractor_display_name(label),
            )
        return list(contractors.values())
