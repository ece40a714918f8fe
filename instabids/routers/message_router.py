# instabids/routers/message_router.py

from fastapi import APIRouter, Depends, Query, Request, status, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from instabids.core.database import get_db
from instabids.core.exceptions import FieldError, FieldValidationError, NotFoundError
from instabids.core.security import CurrentUser, get_current_user, get_current_user_from_websocket_token
from instabids.core.websocket_manager import manager
from instabids.repositories.message_repo import MessageRepository
from instabids.schemas.message_schema import ContractorOut, MessageCreate, MessageOut
from instabids.services.media_storage import MediaStorage, get_media_storage
from instabids.services.message_service import MessageService
from instabids.utils.multipart import read_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messaging"])


def get_message_service(
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
) -> MessageService:
    return MessageService(MessageRepository(db), storage)


# --- RESTful API ---

@router.get("/projects/{project_id}", response_model=List[MessageOut], summary="Message thread of a project")
async def get_thread(
    project_id: str,
    contractor_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """
    Thread in send order. With `contractor_id`, only the group messages and
    the individual messages exchanged with that contractor.
    """
    return await service.get_thread(project_id, user.user_id, contractor_id)


@router.post(
    "/projects/{project_id}",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message"
)
async def send_message(
    project_id: str,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """
    Multipart fields: `content`, `message_type` (individual | group),
    `recipient_id`, and attachments as `files` or `file-0..n`.
    """
    form = await request.form()
    files = await read_uploads(form)
    try:
        body = MessageCreate(
            content=str(form.get("content") or ""),
            message_type=str(form.get("message_type") or "individual"),
            recipient_id=form.get("recipient_id") or None,
            has_attachments=bool(files),
        )
    except ValidationError as e:
        raise FieldValidationError(
            [FieldError(field=str(err["loc"][0]), message=err["msg"]) for err in e.errors()]
        ) from e
    errors = body.field_errors()
    if errors:
        raise FieldValidationError(errors)
    return await service.send_message(project_id, user, body, files)


@router.get(
    "/projects/{project_id}/contractors",
    response_model=List[ContractorOut],
    summary="Contractors who bid on a project"
)
async def list_contractors(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return await service.list_contractors(project_id)


# --- WebSocket Endpoint ---

@router.websocket("/ws/{project_id}")
async def websocket_endpoint(
    websocket: WebSocket,
    project_id: str,
    # URL: /api/messages/ws/{project_id}?token=<JWT>
    user: CurrentUser = Depends(get_current_user_from_websocket_token),
    service: MessageService = Depends(get_message_service),
):
    """
    Push channel: every message sent to the project is delivered as JSON.
    Messages are sent through the REST endpoint, not over this socket.
    """
    try:
        await service.require_project(project_id)
    except NotFoundError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Project not found")
        return

    await manager.connect(project_id, user.user_id, websocket)
    try:
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        manager.disconnect(project_id, user.user_id, websocket)
    except Exception as e:
        logger.error(f"Unexpected error in WS {project_id} for user {user.user_id}: {e}")
        manager.disconnect(project_id, user.user_id, websocket)
