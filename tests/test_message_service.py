import json
import uuid
from datetime import datetime, timedelta

import pytest

from instabids.core.exceptions import NotFoundError, RecordWriteError
from instabids.core.security import CurrentUser
from instabids.core.websocket_manager import ConnectionManager
from instabids.schemas.message_schema import MessageCreate
from instabids.services.media_storage import InMemoryMediaStorage, MediaUpload
from instabids.services.message_service import MessageService
from instabids.utils.sender_labels import extend_aliases

HOMEOWNER = CurrentUser(user_id="homeowner-1", role="homeowner")


class FakeMessageRepository:
    """Stores message dicts; same interface as MessageRepository."""

    def __init__(self, projects=("p-1",), bids=(), owner_id="homeowner-1"):
        self.projects = set(projects)
        self.owner_id = owner_id
        self.bids = list(bids)
        self.aliases = {}
        self.messages = []
        self.fail_writes = False
        self._clock = datetime(2026, 5, 1, 9, 0)

    async def project_exists(self, project_id):
        return project_id in self.projects

    async def get_project_messages(self, project_id, contractor_id=None):
        rows = [m for m in self.messages if m["project_id"] == project_id]
        if contractor_id:
            rows = [
                m for m in rows
                if m["message_type"] == "group" or contractor_id in (m["sender_id"], m["recipient_id"])
            ]
        return rows

    async def save_message(self, project_id, sender_id, content, message_type, recipient_id, attachments, metadata=None):
        if self.fail_writes:
            raise ConnectionError("database unreachable")
        self._clock += timedelta(minutes=1)
        message = {
            "id": str(uuid.uuid4()),
            "project_id": project_id,
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "message_type": message_type,
            "content": content,
            "created_at": self._clock,
            "metadata": metadata or {},
            "attachments": [{"id": str(uuid.uuid4()), **a} for a in attachments],
        }
        self.messages.append(message)
        return message

    async def list_bids_for_project(self, project_id):
        return [b for b in self.bids if b["project_id"] == project_id]

    async def get_contractor_aliases(self, project_id):
        return dict(self.aliases.get(project_id, {}))

    async def assign_contractor_aliases(self, project_id):
        stored = self.aliases.setdefault(project_id, {})
        interactions = [
            (item.get("contractor_id", item.get("sender_id")), item.get("created_at"))
            for item in [*self.bids, *self.messages]
            if item["project_id"] == project_id
        ]
        stored.update(extend_aliases(stored, [i for i in interactions if i[0] != self.owner_id]))
        return dict(stored)


class RecordingSocket:
    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, text):
        self.sent.append(text)


@pytest.fixture
def repo():
    return FakeMessageRepository()


@pytest.fixture
def service(repo):
    return MessageService(repo, InMemoryMediaStorage(), connections=ConnectionManager())


async def send(service, user_id, content, message_type="group", recipient_id=None):
    body = MessageCreate(content=content, message_type=message_type, recipient_id=recipient_id)
    return await service.send_message("p-1", CurrentUser(user_id=user_id), body)


async def test_thread_marks_own_messages_and_labels_contractors(service):
    await send(service, "homeowner-1", "Hi all, when can you start?")
    await send(service, "c-7", "Next week works")
    await send(service, "c-3", "I can start Monday")
    await send(service, "c-7", "Or even Friday")

    thread = await service.get_thread("p-1", "homeowner-1")

    assert [m.is_own for m in thread] == [True, False, False, False]
    assert [m.sender_label for m in thread] == ["You", "Contractor 1", "Contractor 2", "Contractor 1"]
    assert [m.sender_alias for m in thread] == [None, "1", "2", "1"]


async def test_thread_filtered_by_contractor(service):
    await send(service, "homeowner-1", "Group update")
    await send(service, "homeowner-1", "Private to c-1", "individual", "c-1")
    await send(service, "homeowner-1", "Private to c-2", "individual", "c-2")

    thread = await service.get_thread("p-1", "homeowner-1", contractor_id="c-1")
    assert [m.content for m in thread] == ["Group update", "Private to c-1"]


async def test_unknown_project(service):
    with pytest.raises(NotFoundError):
        await service.get_thread("missing", "homeowner-1")


async def test_send_uploads_attachments_and_broadcasts(service):
    socket = RecordingSocket()
    await service.connections.connect("p-1", "c-1", socket)

    body = MessageCreate(content="", message_type="individual", recipient_id="c-1", has_attachments=True)
    sent = await service.send_message(
        "p-1", HOMEOWNER, body,
        [MediaUpload(file_name="plan.pdf", content_type="application/pdf", content=b"%PDF")],
    )

    assert sent.is_own is True
    assert sent.sender_label == "You"
    assert sent.attachments[0].file_name == "plan.pdf"
    assert sent.attachments[0].file_url.startswith("memory://media/messages/p-1/")

    pushed = json.loads(socket.sent[0])
    assert pushed["id"] == sent.id
    assert pushed["is_own"] is None


async def test_send_failure_reports_uploaded_attachments(repo, service):
    repo.fail_writes = True
    body = MessageCreate(content="see attached", message_type="group", has_attachments=True)
    with pytest.raises(RecordWriteError) as exc_info:
        await service.send_message(
            "p-1", HOMEOWNER, body,
            [MediaUpload(file_name="a.png", content_type="image/png", content=b"png")],
        )
    assert exc_info.value.message == "Message not sent"
    assert len(exc_info.value.uploaded_urls) == 1


async def test_contractors_labeled_in_bid_order():
    repo = FakeMessageRepository(bids=[
        {"project_id": "p-1", "contractor_id": "c-9", "contractor_name": "Ana", "company": "Ana Builds", "bid_amount": 12000, "status": "pending"},
        {"project_id": "p-1", "contractor_id": "c-2", "contractor_name": "Bo", "company": None, "bid_amount": None, "status": "rejected"},
        {"project_id": "p-1", "contractor_id": "c-9", "contractor_name": "Ana", "company": "Ana Builds", "bid_amount": 11000, "status": "pending"},
    ])
    service = MessageService(repo, InMemoryMediaStorage(), connections=ConnectionManager())

    contractors = await service.list_contractors("p-1")

    assert [(c.id, c.label, c.display_name) for c in contractors] == [
        ("c-9", "1", "Contractor 1"),
        ("c-2", "2", "Contractor 2"),
    ]
    assert contractors[0].bid_amount == 12000.0
    assert contractors[1].bid_amount is None


def test_message_create_field_errors():
    assert [e.field for e in MessageCreate(content="hi").field_errors()] == ["recipient_id"]
    assert [e.field for e in MessageCreate(content=" ", message_type="group").field_errors()] == ["content"]
    assert MessageCreate(content="", message_type="group", has_attachments=True).field_errors() == []


async def test_thread_and_contractor_list_share_aliases():
    repo = FakeMessageRepository(bids=[
        {"project_id": "p-1", "contractor_id": "X", "bid_amount": 100, "created_at": datetime(2026, 4, 1)},
        {"project_id": "p-1", "contractor_id": "Y", "bid_amount": 90, "created_at": datetime(2026, 4, 2)},
    ])
    service = MessageService(repo, InMemoryMediaStorage(), connections=ConnectionManager())
    await send(service, "Y", "Happy to help")
    await send(service, "X", "Quote attached")

    thread = await service.get_thread("p-1", "homeowner-1")
    contractors = await service.list_contractors("p-1")

    in_thread = {m.sender_id: m.sender_label for m in thread}
    in_list = {c.id: c.display_name for c in contractors}
    assert in_thread == in_list == {"X": "Contractor 1", "Y": "Contractor 2"}


async def test_aliases_stay_put_when_new_contractors_arrive(repo, service):
    await send(service, "c-5", "First!")
    assert await repo.get_contractor_aliases("p-1") == {}
    await service.get_thread("p-1", "homeowner-1")

    repo.bids.append({"project_id": "p-1", "contractor_id": "c-1", "created_at": datetime(2026, 1, 1)})
    await send(service, "homeowner-1", "Welcome")
    thread = await service.get_thread("p-1", "homeowner-1")

    assert await repo.get_contractor_aliases("p-1") == {"c-5": "1", "c-1": "2"}
    assert [m.sender_label for m in thread] == ["Contractor 1", "You"]
    assert [c.label for c in await service.list_contractors("p-1")] == ["2"]
