# instabids/services/bid_card_service.py

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from instabids.core.exceptions import MediaUploadError, NotFoundError, RecordWriteError, PersistenceError
from instabids.schemas.bid_card_schema import BidCardData, BidCardOut, to_record_dict
from instabids.services.media_storage import MediaStorage, MediaUpload, media_key

logger = logging.getLogger(__name__)

# Errors raised by the persistence collaborator that we translate
COLLABORATOR_ERRORS = (SQLAlchemyError, OSError, ConnectionError)


class BidCardService:
    """
    Turns validated bid card data plus media files into persistence calls.

    `repo` is a BidCardRepository (database) or InMemoryBidCardRepository
    (mock API, tests); `storage` is any MediaStorage. Nothing is retried:
    failures surface as typed PersistenceErrors so the client can offer a retry.
    """

    def __init__(self, repo, storage: MediaStorage):
        self.repo = repo
        self.storage = storage

    async def _upload_all(self, folder: str, files: Sequence[MediaUpload]) -> List[Dict[str, Any]]:
        """
        Upload files one after another. A failure part way leaves the earlier
        files in storage; their URLs travel with the raised error.
        """
        media = []
        for upload in files:
            key = media_key(folder, upload)
            try:
                url = await self.storage.upload(key, upload)
            except COLLABORATOR_ERRORS as e:
                uploaded = [m["url"] for m in media]
                logger.error(f"Media upload failed for {upload.file_name}: {e}", exc_info=True)
                raise MediaUploadError(
                    f"Files failed to upload ({upload.file_name})",
                    uploaded_urls=uploaded,
                ) from e
            media.append({
                "media_type": upload.media_type,
                "file_name": upload.file_name,
                "content_type": upload.content_type,
                "size_bytes": upload.size_bytes,
                "file_path": key,
                "url": url,
            })
        return media

    async def _require(self, bid_card_id: str):
        try:
            record = await self.repo.get_bid_card_by_id(bid_card_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to load bid card {bid_card_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load bid card") from e
        if record is None:
            raise NotFoundError(f"Bid card {bid_card_id} not found")
        return record

    async def get_bid_card(self, bid_card_id: str) -> BidCardOut:
        record = await self._require(bid_card_id)
        return BidCardOut.model_validate(record)

    async def list_bid_cards(self, owner_id: Optional[str] = None) -> List[BidCardOut]:
        """Bid cards of one owner, or every bid card when owner_id is None."""
        try:
            if owner_id is None:
                records = await self.repo.list_bid_cards()
            else:
                records = await self.repo.list_bid_cards_by_owner(owner_id)
        except COLLABORATOR_ERRORS as e:
            logger.error(f"Failed to list bid cards for {owner_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to list bid cards") from e
        return [BidCardOut.model_validate(r) for r in records]

    async def create_bid_card(self, data: BidCardData, files: Sequence[MediaUpload] = ()) -> str:
        """
        1. upload every file (durable URLs first)
        2. write the record that references them
        """
        media = await self._upload_all(f"bid-cards/{data.owner_id}", files)

        try:
            record = await self.repo.create_bid_card(to_record_dict(data), media)
        except COLLABORATOR_ERRORS as e:
            uploaded = [m["url"] for m in media]
            logger.error(f"Bid card write failed after {len(uploaded)} upload(s): {e}", exc_info=True)
            message = (
                "Partial media uploaded, record not created" if uploaded
                else "Record not created"
            )
            raise RecordWriteError(message, uploaded_urls=uploaded) from e

        bid_card_id = _record_id(record)
        logger.info(f"Bid card {bid_card_id} created by {data.owner_id} as {data.status} with {len(media)} media file(s)")
        return bid_card_id

    async def update_bid_card(
        self,
        bid_card_id: str,
        data: BidCardData,
        files: Sequence[MediaUpload] = (),
        remove_media_ids: Iterable[str] = (),
    ) -> None:
        """
        Full re-submission of the edit form. New files are appended; existing
        media stays unless listed in remove_media_ids. The owner never changes.
        """
        record = await self._require(bid_card_id)
        owner_id = _record_field(record, "owner_id")

        values = to_record_dict(data)
        values["owner_id"] = owner_id

        removed = set(remove_media_ids)
        removed_keys = [
            _record_field(m, "file_path") for m in _record_field(record, "media") or []
            if _record_field(m, "id") in removed and _record_field(m, "file_path")
        ]

        media = await self._upload_all(f"bid-cards/{bid_card_id}", files)
        try:
            await self.repo.update_bid_card(record, values, media, list(removed))
        except COLLABORATOR_ERRORS as e:
            uploaded = [m["url"] for m in media]
            logger.error(f"Bid card {bid_card_id} update failed: {e}", exc_info=True)
            message = (
                "Partial media uploaded, record not updated" if uploaded
                else "Record not updated"
            )
            raise RecordWriteError(message, uploaded_urls=uploaded) from e

        # best effort: the record is already saved without them
        try:
            await self.storage.remove(removed_keys)
        except COLLABORATOR_ERRORS as e:
            logger.warning(f"Could not remove {len(removed_keys)} media file(s) of bid card {bid_card_id}: {e}")
        logger.info(f"Bid card {bid_card_id} updated ({len(media)} new, {len(removed_keys)} removed media file(s))")


def _record_field(record, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name)


def _record_id(record) -> str:
    return _record_field(record, "id")
