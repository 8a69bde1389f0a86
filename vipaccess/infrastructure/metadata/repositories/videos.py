"""
Repository for the video catalogue.

Each video is one document, videos/<id>.json. The repository translates
between VideoMetadata and the stored camelCase JSON; callers never see
raw documents.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ....core.documents.errors import DocumentValidationError
from ....core.documents.keys import DocumentType
from ....core.documents.models import VideoMetadata, utc_now_iso
from ....core.documents.serialization import from_document, to_camel, to_document
from ..store import MetadataStore

logger = logging.getLogger(__name__)


class VideoRepository:
    """
    Save, load, list and delete videos, plus the two edits the site makes:
    a partial update from the admin and a view-count bump.
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def save(self, video: VideoMetadata) -> str:
        """Persist a video under its own id and return the document key."""
        if video.upload_date is None:
            video.upload_date = utc_now_iso()
        key = await self._store.save(DocumentType.VIDEOS, to_document(video), video.id)
        logger.info("Saved video", extra={"video_id": video.id, "title": video.title})
        return key

    async def load(self, video_id: str) -> Optional[VideoMetadata]:
        document = await self._store.load(DocumentType.VIDEOS, video_id)
        if document is None:
            return None
        return from_document(VideoMetadata, document)

    async def list(self) -> list[VideoMetadata]:
        """
        All videos that could be read.

        A stored document that no longer validates is skipped like an
        unreadable one, matching the store's best-effort listing.
        """
        videos = []
        for document in await self._store.list(DocumentType.VIDEOS):
            try:
                videos.append(from_document(VideoMetadata, document))
            except DocumentValidationError as e:
                logger.warning("Skipping invalid video document", extra={"error": str(e)})
        return videos

    async def list_published(self) -> list[VideoMetadata]:
        """Published videos, newest upload first."""
        published = [video for video in await self.list() if video.is_published]
        return sorted(published, key=lambda video: video.upload_date or "", reverse=True)

    async def delete(self, video_id: str) -> bool:
        return await self._store.delete(DocumentType.VIDEOS, video_id)

    async def update(self, video_id: str, updates: dict[str, Any]) -> Optional[VideoMetadata]:
        """
        Merge updates into an existing video and persist it.

        Returns None when the video does not exist. The id cannot be
        changed through an update. Keys may be camelCase or snake_case.
        """
        existing = await self.load(video_id)
        if existing is None:
            return None

        normalized = {to_camel(key): value for key, value in updates.items()}
        merged = {**to_document(existing), **normalized, "id": video_id}
        video = from_document(VideoMetadata, merged)
        await self.save(video)
        return video

    async def increment_views(self, video_id: str) -> Optional[VideoMetadata]:
        # read-modify-write: concurrent viewers can lose increments
        video = await self.load(video_id)
        if video is None:
            return None
        video.views += 1
        await self.save(video)
        return video
