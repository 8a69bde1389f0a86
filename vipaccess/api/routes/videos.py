"""
Video catalogue endpoints.

Thin pass-throughs to VideoRepository. Stored documents are already
camelCase, so responses are built straight from them.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query, status
from pydantic import Field

from ...core.documents.errors import DocumentNotFoundError
from ...core.documents.keys import DocumentType
from ...core.documents.models import VideoMetadata
from ...core.documents.serialization import from_document, to_document
from ..dependencies import VideoRepositoryDep
from ..schemas import CamelModel, ErrorResponse, Video

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class VideoCreateRequest(Video):
    """A new video. The id is generated when omitted."""
    id: Optional[str] = None


class VideoResponse(CamelModel):
    success: bool = True
    video: Video


class VideoListResponse(CamelModel):
    success: bool = True
    videos: list[Video]


class VideoSavedResponse(CamelModel):
    success: bool = True
    video_id: str = Field(description="Id of the saved video")
    video: Video


class DeleteResponse(CamelModel):
    success: bool = True


class ViewsResponse(CamelModel):
    success: bool = True
    views: int


def _to_response(video: VideoMetadata) -> Video:
    return Video.model_validate(to_document(video))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=VideoListResponse,
    summary="List videos",
)
async def list_videos(
    videos: VideoRepositoryDep,
    published_only: bool = Query(False, alias="publishedOnly"),
) -> VideoListResponse:
    """
    Every readable video. Unreadable documents are skipped, so the list
    may be short but the request does not fail because of one bad file.
    """
    found = await videos.list_published() if published_only else await videos.list()
    logger.info("Listed videos", extra={"count": len(found)})
    return VideoListResponse(videos=[_to_response(v) for v in found])


@router.post(
    "",
    response_model=VideoSavedResponse,
    status_code=status.HTTP_200_OK,
    summary="Create or overwrite a video",
)
async def save_video(
    request: VideoCreateRequest,
    videos: VideoRepositoryDep,
) -> VideoSavedResponse:
    video = from_document(VideoMetadata, request.model_dump(by_alias=True, exclude_none=True))
    await videos.save(video)
    return VideoSavedResponse(video_id=video.id, video=_to_response(video))


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get one video",
    responses={404: {"model": ErrorResponse, "description": "Video not found"}},
)
async def get_video(video_id: str, videos: VideoRepositoryDep) -> VideoResponse:
    video = await videos.load(video_id)
    if video is None:
        raise DocumentNotFoundError(DocumentType.VIDEOS.value, video_id)
    return VideoResponse(video=_to_response(video))


@router.put(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Merge updates into a video",
    responses={404: {"model": ErrorResponse, "description": "Video not found"}},
)
async def update_video(
    video_id: str,
    videos: VideoRepositoryDep,
    updates: dict[str, Any] = Body(...),
) -> VideoResponse:
    video = await videos.update(video_id, updates)
    if video is None:
        raise DocumentNotFoundError(DocumentType.VIDEOS.value, video_id)
    logger.info("Updated video", extra={"video_id": video_id, "fields": sorted(updates)})
    return VideoResponse(video=_to_response(video))


@router.delete(
    "/{video_id}",
    response_model=DeleteResponse,
    summary="Delete a video",
)
async def delete_video(video_id: str, videos: VideoRepositoryDep) -> DeleteResponse:
    """Deleting a video that does not exist still succeeds."""
    await videos.delete(video_id)
    return DeleteResponse()


@router.post(
    "/{video_id}/views",
    response_model=ViewsResponse,
    summary="Count one view",
)
async def increment_views(video_id: str, videos: VideoRepositoryDep) -> ViewsResponse:
    video = await videos.increment_views(video_id)
    if video is None:
        raise DocumentNotFoundError(DocumentType.VIDEOS.value, video_id)
    return ViewsResponse(views=video.views)
