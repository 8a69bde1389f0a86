"""
Request and response models shared by the routers.

Field names are snake_case in Python and camelCase on the wire, matching
the stored documents and what the site's frontend already sends.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    """Body of every failed request."""
    success: bool = False
    error: str


class Video(CamelModel):
    id: str
    title: str
    description: str = ""
    price: float = 0.0
    status: str = "draft"
    duration: Optional[str] = None
    upload_date: Optional[str] = None
    views: int = 0
    tags: list[str] = Field(default_factory=list)
    video_file_key: Optional[str] = None
    video_url: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    product_link: Optional[str] = None


class InitializationComponents(CamelModel):
    auth: bool = False
    site_config: bool = False
    metadata: bool = False


class InitializationStatus(CamelModel):
    is_initialized: bool = False
    version: str
    initialized_at: Optional[str] = None
    components: InitializationComponents
