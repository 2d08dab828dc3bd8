# vidshare/api/schemas.py
"""
API Schemas
Typed request structures and the response envelope

Requests are validated by pydantic, so a missing or mistyped field is
rejected before any service runs. Output serializes with camelCase keys.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vidshare.domain.models import PaginatedResult
from vidshare.services.pipeline_builder import FeedFilters, FeedKind


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, emits camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Requests
# ============================================================================


class FeedQueryRequest(CamelModel):
    kind: FeedKind = Field(..., description="Which feed to read")
    filters: FeedFilters = Field(default_factory=FeedFilters)
    viewer_id: Optional[str] = Field(default=None, description="Authenticated viewer")
    page: int = Field(default=1, description="1-based page number")
    limit: Optional[int] = Field(default=None, description="Page size")


class ToggleReactionRequest(CamelModel):
    viewer_id: str = Field(..., description="Reacting user")
    target_type: str = Field(..., description="video, comment or tweet")
    target_id: str = Field(..., description="Target ID")


class ToggleSubscriptionRequest(CamelModel):
    subscriber_id: str = Field(..., description="Subscribing user")
    channel_id: str = Field(..., description="Channel (user) ID")


class DeleteEntityRequest(CamelModel):
    entity_type: str = Field(..., description="video, comment or tweet")
    entity_id: str = Field(..., description="Entity ID")
    requesting_user_id: str = Field(..., description="Authenticated requester")


class UpdateEntityRequest(CamelModel):
    entity_type: str = Field(..., description="video, comment or tweet")
    entity_id: str = Field(..., description="Entity ID")
    requesting_user_id: str = Field(..., description="Authenticated requester")

    title: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """The editable fields the caller actually sent"""
        editable = {"title", "description", "thumbnail_url", "content"}
        return {
            name: getattr(self, name)
            for name in self.model_fields_set & editable
        }


# ============================================================================
# Responses
# ============================================================================


class PaginatedData(CamelModel):
    items: List[Dict[str, Any]]
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_result(cls, result: PaginatedResult) -> "PaginatedData":
        return cls(
            items=result.items,
            page=result.page,
            limit=result.limit,
            total_items=result.total_items,
            total_pages=result.total_pages,
            has_next_page=result.has_next_page,
            has_prev_page=result.has_prev_page,
        )


class ApiResponse(CamelModel):
    """{statusCode, success, data, message}"""

    status_code: int
    success: bool
    data: Any = None
    message: str = ""

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success", status_code: int = 200) -> "ApiResponse":
        return cls(status_code=status_code, success=True, data=data, message=message)

    @classmethod
    def failure(cls, status_code: int, message: str, data: Any = None) -> "ApiResponse":
        return cls(status_code=status_code, success=False, data=data, message=message)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)
