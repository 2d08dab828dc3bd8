# vidshare/api/facade.py
"""
Core API
The operations an HTTP layer calls, each returning an ApiResponse envelope

Routing, authentication and file upload stay outside; callers pass the
already-authenticated user IDs in.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as RequestValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from vidshare.app.config import Config
from vidshare.app.dependencies import build_services
from vidshare.infrastructure.pipeline import TextSearchBackend
from vidshare.services import ServiceError, error_to_http_status, is_retryable_error

from .schemas import (
    ApiResponse,
    DeleteEntityRequest,
    FeedQueryRequest,
    PaginatedData,
    ToggleReactionRequest,
    ToggleSubscriptionRequest,
    UpdateEntityRequest,
)

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)

INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again later."


def _parse(model: Type[RequestT], payload: Union[RequestT, dict]) -> RequestT:
    if isinstance(payload, model):
        return payload
    return model.model_validate(payload)


def _describe(error: RequestValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid request: {location} {first.get('msg', '')}".strip()


class CoreAPI:
    """
    Facade over the services for one request

    Usage:
        async with db.session() as session:
            api = CoreAPI(session, config)
            response = await api.feed_query({"kind": "videoFeed", "page": 2})
            return response.to_dict()
    """

    def __init__(
        self,
        session: AsyncSession,
        config: Optional[Config] = None,
        search_backend: Optional[TextSearchBackend] = None,
    ):
        self.services = build_services(session, config, search_backend)

    async def _respond(
        self,
        operation: str,
        action: Callable[[], Awaitable[Any]],
    ) -> ApiResponse:
        """Run action, turning every outcome into an envelope"""
        try:
            return await action()
        except RequestValidationError as e:
            logger.info(f"🚫 {operation}: {e.error_count()} invalid field(s)")
            return ApiResponse.failure(400, _describe(e))
        except ServiceError as e:
            status_code = error_to_http_status(e)
            if status_code >= 500:
                logger.error(f"❌ {operation} failed: {e.error_code} {e.message}")
                message = INTERNAL_ERROR_MESSAGE
                if is_retryable_error(e):
                    message = "Service temporarily unavailable. Please retry."
            else:
                logger.info(f"🚫 {operation} rejected: {e.error_code} {e.message}")
                message = e.message
            return ApiResponse.failure(
                status_code,
                message,
                data={"errorCode": e.error_code, "retryable": is_retryable_error(e)},
            )
        except Exception:
            logger.exception(f"💥 Unhandled error in {operation}")
            return ApiResponse.failure(500, INTERNAL_ERROR_MESSAGE)

    # ========================================================================
    # Feeds
    # ========================================================================

    async def feed_query(self, request: Union[FeedQueryRequest, dict]) -> ApiResponse:
        async def action() -> ApiResponse:
            req = _parse(FeedQueryRequest, request)
            result = await self.services.feed.query(
                req.kind, req.filters, req.viewer_id, req.page, req.limit
            )
            return ApiResponse.ok(
                PaginatedData.from_result(result), "Feed fetched successfully"
            )

        return await self._respond("feed_query", action)

    async def get_video(self, video_id: str, viewer_id: Optional[str] = None) -> ApiResponse:
        async def action() -> ApiResponse:
            video = await self.services.feed.get_video_detail(video_id, viewer_id)
            return ApiResponse.ok(video, "Video details fetched successfully")

        return await self._respond("get_video", action)

    # ========================================================================
    # Reactions
    # ========================================================================

    async def toggle_reaction(self, request: Union[ToggleReactionRequest, dict]) -> ApiResponse:
        async def action() -> ApiResponse:
            req = _parse(ToggleReactionRequest, request)
            result = await self.services.reactions.toggle(
                req.viewer_id, req.target_type, req.target_id
            )
            message = (
                f"{result.target.kind.value.capitalize()} liked"
                if result.liked
                else f"{result.target.kind.value.capitalize()} unliked"
            )
            return ApiResponse.ok(result.to_dict(), message)

        return await self._respond("toggle_reaction", action)

    async def toggle_subscription(
        self, request: Union[ToggleSubscriptionRequest, dict]
    ) -> ApiResponse:
        async def action() -> ApiResponse:
            req = _parse(ToggleSubscriptionRequest, request)
            result = await self.services.reactions.toggle_subscription(
                req.subscriber_id, req.channel_id
            )
            message = "Subscribed" if result.subscribed else "Unsubscribed"
            return ApiResponse.ok(result.to_dict(), message)

        return await self._respond("toggle_subscription", action)

    # ========================================================================
    # Entity mutations
    # ========================================================================

    async def delete_entity(self, request: Union[DeleteEntityRequest, dict]) -> ApiResponse:
        async def action() -> ApiResponse:
            req = _parse(DeleteEntityRequest, request)
            report = await self.services.entities.delete(
                req.entity_type, req.entity_id, req.requesting_user_id
            )
            noun = report.parent_type.value.capitalize()
            if report.consistent:
                message = f"{noun} deleted successfully"
            else:
                message = f"{noun} deleted; some cleanup is still pending"
            return ApiResponse.ok(report.to_dict(), message)

        return await self._respond("delete_entity", action)

    async def update_entity(self, request: Union[UpdateEntityRequest, dict]) -> ApiResponse:
        async def action() -> ApiResponse:
            req = _parse(UpdateEntityRequest, request)
            updated = await self.services.entities.update(
                req.entity_type, req.entity_id, req.requesting_user_id, req.changes()
            )
            return ApiResponse.ok(
                updated, f"{req.entity_type.capitalize()} updated successfully"
            )

        return await self._respond("update_entity", action)
