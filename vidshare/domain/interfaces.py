# vidshare/domain/interfaces.py
"""
Domain-facing repository interfaces (Protocols).

These reflect only what the services actually call. Concrete repositories
satisfy them via duck typing; tests substitute AsyncMock objects.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from vidshare.domain.models import LikeTarget, TargetType


@runtime_checkable
class IOwnedRepository(Protocol):
    """Video / Comment / Tweet persistence used by mutations and cascades"""

    async def get_by_id(self, id: str) -> Optional[Any]: ...

    async def get_active(self, id: str) -> Optional[Any]:
        """Entity by id unless it is flagged pending deletion."""
        ...

    async def mark_pending_deletion(self, id: str) -> bool: ...

    async def list_pending_deletion(self) -> List[Any]: ...

    async def delete(self, id: str) -> bool: ...

    async def update(self, id: str, **values: Any) -> Optional[Any]: ...


@runtime_checkable
class ICommentRepository(IOwnedRepository, Protocol):
    async def ids_for_video(self, video_id: str) -> List[str]: ...

    async def mark_pending_for_video(self, video_id: str) -> int: ...

    async def delete_for_video(self, video_id: str) -> int: ...


@runtime_checkable
class ILikeRepository(Protocol):
    async def find_for(self, owner_id: str, target: LikeTarget) -> Optional[Any]: ...

    async def create_for(self, owner_id: str, target: LikeTarget) -> Any:
        """Insert a Like; IntegrityError when the pair already exists."""
        ...

    async def delete(self, id: str) -> bool: ...

    async def delete_for_targets(
        self, target_type: TargetType, target_ids: Sequence[str]
    ) -> int: ...

    async def count_for_target(self, target: LikeTarget) -> int: ...


@runtime_checkable
class ISubscriptionRepository(Protocol):
    async def find_pair(self, subscriber_id: str, channel_id: str) -> Optional[Any]: ...

    async def create_pair(self, subscriber_id: str, channel_id: str) -> Any: ...

    async def delete(self, id: str) -> bool: ...
