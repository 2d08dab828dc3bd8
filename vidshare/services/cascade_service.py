# vidshare/services/cascade_service.py
"""
Cascade Consistency Manager
Removes the likes and comments that hang off a video, comment or tweet
when it is deleted

There is no transaction spanning the steps. Each one commits on its own:

    1. flag the parent pending_deletion (and, for a video, its comments)
    2. delete dependents
    3. delete the parent
    4. sweep dependents again (optional, config.cascade.sweep_after_delete)

Dependents go first, so a crash leaves "parent without dependents", never
orphans. The pending flag marks such parents for retry_pending() and makes
them refuse new likes and comments. The comment ids read in step 1 are
kept for the sweep, since those comments are gone by the time it runs.
Every step is idempotent; none is retried inside a single call.
"""

from typing import Dict, List, Optional, Tuple

from vidshare.app.config import Config
from vidshare.domain.interfaces import ICommentRepository, ILikeRepository, IOwnedRepository
from vidshare.domain.models import CascadeReport, TargetType
from vidshare.services.base_service import BaseService
from vidshare.services.exceptions import ConsistencyViolationError, ValidationError


class CascadeManager(BaseService):
    """Best-effort referential cleanup for parent deletes"""

    def __init__(
        self,
        parent_repos: Dict[TargetType, IOwnedRepository],
        comment_repo: ICommentRepository,
        like_repo: ILikeRepository,
        config: Optional[Config] = None,
    ):
        super().__init__(config=config)
        self.parent_repos = parent_repos
        self.comment_repo = comment_repo
        self.like_repo = like_repo

    def get_service_name(self) -> str:
        return "cascade"

    def _parent_type(self, parent_type: str) -> TargetType:
        try:
            return TargetType(parent_type)
        except ValueError:
            raise ValidationError(
                f"Unknown parent type: {parent_type}", field="parent_type"
            ) from None

    # ========================================================================
    # Cascade
    # ========================================================================

    async def on_delete_parent(self, parent_type: str, parent_id: str) -> CascadeReport:
        """
        Delete a parent and everything that references it

        Call only after the requester has been authorized.

        Returns:
            CascadeReport; warnings is non-empty if the final sweep failed

        Raises:
            InvalidIdentifierError / ValidationError: bad arguments
            UpstreamTimeoutError / UpstreamUnavailableError: steps 1-3 failed;
                the parent still exists and is flagged pending_deletion
        """
        self.validate_object_id(parent_id, "parent_id")
        kind = self._parent_type(parent_type)
        repo = self.parent_repos[kind]
        report = CascadeReport(parent_type=kind, parent_id=parent_id)
        comment_ids: List[str] = []

        self.log_info(f"🗑️ Cascade delete of {kind.value} {parent_id} started")
        try:
            await repo.mark_pending_deletion(parent_id)
            if kind == TargetType.VIDEO:
                await self.comment_repo.mark_pending_for_video(parent_id)
                comment_ids = await self.comment_repo.ids_for_video(parent_id)

            likes, comments = await self._delete_dependents(kind, parent_id, comment_ids)
            report.likes_deleted += likes
            report.comments_deleted += comments

            report.parent_deleted = await repo.delete(parent_id)
        except Exception as e:
            raise self.handle_error(
                e,
                "cascade_delete",
                {"parent_type": kind.value, "parent_id": parent_id},
            )

        if self.config.cascade.sweep_after_delete:
            await self._sweep(kind, parent_id, comment_ids, report)

        self.log_info(
            f"✅ Cascade delete of {kind.value} {parent_id} done: "
            f"{report.likes_deleted} likes, {report.comments_deleted} comments"
        )
        return report

    async def _delete_dependents(
        self, kind: TargetType, parent_id: str, comment_ids: List[str]
    ) -> Tuple[int, int]:
        """Delete what references the parent; returns (likes, comments) removed"""
        if kind == TargetType.VIDEO:
            likes = await self.like_repo.delete_for_targets(TargetType.COMMENT, comment_ids)
            comments = await self.comment_repo.delete_for_video(parent_id)
            likes += await self.like_repo.delete_for_targets(TargetType.VIDEO, [parent_id])
            return likes, comments

        likes = await self.like_repo.delete_for_targets(kind, [parent_id])
        return likes, 0

    async def _sweep(
        self,
        kind: TargetType,
        parent_id: str,
        comment_ids: List[str],
        report: CascadeReport,
    ) -> None:
        """Catch dependents written while the cascade ran; never raises"""
        try:
            if kind == TargetType.VIDEO:
                late_ids = await self.comment_repo.ids_for_video(parent_id)
                comment_ids = list(dict.fromkeys(comment_ids + late_ids))
            likes, comments = await self._delete_dependents(kind, parent_id, comment_ids)
        except Exception as e:
            violation = ConsistencyViolationError(
                kind.value, parent_id, f"orphan sweep failed ({type(e).__name__})"
            )
            self.log_warning(violation.message)
            report.warnings.append(violation.message)
            return

        if likes or comments:
            self.log_info(
                f"🧹 Sweep after {kind.value} {parent_id} removed "
                f"{likes} late likes, {comments} late comments"
            )
        report.likes_deleted += likes
        report.comments_deleted += comments

    # ========================================================================
    # Reconciliation
    # ========================================================================

    async def retry_pending(self, parent_type: str) -> List[CascadeReport]:
        """
        Re-run the cascade for every parent left pending_deletion

        A parent whose retry fails again is logged and skipped; it stays
        pending for the next run.
        """
        kind = self._parent_type(parent_type)
        try:
            pending = await self.parent_repos[kind].list_pending_deletion()
        except Exception as e:
            raise self.handle_error(e, "list_pending_deletion", {"parent_type": kind.value})

        if pending:
            self.log_info(f"🔄 Retrying {len(pending)} pending {kind.value} deletes")

        reports: List[CascadeReport] = []
        for entity in pending:
            try:
                reports.append(await self.on_delete_parent(kind.value, entity.id))
            except Exception as e:
                self.log_error(f"Retry of {kind.value} {entity.id} failed", e)
        return reports
