"""Storage access for workspaces and their collaborators.

The workspace document is read, reconciled in memory by the service and
handed back whole to ``save``. Nothing here commits: the request session
commits once after the handler returns, so a failure anywhere in the request
leaves the stored workspace untouched.

Every statement runs inside ``_operation``, which times it, reports slow
operations and logs SQLAlchemy errors with the operation name and the
workspace or user it concerned before re-raising.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gtm_workspace.core.logging import db_logger, get_logger
from gtm_workspace.models.workspace import Workspace, WorkspaceCollaborator

logger = get_logger(__name__)

WORKSPACES = "workspaces"
COLLABORATORS = "workspace_collaborators"


class WorkspaceRepository:
    """Queries and writes for ``Workspace`` rows.

    Raises ``SQLAlchemyError`` from every method on database failure.
    """

    SLOW_OPERATION_THRESHOLD_MS = 1000

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _operation(
        self, name: str, table: str = WORKSPACES, **ids: Any
    ) -> AsyncIterator[None]:
        started = time.monotonic()
        try:
            yield
        except SQLAlchemyError as e:
            db_logger.operation_failed(e, name, table, **ids)
            raise
        duration_ms = (time.monotonic() - started) * 1000
        if duration_ms > self.SLOW_OPERATION_THRESHOLD_MS:
            db_logger.slow_operation(name, duration_ms, table, **ids)

    async def find_by_id(self, workspace_id: str) -> Workspace | None:
        async with self._operation("find_by_id", workspace_id=workspace_id):
            return await self.session.get(Workspace, workspace_id)

    async def find_by_slug(self, slug: str) -> Workspace | None:
        async with self._operation("find_by_slug", slug=slug):
            result = await self.session.execute(select(Workspace).where(Workspace.slug == slug))
            return result.scalar_one_or_none()

    async def find_many_by_owner_or_collaborator(self, user_id: str) -> list[Workspace]:
        """Workspaces the user owns or collaborates on, newest first."""
        shared_with_user = select(WorkspaceCollaborator.workspace_id).where(
            WorkspaceCollaborator.user_id == user_id
        )
        query = (
            select(Workspace)
            .where((Workspace.owner_id == user_id) | Workspace.id.in_(shared_with_user))
            .order_by(Workspace.created_at.desc())
        )
        async with self._operation("find_for_member", user_id=user_id):
            workspaces = list((await self.session.execute(query)).scalars().all())
        logger.debug(
            "Listed workspaces for member",
            extra={"user_id": user_id, "count": len(workspaces)},
        )
        return workspaces

    async def slug_exists(self, slug: str) -> bool:
        async with self._operation("slug_exists", slug=slug):
            result = await self.session.execute(
                select(Workspace.id).where(Workspace.slug == slug).limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def insert(
        self,
        *,
        slug: str,
        name: str,
        owner_id: str,
        company_name: str,
        company_url: str,
        document: dict[str, Any] | None = None,
    ) -> Workspace:
        """Add a new workspace and flush it so its id is assigned.

        Raises:
            IntegrityError: If the slug was taken concurrently
        """
        workspace = Workspace(
            slug=slug,
            name=name,
            owner_id=owner_id,
            company_name=company_name,
            company_url=company_url,
            document=document or {},
            collaborators=[],
        )
        async with self._operation("insert", slug=slug, owner_id=owner_id):
            self.session.add(workspace)
            await self.session.flush()
        logger.info(
            "Workspace created",
            extra={"workspace_id": workspace.id, "slug": slug, "owner_id": owner_id},
        )
        return workspace

    async def _touch(self, workspace: Workspace) -> None:
        workspace.updated_at = datetime.now(UTC)
        await self.session.flush()

    async def save(self, workspace: Workspace) -> Workspace:
        """Flush the row, whole document included, and bump ``updated_at``."""
        async with self._operation("save", workspace_id=workspace.id):
            await self._touch(workspace)
        return workspace

    async def delete_by_id(self, workspace_id: str) -> bool:
        """Delete a workspace with its collaborators. False when it does not exist."""
        workspace = await self.find_by_id(workspace_id)
        if workspace is None:
            return False
        async with self._operation("delete", workspace_id=workspace_id):
            await self.session.delete(workspace)
            await self.session.flush()
        logger.info("Workspace deleted", extra={"workspace_id": workspace_id})
        return True

    async def add_collaborator(self, workspace: Workspace, user_id: str) -> bool:
        """False when the user already collaborates."""
        if user_id in workspace.collaborator_ids:
            return False
        async with self._operation(
            "add_collaborator", COLLABORATORS, workspace_id=workspace.id, user_id=user_id
        ):
            workspace.collaborators.append(WorkspaceCollaborator(user_id=user_id))
            await self._touch(workspace)
        logger.info(
            "Collaborator added", extra={"workspace_id": workspace.id, "user_id": user_id}
        )
        return True

    async def remove_collaborator(self, workspace: Workspace, user_id: str) -> bool:
        """False when the user was not a collaborator."""
        remaining = [c for c in workspace.collaborators if c.user_id != user_id]
        if len(remaining) == len(workspace.collaborators):
            return False
        async with self._operation(
            "remove_collaborator", COLLABORATORS, workspace_id=workspace.id, user_id=user_id
        ):
            workspace.collaborators = remaining
            await self._touch(workspace)
        logger.info(
            "Collaborator removed", extra={"workspace_id": workspace.id, "user_id": user_id}
        )
        return True
