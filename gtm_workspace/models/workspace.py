"""Workspace model with the nested GTM document stored as JSONB.

The Workspace row holds identity and ownership as columns:
- slug (unique, assigned once at creation)
- owner reference and company profile
- collaborators as a child table

Everything the user edits inside the workspace (products, segments with
their personas, social proof, outbound experience...) lives in the single
``document`` JSONB column and is always rewritten as a whole.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gtm_workspace.core.database import Base


class Workspace(Base):
    """Workspace model, the root aggregate.

    Attributes:
        id: UUID primary key
        slug: URL-safe unique identifier, immutable after creation
        name: Display name
        owner_id: Reference to the owning user
        company_name: Company profile name
        company_url: Company website URL
        domain: Company domain (from the ICP editor)
        document: JSONB with products, segments, personas and ICP sections
        icp_enrichment_versions: JSONB map of variant number to GTM summary
        created_at: Timestamp when workspace was created
        updated_at: Timestamp when workspace was last updated

    Example document structure:
        {
            "products": [{"id": "...", "name": "Ledger", "features": [...]}],
            "segments": [{"id": "...", "name": "Fintech", "personas": [...]}],
            "socialProof": {"caseStudies": [], "testimonials": []},
            "useCases": ["Month-end close"]
        }
    """

    __tablename__ = "workspaces"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    slug: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    company_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    company_url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )

    domain: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    document: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    icp_enrichment_versions: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        doc="Variant number -> generated GTM summary; a failed variant is null",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(UTC),
    )

    collaborators: Mapped[list["WorkspaceCollaborator"]] = relationship(
        "WorkspaceCollaborator",
        back_populates="workspace",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="WorkspaceCollaborator.created_at",
    )

    @property
    def collaborator_ids(self) -> list[str]:
        return [c.user_id for c in self.collaborators]

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def is_member(self, user_id: str) -> bool:
        """Owner or collaborator."""
        return self.is_owner(user_id) or user_id in self.collaborator_ids

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id!r}, slug={self.slug!r}, owner_id={self.owner_id!r})>"


class WorkspaceCollaborator(Base):
    """A user with read/write access to a workspace they do not own."""

    __tablename__ = "workspace_collaborators"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_collaborator"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
        server_default=text("gen_random_uuid()"),
    )

    workspace_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("now()"),
    )

    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="collaborators",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceCollaborator(workspace_id={self.workspace_id!r}, "
            f"user_id={self.user_id!r})>"
        )
