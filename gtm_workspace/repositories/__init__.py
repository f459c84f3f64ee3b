"""Repositories layer - data access for the workspace store."""

from gtm_workspace.repositories.workspace import WorkspaceRepository

__all__ = ["WorkspaceRepository"]
