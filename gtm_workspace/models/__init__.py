"""Models layer - SQLAlchemy ORM models.

All models inherit from the Base class defined in core.database.
"""

from gtm_workspace.core.database import Base
from gtm_workspace.models.workspace import Workspace, WorkspaceCollaborator

__all__ = [
    "Base",
    "Workspace",
    "WorkspaceCollaborator",
]
