"""Integrations layer - External service clients.

Integrations handle communication with external APIs and services.
They abstract the details of external service protocols.
"""

from gtm_workspace.integrations.claude import (
    ClaudeClient,
    CompletionResult,
    close_claude,
    get_claude,
    init_claude,
)

__all__ = [
    "ClaudeClient",
    "CompletionResult",
    "close_claude",
    "get_claude",
    "init_claude",
]
