"""Error types raised along the analyze pipeline.

Only ``TranscriptionError`` is contained by the orchestrator; everything else
aborts the request and is rendered by the routes.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for all vision relay errors."""

    code: str = "RELAY_ERROR"

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }

    def __str__(self) -> str:
        return self.message


class ClientInputError(RelayError):
    code = "CLIENT_INPUT_ERROR"


class ConfigurationError(RelayError):
    code = "CONFIGURATION_ERROR"


class TranscriptionError(RelayError):
    code = "TRANSCRIPTION_ERROR"


class CompletionError(RelayError):
    code = "COMPLETION_ERROR"


class SynthesisError(RelayError):
    code = "SYNTHESIS_ERROR"
