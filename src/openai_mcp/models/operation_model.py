from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, TypedDict

ResponseMode = Literal["json", "binary"]


@dataclass(frozen=True)
class OperationRequest:
    """One outbound call against the provider, relative to the base URL.

    `body` only carries optional fields the caller actually supplied;
    omission and an explicit null are different things to the provider.
    """

    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    response_mode: ResponseMode = "json"


class ModelInfo(TypedDict):
    id: str
    object: str
    created: int
    owned_by: str


class ModelsList(TypedDict):
    object: str
    data: List[ModelInfo]


class SpeechResult(TypedDict):
    """Speech audio re-encoded as text so it fits in a JSON tool result."""

    audio_base64: str


class TranscriptionResult(TypedDict, total=False):
    text: str
