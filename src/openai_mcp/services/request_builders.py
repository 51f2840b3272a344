"""Builders for the per-capability OperationRequest.

Each optional argument gets its own `is not None` check. Caller-supplied
structures (messages, tools, tool_choice) are attached as-is and never
filtered, so nested nulls inside them survive untouched.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from openai_mcp.models.operation_model import OperationRequest

DEFAULT_IMAGE_MODEL = "dall-e-3"


def build_chat_completion(
    model: str,
    messages: List[Dict[str, Any]],
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    top_p: Optional[float] = None,
    tools: Optional[List[Any]] = None,
    tool_choice: Optional[Any] = None,
) -> OperationRequest:
    body: Dict[str, Any] = {"model": model, "messages": messages}

    if temperature is not None:
        body["temperature"] = temperature
    if max_tokens is not None:
        body["max_tokens"] = max_tokens
    if top_p is not None:
        body["top_p"] = top_p
    if tools is not None:
        body["tools"] = tools
    if tool_choice is not None:
        body["tool_choice"] = tool_choice

    return OperationRequest(method="POST", path="/chat/completions", body=body)


def build_create_embedding(
    model: str,
    input: Union[str, List[str]],
    dimensions: Optional[int] = None,
) -> OperationRequest:
    body: Dict[str, Any] = {"model": model, "input": input}

    if dimensions is not None:
        body["dimensions"] = dimensions

    return OperationRequest(method="POST", path="/embeddings", body=body)


def build_list_models() -> OperationRequest:
    return OperationRequest(method="GET", path="/models")


def build_get_model(model_id: str) -> OperationRequest:
    # Fine-tuned ids look like "ft:gpt-4o:org:name:id"; ":" is path-safe, "/" is not.
    return OperationRequest(method="GET", path=f"/models/{quote(model_id, safe=':')}")


def build_create_image(
    prompt: str,
    model: Optional[str] = None,
    size: Optional[str] = None,
    quality: Optional[str] = None,
    n: Optional[int] = None,
) -> OperationRequest:
    body: Dict[str, Any] = {"prompt": prompt, "model": model or DEFAULT_IMAGE_MODEL}

    if size is not None:
        body["size"] = size
    if quality is not None:
        body["quality"] = quality
    if n is not None:
        body["n"] = n

    return OperationRequest(method="POST", path="/images/generations", body=body)


def build_create_speech(
    model: str,
    input: str,
    voice: str,
    response_format: Optional[str] = None,
    speed: Optional[float] = None,
) -> OperationRequest:
    body: Dict[str, Any] = {"model": model, "input": input, "voice": voice}

    if response_format is not None:
        body["response_format"] = response_format
    if speed is not None:
        body["speed"] = speed

    return OperationRequest(
        method="POST", path="/audio/speech", body=body, response_mode="binary"
    )


def build_create_transcription(
    model: str,
    file_url: str,
    language: Optional[str] = None,
    response_format: Optional[str] = None,
) -> OperationRequest:
    # Known simplification: the provider expects a multipart upload of the
    # audio file; this forwards the URL as a plain JSON field instead.
    body: Dict[str, Any] = {"model": model, "file": file_url}

    if language is not None:
        body["language"] = language
    if response_format is not None:
        body["response_format"] = response_format

    return OperationRequest(method="POST", path="/audio/transcriptions", body=body)


def build_moderate_content(input: str, model: Optional[str] = None) -> OperationRequest:
    body: Dict[str, Any] = {"input": input}

    if model is not None:
        body["model"] = model

    return OperationRequest(method="POST", path="/moderations", body=body)
