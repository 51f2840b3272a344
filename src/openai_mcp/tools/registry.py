from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult

from openai_mcp.core.tooling_config import ToolingConfig
from openai_mcp.tools.handlers import ToolHandlers


@dataclass(frozen=True)
class RegisteredTool:
    # unprefixed name; the tooling config may prepend a prefix at registration time
    name: str
    description: str
    handler: Callable[..., Awaitable[CallToolResult]]


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, RegisteredTool] = {}

    def register_tool(self, tool: RegisteredTool) -> None:
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def tools(self) -> List[RegisteredTool]:
        return list(self._tools.values())


def build_registry(handlers: ToolHandlers) -> ToolRegistry:
    registry = ToolRegistry()
    catalogue = [
        ("openai_chat_completion", "Create a chat completion using OpenAI models like GPT-4 or GPT-3.5-turbo.", handlers.chat_completion),
        ("openai_create_embedding", "Create embeddings for text input using OpenAI embedding models.", handlers.create_embedding),
        ("openai_list_models", "List all available OpenAI models and their details.", handlers.list_models),
        ("openai_get_model", "Get detailed information about a specific OpenAI model.", handlers.get_model),
        ("openai_create_image", "Generate images using DALL-E models based on text prompts.", handlers.create_image),
        ("openai_create_speech", "Generate spoken audio from text using OpenAI TTS models.", handlers.create_speech),
        ("openai_create_transcription", "Transcribe audio to text using OpenAI Whisper model.", handlers.create_transcription),
        ("openai_moderate_content", "Classify text content for moderation using OpenAI moderation models.", handlers.moderate_content),
    ]
    for name, description, handler in catalogue:
        registry.register_tool(RegisteredTool(name=name, description=description, handler=handler))
    return registry


def register_tools(server: FastMCP, registry: ToolRegistry, config: Optional[ToolingConfig] = None) -> List[str]:
    """Add every enabled tool to `server`; returns the names it was registered under."""
    config = config or ToolingConfig()
    registered: List[str] = []

    for t in registry.tools():
        if not config.is_enabled(t.name):
            continue
        exposed = config.full_name(t.name)
        server.add_tool(t.handler, name=exposed, description=t.description)
        registered.append(exposed)

    return registered
