# tools/handlers.py

import json
from typing import Annotated, Any, Awaitable, Dict, List, Optional, Union

from mcp.types import CallToolResult, TextContent
from pydantic import Field

from openai_mcp.core.logger import setup_logger
from openai_mcp.services.dispatcher import Dispatcher

logger = setup_logger(__name__)


def render_result(result: Any) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False)


def render_error(error: BaseException) -> str:
    message = str(error) or "An unknown error occurred"
    return f"Error: {message}"


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


class ToolHandlers:
    """MCP-facing wrappers around the Dispatcher capabilities.

    Every handler returns a single text block: the provider payload as pretty
    JSON, or an `Error: ...` line with `isError` set so the client can tell the
    two apart. Failures are reported, never raised, so one bad call cannot
    take the server down.
    """

    def __init__(self, dispatcher: Dispatcher, tool_name_prefix: str = "") -> None:
        self.dispatcher = dispatcher
        self.tool_name_prefix = tool_name_prefix

    async def _run(self, tool_name: str, call: Awaitable[Any]) -> CallToolResult:
        exposed = f"{self.tool_name_prefix}{tool_name}"
        try:
            result = await call
        except Exception as e:
            logger.error(f"Tool '{exposed}' failed: {e}")
            return _text_result(render_error(e), is_error=True)
        return _text_result(render_result(result))

    async def chat_completion(
        self,
        model: Annotated[str, Field(description="The model to use for chat completion (e.g., gpt-4, gpt-3.5-turbo)")],
        messages: Annotated[List[Dict[str, Any]], Field(description="Array of message objects with role and content")],
        temperature: Annotated[Optional[float], Field(description="Sampling temperature between 0 and 2")] = None,
        max_tokens: Annotated[Optional[int], Field(description="Maximum number of tokens to generate")] = None,
        top_p: Annotated[Optional[float], Field(description="Nucleus sampling parameter")] = None,
        tools: Annotated[Optional[List[Any]], Field(description="List of tools the model may call")] = None,
        tool_choice: Annotated[Optional[Any], Field(description="Controls which (if any) tool is called")] = None,
    ) -> CallToolResult:
        return await self._run(
            "openai_chat_completion",
            self.dispatcher.chat_completion(
                model, messages, temperature, max_tokens, top_p, tools, tool_choice
            ),
        )

    async def create_embedding(
        self,
        model: Annotated[str, Field(description="The model to use for embeddings (e.g., text-embedding-3-small)")],
        input: Annotated[Union[str, List[str]], Field(description="Input text or array of texts to embed")],
        dimensions: Annotated[Optional[int], Field(description="Number of dimensions for the embedding vector")] = None,
    ) -> CallToolResult:
        return await self._run(
            "openai_create_embedding", self.dispatcher.create_embedding(model, input, dimensions)
        )

    async def list_models(self) -> CallToolResult:
        return await self._run("openai_list_models", self.dispatcher.list_models())

    async def get_model(
        self,
        model_id: Annotated[str, Field(description="The ID of the model to retrieve")],
    ) -> CallToolResult:
        return await self._run("openai_get_model", self.dispatcher.get_model(model_id))

    async def create_image(
        self,
        prompt: Annotated[str, Field(description="Text description of the desired image")],
        model: Annotated[Optional[str], Field(description="The model to use (default: dall-e-3)")] = None,
        size: Annotated[Optional[str], Field(description="Size of the generated image (e.g., 1024x1024)")] = None,
        quality: Annotated[Optional[str], Field(description="Quality of the image (standard or hd)")] = None,
        n: Annotated[Optional[int], Field(description="Number of images to generate")] = None,
    ) -> CallToolResult:
        return await self._run(
            "openai_create_image", self.dispatcher.create_image(prompt, model, size, quality, n)
        )

    async def create_speech(
        self,
        model: Annotated[str, Field(description="TTS model to use (e.g., tts-1, tts-1-hd)")],
        input: Annotated[str, Field(description="The text to generate audio for")],
        voice: Annotated[str, Field(description="Voice to use (alloy, echo, fable, onyx, nova, shimmer)")],
        response_format: Annotated[Optional[str], Field(description="Audio format (mp3, opus, aac, flac)")] = None,
        speed: Annotated[Optional[float], Field(description="Speed of audio playback (0.25 to 4.0)")] = None,
    ) -> CallToolResult:
        return await self._run(
            "openai_create_speech",
            self.dispatcher.create_speech(model, input, voice, response_format, speed),
        )

    async def create_transcription(
        self,
        model: Annotated[str, Field(description="The model to use for transcription (e.g., whisper-1)")],
        file_url: Annotated[str, Field(description="URL of the audio file to transcribe")],
        language: Annotated[Optional[str], Field(description="Language of the input audio (ISO-639-1)")] = None,
        response_format: Annotated[Optional[str], Field(description="Format of the transcript output")] = None,
    ) -> CallToolResult:
        return await self._run(
            "openai_create_transcription",
            self.dispatcher.create_transcription(model, file_url, language, response_format),
        )

    async def moderate_content(
        self,
        input: Annotated[str, Field(description="Text to classify for moderation")],
        model: Annotated[Optional[str], Field(description="Moderation model to use")] = None,
    ) -> CallToolResult:
        return await self._run("openai_moderate_content", self.dispatcher.moderate_content(input, model))
