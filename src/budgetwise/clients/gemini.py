"""Google Gemini client for structured (JSON) generation.

Uses the google-genai SDK's async surface so every request can be bounded by
a timeout.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import types

from budgetwise.config import get_logger, get_settings
from budgetwise.errors import UpstreamError

logger = get_logger(__name__)


@dataclass
class GeminiResponse:
    """Response from Gemini API."""

    content: str
    stop_reason: str
    usage: dict[str, int]


class GeminiClient:
    """Client for Google's Gemini API returning schema-constrained JSON."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        configured_key = (
            settings.google_api_key.get_secret_value() if settings.google_api_key else None
        )
        self._api_key = api_key or configured_key
        if not self._api_key:
            raise UpstreamError("GOOGLE_API_KEY is not configured")
        self._model_name = model or settings.gemini_model
        self._max_tokens = max_tokens or settings.llm_max_tokens
        self._temperature = temperature if temperature is not None else settings.llm_temperature
        self._timeout = timeout or settings.ai_timeout

        self._client = genai.Client(api_key=self._api_key)

        self._logger = logger.bind(client="gemini", model=self._model_name)

    def _convert_json_schema_to_gemini(self, schema: dict[str, Any]) -> dict[str, Any]:
        """Convert JSON Schema to Gemini's schema format.

        Gemini uses a subset of OpenAPI schema format.
        """
        gemini_schema: dict[str, Any] = {}

        if "type" in schema:
            type_map = {
                "string": "STRING",
                "integer": "INTEGER",
                "number": "NUMBER",
                "boolean": "BOOLEAN",
                "array": "ARRAY",
                "object": "OBJECT",
            }
            gemini_schema["type"] = type_map.get(schema["type"], "STRING")

        if "description" in schema:
            gemini_schema["description"] = schema["description"]

        if "enum" in schema:
            gemini_schema["enum"] = schema["enum"]

        if "properties" in schema:
            gemini_schema["properties"] = {
                k: self._convert_json_schema_to_gemini(v)
                for k, v in schema["properties"].items()
            }

        if "required" in schema:
            gemini_schema["required"] = schema["required"]

        if "items" in schema:
            gemini_schema["items"] = self._convert_json_schema_to_gemini(schema["items"])

        return gemini_schema

    def _parse_response(self, response: Any) -> GeminiResponse:
        """Parse Gemini response into our format."""
        content = ""
        stop_reason = "end_turn"

        if response.candidates:
            candidate = response.candidates[0]
            parts = candidate.content.parts if candidate.content else None

            for part in parts or []:
                if getattr(part, "text", None):
                    content += part.text

            stop_reason_map = {
                "STOP": "end_turn",
                "MAX_TOKENS": "max_tokens",
                "SAFETY": "content_filter",
                "RECITATION": "content_filter",
            }
            finish_reason = str(getattr(candidate.finish_reason, "name", candidate.finish_reason))
            stop_reason = stop_reason_map.get(finish_reason, "end_turn")

        usage = {"input_tokens": 0, "output_tokens": 0}
        if getattr(response, "usage_metadata", None):
            usage["input_tokens"] = (
                getattr(response.usage_metadata, "prompt_token_count", 0) or 0
            )
            usage["output_tokens"] = (
                getattr(response.usage_metadata, "candidates_token_count", 0) or 0
            )

        return GeminiResponse(content=content, stop_reason=stop_reason, usage=usage)

    async def generate_json(
        self,
        prompt: str,
        response_schema: dict[str, Any],
        system_prompt: str | None = None,
    ) -> dict[str, Any]:
        """Generate a JSON object matching ``response_schema``.

        Args:
            prompt: The rendered user prompt.
            response_schema: JSON Schema of the expected object.
            system_prompt: Optional system instruction.

        Returns:
            The decoded JSON object.

        Raises:
            UpstreamError: The request failed, timed out, or the reply was not
                a JSON object.
        """
        self._logger.debug("generating_json", prompt_chars=len(prompt))

        config = types.GenerateContentConfig(
            max_output_tokens=self._max_tokens,
            temperature=self._temperature,
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=types.Schema.model_validate(
                self._convert_json_schema_to_gemini(response_schema)
            ),
        )

        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model_name,
                    contents=prompt,
                    config=config,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            self._logger.error("api_timeout", timeout=self._timeout)
            raise UpstreamError(
                f"Gemini did not respond within {self._timeout:g}s",
                details={"timeout": self._timeout},
            ) from e
        except Exception as e:
            self._logger.error("api_error", error=str(e))
            raise UpstreamError(f"Gemini request failed: {e}") from e

        parsed = self._parse_response(response)
        self._logger.info(
            "response_generated",
            stop_reason=parsed.stop_reason,
            input_tokens=parsed.usage["input_tokens"],
            output_tokens=parsed.usage["output_tokens"],
        )

        try:
            data = json.loads(parsed.content)
        except json.JSONDecodeError as e:
            self._logger.error("invalid_json_response", stop_reason=parsed.stop_reason)
            raise UpstreamError(
                "Gemini returned a response that is not valid JSON",
                details={"content": parsed.content[:500], "stop_reason": parsed.stop_reason},
            ) from e
        if not isinstance(data, dict):
            raise UpstreamError(
                "Gemini returned JSON that is not an object", details={"content": data}
            )
        return data
