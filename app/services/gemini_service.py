"""
Gemini structured-output client (REST generateContent).

Every call asks for ``application/json`` constrained by a response schema and
validates the parsed JSON against a pydantic model before handing it back, so
callers never see an unchecked payload.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.errors import ResponseValidationError
from app.core.logging import get_logger
from app.core.retry import RetryPolicy, Sleep, send_with_retry

logger = get_logger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _strip_fences(text: str) -> str:
    """Drop ```json fences some model versions still wrap around JSON."""
    text = re.sub(r"^```(?:json)?\s*", "", text.strip())
    return re.sub(r"\s*```$", "", text).strip()


class GeminiService:
    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        model: str = "gemini-2.5-flash",
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_API_BASE}/models/{self.model}:generateContent"

    async def generate_json(self, prompt: str, response_schema: dict[str, Any]) -> Any:
        """Send ``prompt`` and return the parsed JSON the model produced."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

        async def _send() -> httpx.Response:
            return await self.client.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key},
                json=payload,
            )

        resp = await send_with_retry(
            _send, self.retry_policy, service="gemini", sleep=self.sleep
        )

        try:
            body = resp.json()
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ResponseValidationError("gemini", "response did not contain any content") from e

        try:
            return json.loads(_strip_fences(text))
        except ValueError as e:
            raise ResponseValidationError("gemini", f"content is not valid JSON: {e}") from e

    async def generate(self, prompt: str, response_schema: dict[str, Any], model_cls: type[ModelT]) -> ModelT:
        """generate_json() followed by validation against ``model_cls``."""
        data = await self.generate_json(prompt, response_schema)
        try:
            result = model_cls.model_validate(data)
        except ValidationError as e:
            raise ResponseValidationError(
                "gemini", f"content does not match {model_cls.__name__}: {e.error_count()} errors"
            ) from e

        logger.info("gemini_content_validated", model=self.model, schema=model_cls.__name__)
        return result
