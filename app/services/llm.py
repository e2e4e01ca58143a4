import logging

import anthropic
from anthropic import AsyncAnthropic

from app.exceptions.custom import LLMError, RateLimitError

logger = logging.getLogger(__name__)

MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 4096
_TIMEOUT = 120.0

Content = str | list[dict]


def text_block(text: str) -> dict:
    return {"type": "text", "text": text}


def image_block(url: str) -> dict:
    return {"type": "image", "source": {"type": "url", "url": url}}


class LLMService:
    def __init__(self, api_key: str, model: str = MODEL, max_tokens: int = MAX_TOKENS):
        self._client = AsyncAnthropic(api_key=api_key, timeout=_TIMEOUT)
        self._model = model
        self._max_tokens = max_tokens

    async def _create(self, system: str, content: Content, max_tokens: int | None, **kwargs):
        try:
            return await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens or self._max_tokens,
                system=system,
                messages=[{"role": "user", "content": content}],
                **kwargs,
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError("LLM") from exc
        except anthropic.APIStatusError as exc:
            raise LLMError(exc.message, status_code=exc.status_code) from exc
        except anthropic.APIError as exc:
            raise LLMError(str(exc)) from exc

    async def complete(
        self, system: str, content: Content, max_tokens: int | None = None
    ) -> str:
        """Return the text of a single completion. Raises LLMError when empty."""
        response = await self._create(system, content, max_tokens)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text:
            raise LLMError("Empty completion")
        return text

    async def complete_structured(
        self,
        system: str,
        content: Content,
        schema_name: str,
        schema: dict,
        max_tokens: int | None = None,
    ) -> dict:
        """Force one tool call whose input schema is the requested output schema."""
        response = await self._create(
            system,
            content,
            max_tokens,
            tools=[{
                "name": schema_name,
                "description": f"Record the extracted {schema_name} data.",
                "input_schema": schema,
            }],
            tool_choice={"type": "tool", "name": schema_name},
        )
        for block in response.content:
            if getattr(block, "type", None) == "tool_use":
                return dict(block.input)
        raise LLMError(f"No {schema_name} tool call in response")
