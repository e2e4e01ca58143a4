from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from app.exceptions.custom import LLMError, RateLimitError
from app.services.llm import LLMService

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _block(type_: str, **fields):
    block = MagicMock()
    block.type = type_
    for name, value in fields.items():
        setattr(block, name, value)
    return block


def _make_response(*blocks):
    resp = MagicMock()
    resp.content = list(blocks)
    return resp


@pytest.fixture
def service():
    return LLMService(api_key="test-key", model="test-model")


async def test_complete_joins_text_blocks(service):
    mock_resp = _make_response(_block("text", text="Hello "), _block("text", text="world"))
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp) as create:
        result = await service.complete("system", "user")

    assert result == "Hello world"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["system"] == "system"
    assert kwargs["messages"] == [{"role": "user", "content": "user"}]


async def test_complete_empty_raises(service):
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=_make_response()):
        with pytest.raises(LLMError, match="Empty"):
            await service.complete("system", "user")


async def test_complete_structured_returns_tool_input(service):
    mock_resp = _make_response(_block("tool_use", input={"phone": "21234567", "whatsapp": None}))
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp) as create:
        result = await service.complete_structured("system", "user", "contact_info", {"type": "object"})

    assert result == {"phone": "21234567", "whatsapp": None}
    kwargs = create.await_args.kwargs
    assert kwargs["tool_choice"] == {"type": "tool", "name": "contact_info"}
    assert kwargs["tools"][0]["input_schema"] == {"type": "object"}


async def test_complete_structured_without_tool_call_raises(service):
    mock_resp = _make_response(_block("text", text="I can't do that"))
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp):
        with pytest.raises(LLMError):
            await service.complete_structured("system", "user", "contact_info", {"type": "object"})


async def test_rate_limit_mapped(service):
    error = anthropic.RateLimitError(
        "slow down", response=httpx.Response(429, request=_REQUEST), body=None
    )
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, side_effect=error):
        with pytest.raises(RateLimitError):
            await service.complete("system", "user")


async def test_status_error_mapped(service):
    error = anthropic.InternalServerError(
        "overloaded", response=httpx.Response(529, request=_REQUEST), body=None
    )
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, side_effect=error):
        with pytest.raises(LLMError) as exc_info:
            await service.complete("system", "user")

    assert exc_info.value.status_code == 529


async def test_connection_error_mapped(service):
    error = anthropic.APIConnectionError(request=_REQUEST)
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, side_effect=error):
        with pytest.raises(LLMError) as exc_info:
            await service.complete("system", "user")

    assert exc_info.value.status_code is None
