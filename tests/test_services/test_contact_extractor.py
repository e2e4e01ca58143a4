from unittest.mock import AsyncMock, MagicMock

import pytest

from app.exceptions.custom import LLMError
from app.services.contact_extractor import ContactExtractorService, normalize_number


@pytest.fixture
def llm():
    llm = MagicMock()
    llm.complete_structured = AsyncMock(return_value={"whatsapp": None, "phone": None})
    return llm


def test_normalize_number():
    assert normalize_number("+852 9123-4567") == "+85291234567"
    assert normalize_number("2123 4567") == "21234567"
    assert normalize_number("N/A") is None
    assert normalize_number(None) is None
    assert normalize_number(85291234567) is None


async def test_extracts_and_normalizes(llm):
    llm.complete_structured.return_value = {"whatsapp": "+852 9869 5611", "phone": "2123-4567"}

    contact = await ContactExtractorService(llm).extract("WhatsApp: +852 9869 5611 Tel: 2123-4567")

    assert contact.whatsapp == "+85298695611"
    assert contact.phone == "21234567"


async def test_html_is_stripped_before_prompting(llm):
    await ContactExtractorService(llm).extract(
        "<html><body><script>track()</script><p>Tel: 2123 4567</p></body></html>"
    )

    prompt = llm.complete_structured.await_args.args[1]
    assert "Tel: 2123 4567" in prompt
    assert "track()" not in prompt
    assert "<p>" not in prompt


async def test_empty_content_skips_model(llm):
    contact = await ContactExtractorService(llm).extract("   ")

    assert contact.whatsapp is None
    assert contact.phone is None
    llm.complete_structured.assert_not_awaited()


async def test_model_failure_degrades_to_empty(llm):
    llm.complete_structured.side_effect = LLMError("boom")

    contact = await ContactExtractorService(llm).extract("Tel: 2123 4567")

    assert contact.whatsapp is None
    assert contact.phone is None
