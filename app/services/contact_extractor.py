import logging

from app.mappers.html_text import html_to_text, looks_like_html
from app.schemas.contact import ContactInfo
from app.services.llm import LLMService

logger = logging.getLogger(__name__)

_MAX_INPUT_CHARS = 20_000

_SYSTEM_PROMPT = """You extract contact numbers (WhatsApp and phone) from travel agency content.

Rules:
1. Hong Kong phone numbers are usually 8 digits (e.g. 2123 4567, 9123 4567).
2. WhatsApp numbers often carry a country code (e.g. +852 9123 4567, 852-91234567, 98695611).
3. When several numbers are present, prefer the ones labelled "WhatsApp", "enquiry" or "查詢".
4. Remove spaces, hyphens and other formatting; keep only digits and a leading +.
5. If a number cannot be found, use null."""

CONTACT_SCHEMA = {
    "type": "object",
    "properties": {
        "whatsapp": {
            "type": ["string", "null"],
            "description": "WhatsApp number (digits with an optional leading +)",
        },
        "phone": {
            "type": ["string", "null"],
            "description": "Phone number (digits only)",
        },
    },
    "required": ["whatsapp", "phone"],
    "additionalProperties": False,
}


def normalize_number(value: object) -> str | None:
    """Digits with an optional leading '+', or None when no digits remain."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    digits = "".join(c for c in value if c.isdigit())
    if not digits:
        return None
    return f"+{digits}" if value.startswith("+") else digits


class ContactExtractorService:
    def __init__(self, llm: LLMService):
        self._llm = llm

    async def extract(self, content: str) -> ContactInfo:
        """Best-effort contact extraction. Never raises."""
        try:
            text = html_to_text(content) if looks_like_html(content) else content.strip()
            if not text:
                return ContactInfo()

            result = await self._llm.complete_structured(
                _SYSTEM_PROMPT,
                f"Extract the WhatsApp and phone numbers from this content:\n\n{text[:_MAX_INPUT_CHARS]}",
                schema_name="contact_info",
                schema=CONTACT_SCHEMA,
                max_tokens=256,
            )
            return ContactInfo(
                whatsapp=normalize_number(result.get("whatsapp")),
                phone=normalize_number(result.get("phone")),
            )
        except Exception:
            logger.exception("Contact extraction failed")
            return ContactInfo()
