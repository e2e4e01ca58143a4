from pydantic import BaseModel


class ContactInfo(BaseModel):
    whatsapp: str | None = None  # digits, optional leading '+'
    phone: str | None = None
