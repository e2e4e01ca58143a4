from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import ContactExtractorDep
from app.schemas.contact import ContactInfo

router = APIRouter()


class ContactRequest(BaseModel):
    content: str


@router.post("/contacts/extract", response_model=ContactInfo)
async def extract_contacts(
    request: ContactRequest, extractor: ContactExtractorDep
) -> ContactInfo:
    return await extractor.extract(request.content)
