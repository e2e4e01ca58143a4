from pydantic import BaseModel


class StoredObject(BaseModel):
    key: str
    url: str


class DeleteResult(BaseModel):
    success: bool
    error: str | None = None
