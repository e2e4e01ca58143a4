from enum import StrEnum

from pydantic import BaseModel


class FetchMethod(StrEnum):
    direct = "direct"
    rendered = "rendered"


class FetchResult(BaseModel):
    model_config = {"frozen": True}

    html: str
    method: FetchMethod
