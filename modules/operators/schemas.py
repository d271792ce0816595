"""Request payloads for operators."""

from pydantic import BaseModel, ConfigDict, Field


class OperatorRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
