"""Request payloads for machines and sensors."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SensorRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=64)


class MachineRequest(BaseModel):
    """Payload for creating or replacing a machine (sensors are replaced wholesale)."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    model: Optional[str] = Field(None, max_length=120)
    manufacturer: Optional[str] = Field(None, max_length=120)
    year: Optional[int] = Field(None, ge=0)
    status: str = Field("active", min_length=1, max_length=64)
    operator_id: Optional[str] = Field(None, alias="operatorId")
    sensors: list[SensorRequest] = Field(default_factory=list)

    @field_validator("operator_id", mode="before")
    @classmethod
    def _blank_operator_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
