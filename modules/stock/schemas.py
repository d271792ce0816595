"""Request payloads for stock items."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StockItemRequest(BaseModel):
    """Create/replace payload. Quantity is the quantity on hand and never negative."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(0, ge=0)
    unit: Optional[str] = Field(None, max_length=32)
    value: float = Field(0.0, ge=0)
    location: Optional[str] = Field(None, max_length=120)
