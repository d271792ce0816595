"""
Request payloads for maintenance records.

The ledger only ever sees validated ``MaintenanceRequest`` objects: machine id
present, ISO date, known status, and usage entries with a non-empty stock id
and a positive integer quantity, each stock id at most once.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

MaintenanceStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]


class UsageEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    stock_id: str = Field(..., alias="stockId", min_length=1)
    quantity: int = Field(..., gt=0)


class MaintenanceRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True,
                              extra="ignore")

    machine_id: str = Field(..., alias="machineId", min_length=1)
    date: dt.date
    description: str = Field(
        "",
        validation_alias=AliasChoices("description", "observations"),
        max_length=4000,
    )
    status: MaintenanceStatus = "scheduled"
    used_stock: tuple[UsageEntry, ...] = Field((), alias="usedStock")

    @model_validator(mode="before")
    @classmethod
    def _fold_single_item(cls, data):
        # front-end shorthand: {"stockItemId": ..., "quantityUsed": ...}
        if isinstance(data, dict) and data.get("stockItemId") and "usedStock" not in data:
            data = dict(data)
            data["usedStock"] = [{"stockId": data["stockItemId"], "quantity": data.get("quantityUsed")}]
        return data

    @model_validator(mode="after")
    def _unique_stock_ids(self):
        seen = set()
        for entry in self.used_stock:
            if entry.stock_id in seen:
                raise ValueError(f"stock item '{entry.stock_id}' appears more than once in usedStock")
            seen.add(entry.stock_id)
        return self
