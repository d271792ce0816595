import datetime as dt

import pytest
from pydantic import ValidationError

from modules.maintenance.schemas import MaintenanceRequest, UsageEntry


def test_request_parses_aliases():
    req = MaintenanceRequest.model_validate({
        "machineId": " m-1 ",
        "date": "2024-02-29",
        "usedStock": [{"stockId": "s-1", "quantity": 2}],
    })
    assert req.machine_id == "m-1"
    assert req.date == dt.date(2024, 2, 29)
    assert req.status == "scheduled"
    assert req.description == ""
    assert req.used_stock == (UsageEntry(stockId="s-1", quantity=2),)


def test_observations_is_an_alias_for_description():
    req = MaintenanceRequest.model_validate({"machineId": "m", "date": "2024-01-01", "observations": "noisy"})
    assert req.description == "noisy"


def test_shorthand_does_not_override_explicit_used_stock():
    req = MaintenanceRequest.model_validate({
        "machineId": "m",
        "date": "2024-01-01",
        "stockItemId": "ignored",
        "quantityUsed": 1,
        "usedStock": [{"stockId": "kept", "quantity": 3}],
    })
    assert [e.stock_id for e in req.used_stock] == ["kept"]


@pytest.mark.parametrize("date", ["2024-13-01", "2024-02-30", "yesterday", ""])
def test_invalid_dates_rejected(date):
    with pytest.raises(ValidationError):
        MaintenanceRequest.model_validate({"machineId": "m", "date": date})


def test_fractional_quantity_rejected():
    with pytest.raises(ValidationError):
        UsageEntry.model_validate({"stockId": "s", "quantity": 1.5})


def test_request_is_immutable():
    req = MaintenanceRequest.model_validate({"machineId": "m", "date": "2024-01-01"})
    with pytest.raises(ValidationError):
        req.status = "completed"
