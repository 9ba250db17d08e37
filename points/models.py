from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes so every ledger timestamp compares cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Transaction(BaseModel):
    payer: str = Field(..., description="Payer the points belong to")
    points: Decimal = Field(..., description="Positive for a credit, negative for a debit")
    timestamp: datetime = Field(..., description="Event time used for ordering")

    model_config = ConfigDict(frozen=True, json_schema_extra={
        "example": {
            "payer": "DANNON",
            "points": 1000,
            "timestamp": "2020-11-02T14:00:00Z",
        }
    })

    @field_validator("payer")
    @classmethod
    def _payer_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("payer must be non-empty")
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


def points_to_json(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal inside the ledger, plain JSON number on the wire
JsonPoints = Annotated[Decimal, PlainSerializer(points_to_json, when_used="json")]


class PayerPoints(BaseModel):
    payer: str
    points: JsonPoints


class SpendRequest(BaseModel):
    # validated by spend.coerce_amount so bad amounts surface as InvalidAmount
    points: Any = None

    model_config = ConfigDict(json_schema_extra={"example": {"points": 5000}})


class AddTransactionsResponse(BaseModel):
    data: str = "Ok"


class SpendResponse(BaseModel):
    data: list[PayerPoints]


class BalanceResponse(BaseModel):
    data: dict[str, JsonPoints]
