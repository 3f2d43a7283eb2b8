from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Union

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel


def decimal_to_number(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimals travel as JSON numbers; integral values stay integers on the wire.
Number = Annotated[Decimal, PlainSerializer(decimal_to_number, when_used="json")]


class PlatformModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_wire(payload: Any) -> Any:
    """Convert request bodies (models, or dicts and lists of them) to JSON-ready data."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(payload, dict):
        return {key: to_wire(value) for key, value in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [to_wire(item) for item in payload]
    if isinstance(payload, Decimal):
        return decimal_to_number(payload)
    if isinstance(payload, datetime):
        return payload.isoformat()
    return payload
