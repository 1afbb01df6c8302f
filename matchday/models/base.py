from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from bson import ObjectId
from bson.decimal128 import Decimal128
from pydantic import BaseModel, BeforeValidator, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_bson_decimal(value: Any) -> Any:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return value


def _str_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


# Decimal stored as Decimal128 in Mongo
Money = Annotated[Decimal, BeforeValidator(_from_bson_decimal)]

# ObjectId stored in Mongo, exposed as str
StrId = Annotated[str, BeforeValidator(_str_id)]


class MongoModel(BaseModel):
    id: StrId = Field(validation_alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True
    )
