from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class BookingCreate(BaseModel):
    email: EmailStr


class BookingOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id")
    event_id: str
    email: str
    created_at: Optional[datetime] = None

    @field_validator("id", "event_id", mode="before")
    @classmethod
    def stringify_object_id(cls, value):
        return str(value)


class BookingResponse(BaseModel):
    message: str
    booking: BookingOut
