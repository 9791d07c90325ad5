from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.utils.timezone import ensure_utc, school_tz


class CamelModel(BaseModel):
    """Request bodies sent by the front end use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def as_school_time(value: datetime) -> datetime:
    """Naive datetimes are wall-clock times at the school; everything is normalized to UTC."""
    if value is not None and value.tzinfo is None:
        value = value.replace(tzinfo=school_tz())
    return ensure_utc(value)
