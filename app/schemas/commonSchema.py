import datetime as dt
from typing import Optional
from pydantic import BaseModel


def naive_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """Stored timestamps are naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


class SlotSchema(BaseModel):
    """One candidate meeting time."""
    date: dt.date
    time: dt.time
