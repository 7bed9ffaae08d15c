"""
Program Planner - Common Schema Types
"""
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """タイムゾーンなしの日時は UTC とみなす"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UTCDatetime = Annotated[datetime, AfterValidator(as_utc)]
