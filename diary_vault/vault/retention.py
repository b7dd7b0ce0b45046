"""Vault retention policy: when old vault entries are archived or deleted."""
import calendar
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, model_validator


def subtract_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class RetentionPolicy(BaseModel):
    enabled: bool = False
    delete_after_months: int = Field(default=18, ge=1, le=120)
    archive_after_months: int = Field(default=12, ge=1, le=120)
    notify_before_days: int = Field(default=30, ge=1, le=90)

    @model_validator(mode="after")
    def validate_periods(self) -> "RetentionPolicy":
        if self.enabled and self.delete_after_months <= self.archive_after_months:
            raise ValueError("Delete period must be longer than archive period")
        return self

    def cutoffs(self, now: Optional[datetime] = None) -> dict[str, datetime]:
        """Entries created before ``archive_before``/``delete_before`` are due."""
        now = now or datetime.now(timezone.utc)
        return {
            "archive_before": subtract_months(now, self.archive_after_months),
            "delete_before": subtract_months(now, self.delete_after_months),
        }
