"""Calendar weeks used to pick the commit an unstable build is made from.

A week is addressed by ``(year, number)`` and starts on the Monday of
ISO week ``number`` counted from ISO week 1 of ``year``; it ends one second
before the following Monday. Instants are timezone-aware datetimes in the
week's ``tz``; day arithmetic is wall-clock, so a week is always
Monday 00:00:00 through Sunday 23:59:59 local time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta, tzinfo

__all__ = ["Week"]

_ONE_SECOND = timedelta(seconds=1)


@dataclass(frozen=True, slots=True)
class Week:
    year: int
    number: int
    tz: tzinfo = field(default=UTC, compare=False)

    def __post_init__(self) -> None:
        if not 1 <= self.number <= 53:
            raise ValueError(f"week number must be within 1..53, got {self.number}")

    @classmethod
    def current(cls, now: datetime | None = None, *, tz: tzinfo = UTC) -> Week:
        """Week containing ``now`` (defaults to the wall clock)."""
        moment = datetime.now(tz) if now is None else now.astimezone(tz)
        iso = moment.isocalendar()
        return cls(iso.year, iso.week, tz)

    def start(self) -> datetime:
        """First second of the week (Monday 00:00:00)."""
        week_one = date.fromisocalendar(self.year, 1, 1)
        monday = week_one + timedelta(weeks=self.number - 1)
        return datetime.combine(monday, time(0, 0, 0), tzinfo=self.tz)

    def end(self) -> datetime:
        """Last second of the week (Sunday 23:59:59)."""
        return self.start() + timedelta(days=7) - _ONE_SECOND

    def contains(self, instant: datetime) -> bool:
        return self.start() <= instant <= self.end()

    def previous(self) -> Week:
        """The week whose range holds the second before this week starts.

        The candidate second is turned into (calendar year, ISO week number)
        first. Around New Year those two disagree: the Sunday 2023-01-01
        belongs to ISO week 52 of 2022, so the naive pair (2023, 52) lands
        a whole year late. The pair is therefore checked against the
        candidate and shifted one year back or forward when it misses.
        """
        candidate = self.start() - _ONE_SECOND
        week_number = candidate.isocalendar().week

        naive = Week(candidate.year, week_number, self.tz)
        if naive.contains(candidate):
            return naive

        if candidate < naive.start():
            return Week(candidate.year - 1, week_number, self.tz)

        return Week(candidate.year + 1, week_number, self.tz)

    def __str__(self) -> str:
        return f"{self.year}-W{self.number:02d}"
