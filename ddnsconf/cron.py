"""Cron schedules, countdown messages and descriptions of time zones."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .duration import DurationError, format_duration, parse_duration

_MONTH_ABBRS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_NAMES = {name.lower(): number for number, name in enumerate(_MONTH_ABBRS, start=1)}
_DOW_NAMES = {name: number for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))}

_INTERVAL_UNIT = timedelta(seconds=1)
_INTERVAL_LARGE_GAP = timedelta(seconds=5)
_INTERVAL_HUGE_GAP = timedelta(minutes=10)
_YEAR_SEARCH_LIMIT = 5


class ScheduleError(ValueError):
    """A cron expression cannot be parsed."""


@dataclass(frozen=True)
class _Bounds:
    low: int
    high: int
    names: dict[str, int] = field(default_factory=dict)


_MINUTES = _Bounds(0, 59)
_HOURS = _Bounds(0, 23)
_DOMS = _Bounds(1, 31)
_MONTHS = _Bounds(1, 12, _MONTH_NAMES)
_DOWS = _Bounds(0, 6, _DOW_NAMES)


@dataclass(frozen=True)
class _Field:
    values: frozenset[int]
    star: bool = False

    @classmethod
    def every(cls, bounds: _Bounds) -> "_Field":
        return cls(frozenset(range(bounds.low, bounds.high + 1)), star=True)

    @classmethod
    def only(cls, value: int) -> "_Field":
        return cls(frozenset({value}))


@dataclass(frozen=True)
class _Every:
    delay: timedelta

    def next(self, now: datetime) -> datetime:
        return now.replace(microsecond=0) + self.delay


@dataclass(frozen=True)
class _Fields:
    minute: _Field
    hour: _Field
    dom: _Field
    month: _Field
    dow: _Field
    location: tzinfo | None = None

    def _day_matches(self, moment: datetime) -> bool:
        dom_match = moment.day in self.dom.values
        dow_match = (moment.weekday() + 1) % 7 in self.dow.values
        if self.dom.star or self.dow.star:
            return dom_match and dow_match
        return dom_match or dow_match

    def next(self, now: datetime) -> datetime | None:
        zone = self.location or now.tzinfo
        local = now.astimezone(zone) if zone is not None and now.tzinfo is not None else now
        moment = local.replace(second=0, microsecond=0, tzinfo=None) + timedelta(minutes=1)
        year_limit = moment.year + _YEAR_SEARCH_LIMIT

        while moment.year <= year_limit:
            if moment.month not in self.month.values:
                if moment.month == 12:
                    moment = moment.replace(year=moment.year + 1, month=1, day=1, hour=0, minute=0)
                else:
                    moment = moment.replace(month=moment.month + 1, day=1, hour=0, minute=0)
                continue
            if not self._day_matches(moment):
                moment = moment.replace(hour=0, minute=0) + timedelta(days=1)
                continue
            if moment.hour not in self.hour.values:
                moment = moment.replace(minute=0) + timedelta(hours=1)
                continue
            if moment.minute not in self.minute.values:
                moment += timedelta(minutes=1)
                continue
            return moment.replace(tzinfo=zone)
        return None


@dataclass(frozen=True)
class Schedule:
    """A parsed cron expression together with its original text."""

    spec: str
    _rule: _Every | _Fields = field(repr=False)

    def next(self, now: datetime | None = None) -> datetime | None:
        """The next scheduled time after ``now``, or ``None`` if there is none."""
        if now is None:
            now = datetime.now().astimezone()
        return self._rule.next(now)

    def describe(self) -> str:
        """The original cron expression."""
        return self.spec


def _parse_number(text: str, bounds: _Bounds) -> int:
    named = bounds.names.get(text.lower())
    if named is not None:
        return named
    try:
        number = int(text)
    except ValueError:
        raise ScheduleError(f"failed to parse int from {text}") from None
    if number < 0:
        raise ScheduleError(f"negative number ({number}) not allowed: {text}")
    return number


def _parse_range(expr: str, bounds: _Bounds) -> _Field:
    range_and_step = expr.split("/")
    low_and_high = range_and_step[0].split("-")
    star = False
    single = len(low_and_high) == 1

    if low_and_high[0] in ("*", "?"):
        start, end, star = bounds.low, bounds.high, True
    else:
        start = _parse_number(low_and_high[0], bounds)
        if len(low_and_high) == 1:
            end = start
        elif len(low_and_high) == 2:
            end = _parse_number(low_and_high[1], bounds)
        else:
            raise ScheduleError(f"too many hyphens: {expr}")

    if len(range_and_step) == 1:
        step = 1
    elif len(range_and_step) == 2:
        try:
            step = int(range_and_step[1])
        except ValueError:
            raise ScheduleError(f"failed to parse int from {range_and_step[1]}") from None
        if step < 0:
            raise ScheduleError(f"negative number ({step}) not allowed: {range_and_step[1]}")
        if single and not star:
            end = bounds.high
        if step > 1:
            star = False
    else:
        raise ScheduleError(f"too many slashes: {expr}")

    if start < bounds.low:
        raise ScheduleError(f"beginning of range ({start}) below minimum ({bounds.low}): {expr}")
    if end > bounds.high:
        raise ScheduleError(f"end of range ({end}) above maximum ({bounds.high}): {expr}")
    if start > end:
        raise ScheduleError(f"beginning of range ({start}) beyond end of range ({end}): {expr}")
    if step == 0:
        raise ScheduleError(f"step of range should be a positive number: {expr}")

    return _Field(frozenset(range(start, end + 1, step)), star=star)


def _parse_field(text: str, bounds: _Bounds) -> _Field:
    parts = [_parse_range(expr, bounds) for expr in text.split(",")]
    values = frozenset().union(*(part.values for part in parts))
    return _Field(values, star=any(part.star for part in parts))


def _parse_descriptor(descriptor: str, location: tzinfo | None) -> _Every | _Fields:
    every = _Field.every
    zero = _Field.only(0)
    one = _Field.only(1)
    table = {
        ("@yearly", "@annually"): (zero, zero, one, one, every(_DOWS)),
        ("@monthly",): (zero, zero, one, every(_MONTHS), every(_DOWS)),
        ("@weekly",): (zero, zero, every(_DOMS), every(_MONTHS), zero),
        ("@daily", "@midnight"): (zero, zero, every(_DOMS), every(_MONTHS), every(_DOWS)),
        ("@hourly",): (zero, every(_HOURS), every(_DOMS), every(_MONTHS), every(_DOWS)),
    }
    for names, fields in table.items():
        if descriptor in names:
            return _Fields(*fields, location=location)

    if descriptor.startswith("@every "):
        rest = descriptor[len("@every ") :]
        try:
            delay = parse_duration(rest)
        except DurationError as exc:
            raise ScheduleError(f"failed to parse duration {rest}: {exc}") from exc
        delay = max(timedelta(seconds=delay // timedelta(seconds=1)), timedelta(seconds=1))
        return _Every(delay)

    raise ScheduleError(f"unrecognized descriptor: {descriptor}")


def _parse_rule(spec: str) -> _Every | _Fields:
    if not spec:
        raise ScheduleError("empty spec string")

    location: tzinfo | None = None
    if spec.startswith(("TZ=", "CRON_TZ=")):
        space = spec.find(" ")
        head = spec if space == -1 else spec[:space]
        name = head.partition("=")[2]
        try:
            location = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ScheduleError(f"provided bad location {name}: {exc}") from exc
        spec = "" if space == -1 else spec[space:].strip()

    if spec.startswith("@"):
        return _parse_descriptor(spec, location)

    fields = spec.split()
    if len(fields) != 5:
        raise ScheduleError(f"expected exactly 5 fields, found {len(fields)}: {spec}")
    minute, hour, dom, month, dow = (
        _parse_field(text, bounds)
        for text, bounds in zip(fields, (_MINUTES, _HOURS, _DOMS, _MONTHS, _DOWS))
    )
    return _Fields(minute, hour, dom, month, dow, location=location)


def parse_schedule(spec: str) -> Schedule:
    """Parse a five-field cron expression or a descriptor such as ``@daily`` or ``@every 5m``."""
    try:
        rule = _parse_rule(spec)
    except ScheduleError as exc:
        raise ScheduleError(f'parsing "{spec}": {exc}') from exc
    return Schedule(spec, rule)


def next_time(schedule: Schedule | None, now: datetime | None = None) -> datetime | None:
    """The next scheduled time, or ``None`` for no schedule."""
    if schedule is None:
        return None
    return schedule.next(now)


def describe_schedule(schedule: Schedule | None) -> str:
    """The original cron expression; no schedule is ``@once``."""
    if schedule is None:
        return "@once"
    return schedule.describe()


def describe_intuitively(now: datetime, target: datetime) -> str:
    """Describe ``target`` in local time, omitting the year or date when they match ``now``."""
    now = now.astimezone()
    target = target.astimezone()
    clock = f"{target.hour:02d}:{target.minute:02d}"
    date = f"{target.day:02d} {_MONTH_ABBRS[target.month - 1]}"
    if now.year != target.year:
        return f"{date} {clock} {target.year}"
    if now.timetuple().tm_yday != target.timetuple().tm_yday:
        return f"{date} {clock}"
    return clock


def _round_to_seconds(value: timedelta) -> timedelta:
    micros = value // timedelta(microseconds=1)
    seconds, remainder = divmod(abs(micros), 1_000_000)
    if remainder * 2 >= 1_000_000:
        seconds += 1
    return timedelta(seconds=seconds if micros >= 0 else -seconds)


def countdown_message(activity: str, now: datetime, target: datetime) -> str:
    """The message shown before waiting from ``now`` until ``target``."""
    interval = target - now
    if interval < -_INTERVAL_LARGE_GAP:
        behind = -_round_to_seconds(interval)
        return f"{activity} now (running behind by {format_duration(behind)}) . . ."
    if interval < _INTERVAL_UNIT:
        return f"{activity} now . . ."
    if interval < _INTERVAL_LARGE_GAP:
        return f"{activity} in less than {format_duration(_INTERVAL_LARGE_GAP)} . . ."
    rounded = format_duration(_round_to_seconds(interval))
    if interval < _INTERVAL_HUGE_GAP:
        return f"{activity} in about {rounded} . . ."
    return f"{activity} in about {rounded} ({describe_intuitively(now, target)}) . . ."


def describe_offset(offset: int) -> str:
    """Describe a UTC offset in seconds, such as ``UTC+05:30`` or ``UTC\u221204``."""
    sign = "+"
    if offset < 0:
        sign = "\u2212"
        offset = -offset
    hours, rest = divmod(offset, 3600)
    minutes, seconds = divmod(rest, 60)
    if minutes == 0 and seconds == 0:
        return f"UTC{sign}{hours:02d}"
    if seconds == 0:
        return f"UTC{sign}{hours:02d}:{minutes:02d}"
    return f"UTC{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def describe_location(tz: tzinfo | None = None) -> str:
    """Describe a time zone by its name and its current UTC offset; ``None`` is the local zone."""
    if tz is None:
        current = datetime.now().astimezone()
        name = "Local"
    else:
        current = datetime.now(tz)
        name = getattr(tz, "key", None) or tz.tzname(current) or str(tz)
    offset = current.utcoffset() or timedelta(0)
    return f"{name} (currently {describe_offset(int(offset.total_seconds()))})"