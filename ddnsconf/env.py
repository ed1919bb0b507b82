"""Reading settings from environment variables."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from itertools import groupby

from .cron import Schedule, ScheduleError, describe_schedule, parse_schedule
from .domain import Domain, sort_domains
from .domainexp import ExpressionError, parse_list
from .duration import DurationError, format_duration, parse_duration
from .ipnet import IPNetwork

logger = logging.getLogger(__name__)

TTL_AUTO = 1
TTL_MIN = 30
TTL_MAX = 86400

_BOOL_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_BOOL_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_INTEGER = re.compile(r"[+-]?[0-9]+")
# A valid WAF list name matches ^[a-z0-9_]+$.
_INVALID_WAF_CHAR = re.compile(r"[^a-z0-9_]")


class ConfigError(ValueError):
    """A setting is missing, ill-formed or inconsistent with other settings."""


@dataclass(frozen=True)
class WAFList:
    """A WAF list identified by its account and its name."""

    account_id: str
    name: str

    def describe(self) -> str:
        """The list in the form ``account-id/list-name``."""
        return f"{self.account_id}/{self.name}"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def getenv(key: str) -> str:
    """Read an environment variable with surrounding whitespace removed."""
    return os.environ.get(key, "").strip()


def getenv_as_list(key: str, sep: str) -> list[str]:
    """Read an environment variable, split it by ``sep`` and drop empty items."""
    items = (item.strip() for item in os.environ.get(key, "").split(sep))
    return [item for item in items if item]


def read_string(key: str, default: str = "") -> str:
    """Read a plain string, falling back to ``default``."""
    value = getenv(key)
    if not value:
        if default:
            logger.info("Use default %s=%s", key, default)
        return default
    return value


def parse_bool(text: str) -> bool:
    """Parse the boolean words ``1 t T TRUE true True 0 f F FALSE false False``."""
    if text in _BOOL_TRUE:
        return True
    if text in _BOOL_FALSE:
        return False
    raise ValueError(f"parsing {_quote(text)}: invalid syntax")


def read_bool(key: str, default: bool) -> bool:
    """Read a boolean value, falling back to ``default``."""
    value = getenv(key)
    if not value:
        logger.info("Use default %s=%s", key, str(default).lower())
        return default
    try:
        return parse_bool(value)
    except ValueError as exc:
        raise ConfigError(f"{key} ({_quote(value)}) is not a boolean: {exc}") from exc


def _read_int(key: str, value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ConfigError(f"{key} ({_quote(value)}) is not a number: invalid syntax")
    return int(value)


def read_nonneg_int(key: str, default: int) -> int:
    """Read a non-negative integer, falling back to ``default``."""
    value = getenv(key)
    if not value:
        logger.info("Use default %s=%d", key, default)
        return default
    number = _read_int(key, value)
    if number < 0:
        raise ConfigError(f"{key} ({number}) is negative")
    return number


def read_ttl(key: str, default: int = TTL_AUTO) -> int:
    """Read a TTL: 1 (automatic) or a value between 30 and 86400."""
    value = getenv(key)
    if not value:
        logger.info("Use default %s=%d", key, default)
        return default
    number = _read_int(key, value)
    if number != TTL_AUTO and not TTL_MIN <= number <= TTL_MAX:
        raise ConfigError(f"{key} ({number}) should be 1 (auto) or between 30 and 86400")
    return number


def read_nonneg_duration(key: str, default: timedelta) -> timedelta:
    """Read a non-negative duration such as ``5m`` or ``1h30m``."""
    value = getenv(key)
    if not value:
        logger.info("Use default %s=%s", key, format_duration(default))
        return default
    try:
        duration = parse_duration(value)
    except DurationError as exc:
        raise ConfigError(f"{key} ({_quote(value)}) is not a time duration: {exc}") from exc
    if duration < timedelta(0):
        raise ConfigError(f"{key} ({format_duration(duration)}) is negative")
    return duration


def read_cron(key: str, default: Schedule | None) -> Schedule | None:
    """Read a cron expression; ``@once`` gives no schedule."""
    value = getenv(key)
    if not value:
        logger.info("Use default %s=%s", key, describe_schedule(default))
        return default
    if value == "@once":
        return None
    if value in ("@disabled", "@nevermore"):
        logger.warning("%s=%s is deprecated; use %s=@once", key, value, key)
        return None
    try:
        return parse_schedule(value)
    except ScheduleError as exc:
        raise ConfigError(f"{key} ({_quote(value)}) is not a cron expression: {exc}") from exc


def read_domains(key: str) -> list[Domain]:
    """Read a comma-separated list of domains."""
    try:
        return parse_list(key, getenv(key))
    except ExpressionError as exc:
        raise ConfigError(str(exc)) from exc


def _deduplicate(domains: Iterable[Domain]) -> list[Domain]:
    return [domain for domain, _ in groupby(sort_domains(domains))]


def read_domain_map() -> dict[IPNetwork, list[Domain]]:
    """Read DOMAINS, IP4_DOMAINS and IP6_DOMAINS into sorted, duplicate-free lists."""
    both = read_domains("DOMAINS")
    ip4 = read_domains("IP4_DOMAINS")
    ip6 = read_domains("IP6_DOMAINS")
    return {
        IPNetwork.IP4: _deduplicate(ip4 + both),
        IPNetwork.IP6: _deduplicate(ip6 + both),
    }


def read_waf_list_names(key: str, existing: Iterable[WAFList] = ()) -> list[WAFList]:
    """Read comma-separated ``account-id/list-name`` items and append them to ``existing``."""
    existing = list(existing)
    values = getenv_as_list(key, ",")
    if not values:
        return existing

    logger.info(
        "You're using the experimental WAF list manipulation feature added in version 1.14.0"
    )

    lists = []
    for value in values:
        account_id, slash, name = value.partition("/")
        if not slash:
            raise ConfigError(f'List {_quote(value)} should be in format "account-id/list-name"')
        violation = _INVALID_WAF_CHAR.search(name)
        if violation is not None:
            logger.warning(
                "List name %s contains invalid character %s",
                _quote(name),
                _quote(violation.group(0)),
            )
        lists.append(WAFList(account_id, name))
    return existing + lists