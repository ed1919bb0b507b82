"""The updater configuration and its consistency checks."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta

from .cron import Schedule, parse_schedule
from .domain import Domain
from .domainexp import ExpressionError, parse_expression
from .env import TTL_AUTO, ConfigError, WAFList, getenv
from .ipnet import IPNetwork, bindings

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "cloudflare.trace"
NO_PROVIDER = "none"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _provider_name(provider: str | None) -> str:
    return NO_PROVIDER if provider is None else provider


def _default_providers() -> dict[IPNetwork, str | None]:
    return {IPNetwork.IP4: DEFAULT_PROVIDER, IPNetwork.IP6: DEFAULT_PROVIDER}


def _default_domains() -> dict[IPNetwork, list[Domain]]:
    return {IPNetwork.IP4: [], IPNetwork.IP6: []}


@dataclass
class Config:
    """Settings of the updater; a provider of ``None`` means no detection for that network."""

    provider: dict[IPNetwork, str | None] = field(default_factory=_default_providers)
    domains: dict[IPNetwork, list[Domain]] = field(default_factory=_default_domains)
    waf_lists: list[WAFList] = field(default_factory=list)
    update_cron: Schedule | None = field(default_factory=lambda: parse_schedule("@every 5m"))
    update_on_start: bool = True
    delete_on_stop: bool = False
    cache_expiration: timedelta = timedelta(hours=6)
    ttl: int = TTL_AUTO
    proxied_template: str = "false"
    proxied: dict[Domain, bool] = field(default_factory=dict)
    record_comment: str = ""
    waf_list_description: str = ""
    detection_timeout: timedelta = timedelta(seconds=5)
    update_timeout: timedelta = timedelta(seconds=30)

    def normalize(self) -> None:
        """Check the settings and recompute ``provider`` and ``proxied``.

        On error a :class:`ConfigError` is raised and the configuration is left unchanged.
        """
        if (
            not self.domains.get(IPNetwork.IP4)
            and not self.domains.get(IPNetwork.IP6)
            and not self.waf_lists
        ):
            raise ConfigError(
                "Nothing was specified in DOMAINS, IP4_DOMAINS, IP6_DOMAINS, or WAF_LISTS"
            )

        if self.update_cron is None:
            if not self.update_on_start:
                raise ConfigError("UPDATE_ON_START=false is incompatible with UPDATE_CRON=@once")
            if self.delete_on_stop:
                raise ConfigError(
                    "DELETE_ON_STOP=true will immediately delete all domains and WAF lists "
                    "when UPDATE_CRON=@once"
                )

        provider_map: dict[IPNetwork, str | None] = {}
        active: dict[Domain, None] = {}
        for net, provider in bindings(self.provider):
            if provider is None:
                continue
            domains = self.domains.get(net, [])
            if not domains and not self.waf_lists:
                logger.warning(
                    "IP%d_PROVIDER was changed to %s because no domains or WAF lists use %s",
                    int(net),
                    _quote(NO_PROVIDER),
                    net.describe(),
                )
                continue
            provider_map[net] = provider
            active.update(dict.fromkeys(domains))

        if provider_map.get(IPNetwork.IP4) is None and provider_map.get(IPNetwork.IP6) is None:
            raise ConfigError(
                "Nothing to update because both IP4_PROVIDER and IP6_PROVIDER are "
                f"{_quote(NO_PROVIDER)}"
            )

        for net, domains in bindings(self.domains):
            if provider_map.get(net) is not None:
                continue
            for domain in domains:
                if domain not in active:
                    logger.warning(
                        "Domain %s is ignored because it is only for %s but %s is disabled",
                        _quote(domain.describe()),
                        net.describe(),
                        net.describe(),
                    )

        proxied: dict[Domain, bool] = {}
        if active:
            try:
                predicate = parse_expression("PROXIED", self.proxied_template)
            except ExpressionError as exc:
                raise ConfigError(str(exc)) from exc
            proxied = {domain: predicate(domain) for domain in active}

        if not active:
            if self.ttl != TTL_AUTO:
                logger.warning("TTL=%d is ignored because no domains will be updated", self.ttl)
            if self.proxied_template != "false":
                logger.warning(
                    "PROXIED=%s is ignored because no domains will be updated",
                    self.proxied_template,
                )
            if self.record_comment:
                logger.warning(
                    "RECORD_COMMENT=%s is ignored because no domains will be updated",
                    self.record_comment,
                )
        if not self.waf_lists and self.waf_list_description:
            logger.warning(
                "WAF_LIST_DESCRIPTION=%s is ignored because no WAF lists will be updated",
                self.waf_list_description,
            )

        self.provider = provider_map
        self.proxied = proxied


def check_root() -> list[str]:
    """Warn about running as root and about the retired PUID and PGID settings.

    Returns the messages that were emitted, in order.
    """
    messages: list[str] = []
    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None and geteuid() == 0:
        messages.append("You are running this updater as root, which is usually a bad idea")

    deprecated = False
    puid = getenv("PUID")
    if puid:
        messages.append(
            f"PUID={puid} is ignored since 1.13.0; use Docker's built-in mechanism to set user ID"
        )
        deprecated = True
    pgid = getenv("PGID")
    if pgid:
        messages.append(
            f"PGID={pgid} is ignored since 1.13.0; use Docker's built-in mechanism to set group ID"
        )
        deprecated = True

    for message in messages:
        logger.warning("%s", message)
    if deprecated:
        hint = "See the documentation for the new Docker template"
        logger.info("%s", hint)
        messages.append(hint)
    return messages