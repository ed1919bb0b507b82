"""IP network families and helpers for detected addresses and IP ranges."""

from __future__ import annotations

import enum
import ipaddress
import logging
from collections.abc import Iterator, Mapping
from typing import TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPInterface = ipaddress.IPv4Interface | ipaddress.IPv6Interface

_IP4_LINK_LOCAL_MULTICAST = ipaddress.ip_network("224.0.0.0/24")
_IP4_BROADCAST = ipaddress.IPv4Address("255.255.255.255")


class DetectedIPError(ValueError):
    """A detected IP address cannot be used for the given network."""


class IPNetwork(enum.IntEnum):
    """IP version of a network."""

    IP4 = 4
    IP6 = 6

    def describe(self) -> str:
        """Human-readable name such as ``IPv4``."""
        return f"IPv{int(self)}"

    def record_type(self) -> str:
        """DNS record type: ``A`` or ``AAAA``."""
        return "A" if self is IPNetwork.IP4 else "AAAA"

    def udp_network(self) -> str:
        """Socket network name: ``udp4`` or ``udp6``."""
        return "udp4" if self is IPNetwork.IP4 else "udp6"

    def matches(self, ip: IPAddress) -> bool:
        """Whether ``ip`` (with IPv4-mapped addresses unmapped) belongs to this network."""
        ip = _unmap(ip)
        if self is IPNetwork.IP4:
            return ip.version == 4
        return ip.version == 6

    def normalize_detected_ip(self, ip: IPAddress | None) -> IPAddress:
        """Check a detected address and return it in the canonical form for this network."""
        if ip is None:
            raise DetectedIPError("Detected IP address is not valid")

        if self is IPNetwork.IP4:
            unmapped = _unmap(ip)
            if unmapped.version != 4:
                raise DetectedIPError(f"Detected IP address {ip} is not a valid IPv4 address")
            ip = unmapped
        else:
            if ip.version != 6:
                raise DetectedIPError(f"Detected IP address {ip} is not a valid IPv6 address")
            if ip.ipv4_mapped is not None:
                raise DetectedIPError(
                    f"Detected IP address {ip} is an IPv4-mapped IPv6 address"
                )

        name = self.describe()
        if ip.is_unspecified:
            raise DetectedIPError(f"Detected {name} address {ip} is an unspecified address")
        if ip.is_loopback:
            raise DetectedIPError(f"Detected {name} address {ip} is a loopback address")
        if _is_interface_local_multicast(ip):
            raise DetectedIPError(
                f"Detected {name} address {ip} is an interface-local multicast address"
            )
        if _is_link_local_multicast(ip) or ip.is_link_local:
            raise DetectedIPError(f"Detected {name} address {ip} is a link-local address")

        if ip.is_multicast or ip == _IP4_BROADCAST:
            logger.warning(
                "Detected %s address %s does not look like a global unicast address", name, ip
            )
        return ip


def _unmap(ip: IPAddress) -> IPAddress:
    if ip.version == 6 and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _is_interface_local_multicast(ip: IPAddress) -> bool:
    return ip.version == 6 and int(ip) >> 120 == 0xFF and (int(ip) >> 112) & 0xF == 0x1


def _is_link_local_multicast(ip: IPAddress) -> bool:
    if ip.version == 4:
        return ip in _IP4_LINK_LOCAL_MULTICAST
    return int(ip) >> 120 == 0xFF and (int(ip) >> 112) & 0xF == 0x2


def bindings(mapping: Mapping[IPNetwork, V]) -> Iterator[tuple[IPNetwork, V]]:
    """Yield the entries of ``mapping`` for IPv4 and then IPv6, skipping absent keys."""
    for net in (IPNetwork.IP4, IPNetwork.IP6):
        if net in mapping:
            yield net, mapping[net]


def parse_prefix_or_ip(text: str) -> IPInterface:
    """Parse an IP range such as ``10.0.0.1/8`` or a single IP address."""
    if "/" in text:
        _, _, bits = text.partition("/")
        if not bits.isdigit():
            raise ValueError(f"Failed to parse {text!r} as an IP range")
    try:
        return ipaddress.ip_interface(text)
    except ValueError as exc:
        raise ValueError(f"Failed to parse {text!r} as an IP range or address: {exc}") from exc


def describe_prefix_or_ip(prefix: IPInterface) -> str:
    """Describe a range; a range holding one address is shown as that address."""
    if prefix.network.prefixlen == prefix.max_prefixlen:
        return str(prefix.ip)
    return str(prefix.network)