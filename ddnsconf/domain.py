"""Domain names: normalization to ASCII, display forms and zone enumeration."""

from __future__ import annotations

import unicodedata
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import idna

_ZWJ_CHARS = ("\u200c", "\u200d")


class DomainError(ValueError):
    """A domain is ill-formed; ``domain`` holds the best-effort result."""

    def __init__(self, message: str, domain: "Domain") -> None:
        super().__init__(message)
        self.domain = domain


class NotFQDNError(DomainError):
    """A domain is not fully qualified."""


class Domain(ABC):
    """A domain name to update."""

    @abstractmethod
    def dns_name_ascii(self) -> str:
        """Name suitable for DNS APIs."""

    @abstractmethod
    def describe(self) -> str:
        """Most human-readable unambiguous name."""

    @abstractmethod
    def zones(self) -> Iterator[str]:
        """Candidate zones from the smallest to the root (empty string)."""


def _zones(name: str) -> Iterator[str]:
    while True:
        yield name
        dot = name.find(".")
        if dot == -1:
            return
        name = name[dot + 1 :]


@dataclass(frozen=True)
class FQDN(Domain):
    """A fully qualified domain name in ASCII form."""

    name: str

    def dns_name_ascii(self) -> str:
        return self.name

    def describe(self) -> str:
        return _safely_to_unicode(self.name)

    def zones(self) -> Iterator[str]:
        return _zones(self.name)


@dataclass(frozen=True)
class Wildcard(Domain):
    """The wildcard domain under a zone: ``Wildcard("example.org")`` is ``*.example.org``."""

    zone: str

    def dns_name_ascii(self) -> str:
        return "*" if not self.zone else "*." + self.zone

    def describe(self) -> str:
        return "*" if not self.zone else "*." + _safely_to_unicode(self.zone)

    def zones(self) -> Iterator[str]:
        return _zones(self.zone)


def _map(text: str) -> tuple[str, Exception | None]:
    try:
        return idna.uts46_remap(text, std3_rules=True, transitional=False), None
    except idna.IDNAError as exc:
        error: Exception = exc
    pieces = []
    for ch in text:
        try:
            pieces.append(idna.uts46_remap(ch, std3_rules=True, transitional=False))
        except idna.IDNAError:
            pieces.append(ch)
    return unicodedata.normalize("NFC", "".join(pieces)), error


def _validate_unicode_label(label: str) -> None:
    if idna.uts46_remap(label, std3_rules=True, transitional=False) != label:
        raise idna.IDNAError(f"invalid label {label!r}")
    idna.check_initial_combiner(label)
    for pos, ch in enumerate(label):
        if ch in _ZWJ_CHARS and not idna.valid_contextj(label, pos):
            raise idna.IDNAError(f"invalid label {label!r}")
    idna.check_bidi(label)


def _encode_label(label: str) -> tuple[str, Exception | None]:
    if label.isascii():
        if label.startswith("xn--"):
            try:
                decoded = label[4:].encode("ascii").decode("punycode")
                _validate_unicode_label(decoded)
            except (UnicodeError, idna.IDNAError) as exc:
                return label, exc
        return label, None
    encoded = "xn--" + label.encode("punycode").decode("ascii")
    try:
        _validate_unicode_label(label)
    except idna.IDNAError as exc:
        return encoded, exc
    return encoded, None


def _to_ascii(text: str, drop_leading_dots: bool) -> tuple[str, Exception | None]:
    mapped, error = _map(text)
    if drop_leading_dots:
        mapped = mapped.lstrip(".")
    labels = []
    for label in mapped.split("."):
        encoded, label_error = _encode_label(label)
        labels.append(encoded)
        error = error or label_error
    return ".".join(labels), error


def _safely_to_unicode(ascii_name: str) -> str:
    labels = []
    for label in ascii_name.split("."):
        if label.lower().startswith("xn--"):
            try:
                labels.append(label[4:].encode("ascii").decode("punycode"))
            except UnicodeError:
                return ascii_name
        else:
            labels.append(label.lower())
    unicode_name = ".".join(labels)
    round_trip, error = _to_ascii(unicode_name, drop_leading_dots=False)
    if error is not None or round_trip != ascii_name:
        return ascii_name
    return unicode_name


def string_to_ascii(text: str) -> str:
    """Normalize a domain with best effort, ignoring errors."""
    normalized, _ = _to_ascii(text, drop_leading_dots=True)
    return normalized.rstrip(".")


def parse_domain(text: str) -> Domain:
    """Normalize ``text`` into an FQDN or a wildcard domain."""
    normalized, error = _to_ascii(text, drop_leading_dots=True)
    normalized = normalized.rstrip(".")

    if "." not in normalized:
        domain: Domain = Wildcard("") if normalized == "*" else FQDN(normalized)
        raise NotFQDNError("not fully qualified", domain)

    if normalized.startswith("*."):
        zone, zone_error = _to_ascii(normalized[2:], drop_leading_dots=False)
        wildcard = Wildcard(zone)
        if zone_error is not None:
            raise DomainError(str(zone_error), wildcard)
        return wildcard

    fqdn = FQDN(normalized)
    if error is not None:
        raise DomainError(str(error), fqdn)
    return fqdn


def sort_domains(domains: Iterable[Domain]) -> list[Domain]:
    """Return the domains sorted by their ASCII names."""
    return sorted(domains, key=lambda d: d.dns_name_ascii())