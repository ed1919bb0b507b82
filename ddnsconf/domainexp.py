"""Lists of domains and boolean expressions over domains, such as ``is(a.org) || sub(b.org)``."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable

from .domain import Domain, DomainError, NotFQDNError, parse_domain, string_to_ascii

logger = logging.getLogger(__name__)

Predicate = Callable[[Domain], bool]

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_LIST_BREAKERS = frozenset({"(", "&&", "||", "!"})

_SPACES = re.compile(r"\s*")
_LEXEME_RE = re.compile(r"(&&|\|\||[(),!])|([&|])|([^\s(),!&|]+)")


class ExpressionError(ValueError):
    """A list or an expression of domains is ill-formed."""


class SingleAndError(ExpressionError):
    """A single ``&`` was used where ``&&`` was meant."""


class SingleOrError(ExpressionError):
    """A single ``|`` was used where ``||`` was meant."""


class InvalidUTF8Error(ExpressionError):
    """The input is not valid UTF-8."""


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _decode(text: str | bytes) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidUTF8Error("invalid UTF-8 string") from exc
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidUTF8Error("invalid UTF-8 string") from exc
    return text


def _display(text: str | bytes) -> str:
    if isinstance(text, bytes):
        return text.decode("utf-8", "backslashreplace")
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def tokenize(text: str | bytes) -> list[str]:
    """Split ``text`` into tokens: ``( ) , ! && ||`` and words between them."""
    source = _decode(text)
    tokens: list[str] = []
    pos = _SPACES.match(source).end()
    while pos < len(source):
        match = _LEXEME_RE.match(source, pos)
        if match is None:  # pragma: no cover - every character starts some token
            raise ExpressionError(f"unexpected character {source[pos]!r}")
        single = match.group(2)
        if single == "&":
            raise SingleAndError('use "&&" instead of "&"')
        if single == "|":
            raise SingleOrError('use "||" instead of "|"')
        tokens.append(match.group(0))
        pos = _SPACES.match(source, match.end()).end()
    return tokens


def _tokenize_for(key: str, text: str | bytes) -> list[str]:
    try:
        return tokenize(text)
    except ExpressionError as exc:
        raise type(exc)(f"{key} ({_quote(_display(text))}) is ill-formed: {exc}") from exc


def _has_strict_suffix(name: str, suffix: str) -> bool:
    return (
        name.endswith(suffix)
        and len(name) > len(suffix)
        and name[len(name) - len(suffix) - 1] == "."
    )


class _Parser:
    def __init__(self, key: str, text: str, tokens: list[str]) -> None:
        self.key = key
        self.text = text
        self.tokens = tokens
        self.pos = 0

    def _message(self, detail: str) -> str:
        return f"{self.key} ({_quote(self.text)}) {detail}"

    def _fail(self, detail: str) -> ExpressionError:
        return ExpressionError(self._message(detail))

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, *choices: str) -> str | None:
        current = self._peek()
        if current is not None and current in choices:
            self.pos += 1
            return current
        return None

    def _expect(self, expected: str) -> None:
        current = self._peek()
        if current is None:
            raise self._fail(f"is missing {_quote(expected)} at the end")
        if current != expected:
            raise self._fail(
                f"has unexpected token {_quote(current)} when {_quote(expected)} is expected"
            )
        self.pos += 1

    def expect_end(self) -> None:
        current = self._peek()
        if current is not None:
            raise self._fail(f"has unexpected token {_quote(current)}")

    def items(self) -> list[str]:
        """Comma-separated words up to a closing parenthesis or the end."""
        items: list[str] = []
        ready = True
        while (current := self._peek()) is not None:
            if current == ")":
                break
            if current == ",":
                ready = True
            elif current in _LIST_BREAKERS:
                raise self._fail(f"has unexpected token {_quote(current)}")
            else:
                if not ready:
                    logger.error(
                        "%s", self._message(f'is missing a comma "," before {_quote(current)}')
                    )
                items.append(current)
                ready = False
            self.pos += 1
        return items

    def domains(self) -> list[Domain]:
        result: list[Domain] = []
        for raw in self.items():
            try:
                result.append(parse_domain(raw))
            except NotFQDNError as exc:
                raise self._fail(
                    f"contains a domain {_quote(exc.domain.describe())} that is probably "
                    "not fully qualified; a fully qualified domain name (FQDN) would look "
                    'like "*.example.org" or "sub.example.org"'
                ) from exc
            except DomainError as exc:
                raise self._fail(
                    f"contains an ill-formed domain {_quote(exc.domain.describe())}: {exc}"
                ) from exc
        return result

    def expression(self) -> Predicate:
        left = self.term()
        if self._accept("||") is None:
            return left
        right = self.expression()
        return lambda d: left(d) or right(d)

    def term(self) -> Predicate:
        left = self.factor()
        if self._accept("&&") is None:
            return left
        right = self.term()
        return lambda d: left(d) and right(d)

    def factor(self) -> Predicate:
        if self._accept(*_TRUE_WORDS):
            return lambda _d: True
        if self._accept(*_FALSE_WORDS):
            return lambda _d: False

        function = self._accept("is", "sub")
        if function is not None:
            self._expect("(")
            patterns = [string_to_ascii(raw) for raw in self.items()]
            self._expect(")")
            if function == "is":
                return lambda d: d.dns_name_ascii() in patterns
            return lambda d: any(_has_strict_suffix(d.dns_name_ascii(), p) for p in patterns)

        if self._accept("!"):
            inner = self.factor()
            return lambda d: not inner(d)

        if self._accept("("):
            inner = self.expression()
            self._expect(")")
            return inner

        current = self._peek()
        if current is None:
            raise self._fail("is not a boolean expression")
        raise self._fail(f"is not a boolean expression: got unexpected token {_quote(current)}")


def parse_list(key: str, text: str | bytes) -> list[Domain]:
    """Parse a comma-separated list of domains; internationalized names are supported."""
    parser = _Parser(key, _display(text), _tokenize_for(key, text))
    result = parser.domains()
    parser.expect_end()
    return result


def parse_expression(key: str, text: str | bytes) -> Predicate:
    """Parse a boolean expression over domains into a predicate.

    The forms are boolean constants (``true``, ``0``, ``F`` ...), ``is(d, ...)``,
    ``sub(d, ...)``, ``! e``, ``e1 && e2``, ``e1 || e2`` and parentheses.
    """
    parser = _Parser(key, _display(text), _tokenize_for(key, text))
    predicate = parser.expression()
    parser.expect_end()
    return predicate