import pytest
from hypothesis import given
from hypothesis import strategies as st

from ddnsconf.domain import (
    FQDN,
    DomainError,
    NotFQDNError,
    Wildcard,
    parse_domain,
    sort_domains,
    string_to_ascii,
)

f = FQDN
w = Wildcard


@pytest.mark.parametrize(
    "text,expected",
    [
        ("tHe.CaPiTaL.cAsE", f("the.capital.case")),
        ("fass.de", f("fass.de")),
        ("faß.de", f("xn--fa-hia.de")),
        ("fäß.de", f("xn--f-qfao.de")),
        ("xn--fa-hia.de", f("xn--fa-hia.de")),
        ("\u00f6bb.at", f("xn--bb-eka.at")),
        ("o\u0308bb.at", f("xn--bb-eka.at")),
        ("\u00d6BB.at", f("xn--bb-eka.at")),
        ("日本｡co｡jp", f("xn--wgv71a.co.jp")),
        ("日本｡co．jp", f("xn--wgv71a.co.jp")),
        ("σόλος.gr", f("xn--wxaijb9b.gr")),
        ("Σόλος.gr", f("xn--wxaijb9b.gr")),
        ("عربي.de", f("xn--ngbrx4e.de")),
        ("*.fass.de", w("fass.de")),
        ("*.faß.de", w("xn--fa-hia.de")),
        ("*.xn--fa-hia.de", w("xn--fa-hia.de")),
        ("*｡日本｡co｡jp", w("xn--wgv71a.co.jp")),
        ("*．日本｡co．jp", w("xn--wgv71a.co.jp")),
        ("a.com...｡", f("a.com")),
        ("..｡..a.com", f("a.com")),
        ("*.a.com...｡", w("a.com")),
        ("*...｡..a.com", w(".....a.com")),
        ("*.A......", w("a")),
        ("*｡A｡｡｡｡｡", w("a")),
    ],
)
def test_parse_domain_ok(text, expected):
    assert parse_domain(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [("*......", w("")), ("*｡｡｡｡｡｡", w("")), ("......", f("")), ("｡｡｡｡｡｡", f(""))],
)
def test_parse_domain_not_fqdn(text, expected):
    with pytest.raises(NotFQDNError, match="not fully qualified") as info:
        parse_domain(text)
    assert info.value.domain == expected


def test_string_to_ascii():
    assert string_to_ascii("Xn--53H.de") == "xn--53h.de"
    assert string_to_ascii("..faß.de..") == "xn--fa-hia.de"


@given(st.lists(st.text()), st.lists(st.text()))
def test_sort_domains(fs, ws):
    merged = [f(x) for x in fs] + [w(x) for x in ws]
    result = sort_domains(merged)
    assert sorted(result, key=repr) == sorted(merged, key=repr)
    names = [d.dns_name_ascii() for d in result]
    assert names == sorted(names)


@given(st.text())
def test_fqdn_string(s):
    assert f(s).dns_name_ascii() == s


@given(st.text())
def test_wildcard_string(s):
    assert w(s).dns_name_ascii() == ("*" if s == "" else "*." + s)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("fass.de", "fass.de"),
        ("xn--fa-hia.de", "faß.de"),
        ("xn--f-qfao.de", "fäß.de"),
        ("xn--a.com", "xn--a.com"),
        ("xn--ab-j1t", "xn--ab-j1t"),
        ("xn--bb-eka.at", "öbb.at"),
        ("xn--wgv71a.co.jp", "日本.co.jp"),
        ("xn--wxaijb9b.gr", "σόλος.gr"),
        ("xn--wxaikc6b.xn--gr-gtd9a1b0g.de", "xn--wxaikc6b.xn--gr-gtd9a1b0g.de"),
        ("xn--ngbrx4e.de", "عربي.de"),
        ("xn--a.xn--a.xn--a.com", "xn--a.xn--a.xn--a.com"),
        ("a.com....", "a.com...."),
        ("a.com", "a.com"),
    ],
)
def test_describe(text, expected):
    assert f(text).describe() == expected
    assert w(text).describe() == "*." + expected


def test_wildcard_describe_empty():
    assert w("").describe() == "*"


ZONE_CASES = [
    ("a.b.c", ["a.b.c", "b.c", "c"]),
    ("...", ["...", "..", ".", ""]),
    ("aaa...", ["aaa...", "..", ".", ""]),
    (".aaa..", [".aaa..", "aaa..", ".", ""]),
    ("..aaa.", ["..aaa.", ".aaa.", "aaa.", ""]),
    ("...aaa", ["...aaa", "..aaa", ".aaa", "aaa"]),
]


@pytest.mark.parametrize("text,expected", ZONE_CASES)
def test_zones(text, expected):
    assert list(f(text).zones()) == expected
    assert list(w(text).zones()) == expected