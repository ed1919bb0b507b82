# ddnsconf

Building blocks for the configuration of a dynamic DNS updater. The package
reads typed settings from environment variables. It normalises
internationalised domain names and parses domain lists. It evaluates boolean
domain expressions such as the one given in `PROXIED`. It also parses
cron-style update schedules and Go-style durations, and it checks detected IP
addresses.

Warnings and hints go to the standard `logging` module. Errors are raised as
exceptions.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Domains (`ddnsconf.domain`)

`parse_domain` turns user input into an `FQDN` or a `Wildcard`. It normalises
the input with IDNA (UTS #46) rules:

```python
from ddnsconf.domain import parse_domain, FQDN, Wildcard

parse_domain("Bücher.org")      # FQDN("xn--bcher-kva.org")
parse_domain("*.example.org")   # Wildcard("example.org")
FQDN("xn--bcher-kva.org").describe()      # "bücher.org"
Wildcard("example.org").dns_name_ascii()  # "*.example.org"
list(FQDN("a.b.c").zones())               # ["a.b.c", "b.c", "c"]
```

`parse_domain` raises an error in two cases:

- `NotFQDNError` for a name that is not fully qualified, such as `*` or `localhost`.
- `DomainError` for an ill-formed name.

Both errors carry the best-effort result in `.domain`.

Two helpers work on plain strings and lists:

- `string_to_ascii` normalises a string and ignores errors.
- `sort_domains` returns the domains ordered by their ASCII names.

## Domain lists and expressions (`ddnsconf.domainexp`)

```python
from ddnsconf.domainexp import parse_expression, parse_list
from ddnsconf.domain import FQDN

proxied = parse_expression("PROXIED", "true && !is(a.bb.c)")
proxied(FQDN("a.b.c"))    # True
proxied(FQDN("a.bb.c"))   # False

parse_list("DOMAINS", "a.org, *.b.org")   # [FQDN("a.org"), Wildcard("b.org")]
```

An expression is built from these parts:

- a boolean constant: `1 t T TRUE true True 0 f F FALSE false False`;
- `is(d1, d2, ...)`, which matches exactly the listed domains;
- `sub(d1, ...)`, which matches strict subdomains of the listed domains;
- `!`, `&&`, `||` and parentheses.

Malformed input raises `ExpressionError`. A single `&` or `|` raises the
subclass `SingleAndError` or `SingleOrError`. Invalid UTF-8 raises
`InvalidUTF8Error`. `tokenize` exposes the tokenizer on its own.

## Durations (`ddnsconf.duration`)

`parse_duration("1h30m")` returns a `timedelta`. Invalid text raises
`DurationError`. `format_duration(timedelta(hours=6))` gives `"6h0m0s"`.

## Schedules (`ddnsconf.cron`)

```python
from ddnsconf.cron import parse_schedule, describe_schedule, next_time

schedule = parse_schedule("@every 5m")
describe_schedule(schedule)   # "@every 5m"
describe_schedule(None)       # "@once"
next_time(schedule)           # a datetime about five minutes from now
```

`parse_schedule` accepts two kinds of input:

- five-field cron expressions, with an optional `TZ=` or `CRON_TZ=` prefix;
- the descriptors `@yearly`, `@annually`, `@monthly`, `@weekly`, `@daily`,
  `@midnight`, `@hourly` and `@every <duration>`.

Bad input raises `ScheduleError`.

The module also formats times and zones for display:

- `countdown_message` builds a waiting message such as
  `"Updating in about 20s . . ."`.
- `describe_intuitively` shows a time and leaves out the date or year when they
  match the current one.
- `describe_offset` formats a UTC offset, for example `describe_offset(19800)`
  gives `"UTC+05:30"`.
- `describe_location` names a time zone together with its current offset.

## IP networks (`ddnsconf.ipnet`)

`IPNetwork.IP4` and `IPNetwork.IP6` have these methods:

- `describe()` returns `"IPv4"` or `"IPv6"`.
- `record_type()` returns `"A"` or `"AAAA"`.
- `udp_network()` returns the UDP network name.
- `matches(ip)` reports whether an address belongs to the network.
- `normalize_detected_ip(ip)` turns IPv4-mapped addresses back into IPv4
  addresses. It raises `DetectedIPError` for unspecified, loopback and
  link-local addresses.

`bindings` iterates a mapping in IPv4-then-IPv6 order.
`parse_prefix_or_ip` and `describe_prefix_or_ip` handle IP ranges and single
addresses.

## Files (`ddnsconf.file`)

`read_string(path, root="/")` reads a small text file, such as a token file,
and strips surrounding whitespace. It treats an absolute path as relative to
`root`. If the file cannot be read, it raises `FileReadError`.

## Environment settings (`ddnsconf.env`)

Each reader trims the variable first and returns its default when the variable
is empty. An invalid value raises `ConfigError`.

- `getenv` and `getenv_as_list` read raw values.
- `read_string`, `read_bool` and `read_nonneg_int` read plain values.
- `read_ttl` accepts `1`, which means automatic, or a value from 30 to 86400.
- `read_nonneg_duration` reads a duration that must not be negative.
- `read_cron` accepts `@once` and returns `None` for it.
- `read_domains` reads one list of domains.
- `read_domain_map` combines `DOMAINS`, `IP4_DOMAINS` and `IP6_DOMAINS` into
  sorted lists without duplicates.
- `read_waf_list_names` reads `account-id/list-name` items into `WAFList`
  values.

## Configuration (`ddnsconf.config`)

`Config` is a dataclass that holds a full set of settings with their
defaults. `Config.normalize()` does the following:

- it checks that the fields are consistent;
- it drops the IP provider of a network that nothing uses;
- it warns about domains that will be ignored;
- it evaluates the `PROXIED` expression for every active domain.

On error, `normalize()` raises `ConfigError` and leaves the configuration
unchanged.

`check_root()` warns about running as root and about the retired `PUID` and
`PGID` variables. It returns the messages it emitted.

## What this package does not do

Providers are plain names such as `"cloudflare.trace"`. Nothing here detects
IP addresses. The package does not talk to any DNS or WAF API. It has no
monitors or notifiers and no command-line program. It only reads, checks and
describes settings for a program that does those things.