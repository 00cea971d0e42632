"""Best-effort release/build date extraction from free text.

Manifests, pom.properties headers and registry metadata carry dates in many shapes.
``extract_date`` tries an ordered list of parsers (caller formats first, built-ins
after) and keeps the first result that is not in the future.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Iterable, Optional

from crawler_utils.core.paths import MISSING

LOGGER = logging.getLogger(__name__)

_SQL_TIMESTAMP = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[ T](?P<time>\d{2}:\d{2}(?::\d{2})?)(?:\.(?P<fraction>\d+))?)?"
    r"(?:\s*(?P<zone>Z|UTC|GMT|[+-]\d{2}(?::?\d{2})?))?$"
)
_ISO_FRACTION = re.compile(r"\.(\d+)")

# pom.properties: "Sat Nov 13 19:35:12 GMT+01:00 2010"
_POM_PROPERTIES_FORMAT = "%a %b %d %H:%M:%S GMT%z %Y"

# LDML pattern letters (longest first) and their strptime directives.
_LDML_TOKENS = [
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("M", "%m"),
    ("dd", "%d"),
    ("d", "%d"),
    ("EEEE", "%A"),
    ("EEE", "%a"),
    ("HH", "%H"),
    ("H", "%H"),
    ("hh", "%I"),
    ("h", "%I"),
    ("mm", "%M"),
    ("m", "%M"),
    ("ss", "%S"),
    ("s", "%S"),
    ("SSS", "%f"),
    ("a", "%p"),
    ("ZZ", "%z"),
    ("Z", "%z"),
]


@dataclass(frozen=True)
class ParsedDate:
    value: datetime

    def to_datetime(self) -> datetime:
        return self.value

    def to_utc(self) -> datetime:
        return self.value.astimezone(timezone.utc)

    def to_iso(self) -> str:
        """UTC ISO-8601 timestamp with millisecond precision, e.g. ``2010-11-13T18:35:12.000Z``."""
        return self.to_utc().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_iso_date(self) -> str:
        return self.value.date().isoformat()


def extract_date(
    text: Any = MISSING,
    formats: Optional[Iterable[str]] = None,
    now: Optional[datetime] = None,
) -> Optional[ParsedDate]:
    if not isinstance(text, str) or not text.strip():
        return None
    value = text.strip()
    limit = _as_aware(now) if now is not None else datetime.now(timezone.utc)

    for parser in _candidate_parsers(formats):
        parsed = parser(value)
        if parsed is None:
            continue
        if parsed > limit:
            LOGGER.debug("discarding future date parsed from %r: %s", value, parsed.isoformat())
            continue
        return ParsedDate(parsed)
    return None


def _candidate_parsers(formats: Optional[Iterable[str]]) -> list[Callable[[str], Optional[datetime]]]:
    parsers: list[Callable[[str], Optional[datetime]]] = []
    for fmt in formats or []:
        parsers.append(_format_parser(fmt))
    parsers.extend(
        [
            _parse_iso,
            _parse_sql,
            _parse_rfc2822,
            _format_parser(_POM_PROPERTIES_FORMAT),
        ]
    )
    return parsers


def _format_parser(fmt: str) -> Callable[[str], Optional[datetime]]:
    directive = fmt if "%" in fmt else ldml_to_strptime(fmt)

    def _parse(value: str) -> Optional[datetime]:
        try:
            return _as_aware(datetime.strptime(value, directive))
        except ValueError:
            return None

    return _parse


def _parse_iso(value: str) -> Optional[datetime]:
    # fromisoformat only accepts "Z" and 7+ digit fractions from 3.11 on.
    candidate = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    candidate = _ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), candidate, count=1)
    if not re.match(r"^\d{4}-\d{2}-\d{2}(T|$)", candidate):
        return None
    try:
        return _as_aware(datetime.fromisoformat(candidate))
    except ValueError:
        return None


def _parse_sql(value: str) -> Optional[datetime]:
    match = _SQL_TIMESTAMP.match(value)
    if not match:
        return None

    clock = match.group("time") or "00:00:00"
    if clock.count(":") == 1:
        clock += ":00"
    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    zone = match.group("zone")
    if zone is None or zone in {"Z", "UTC", "GMT"}:
        offset = "+0000"
    else:
        offset = zone.replace(":", "").ljust(5, "0")

    try:
        return datetime.strptime(
            f"{match.group('date')} {clock}.{fraction} {offset}",
            "%Y-%m-%d %H:%M:%S.%f %z",
        )
    except ValueError:
        return None


def _parse_rfc2822(value: str) -> Optional[datetime]:
    if not re.search(r"\d{1,2} [A-Za-z]{3} \d{2,4}", value):
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return _as_aware(parsed)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def ldml_to_strptime(pattern: str) -> str:
    """Translate an LDML date pattern (``MM-dd-yyyy``) into strptime directives.

    Quoted runs (``'GMT'``) are copied literally; ``''`` is a literal quote.
    """
    out: list[str] = []
    idx = 0
    while idx < len(pattern):
        ch = pattern[idx]
        if ch == "'":
            end = pattern.find("'", idx + 1)
            if end == idx + 1:
                out.append("'")
                idx += 2
                continue
            if end < 0:
                end = len(pattern)
            out.append(pattern[idx + 1 : end].replace("%", "%%"))
            idx = end + 1
            continue
        if ch.isalpha():
            for token, directive in _LDML_TOKENS:
                if pattern.startswith(token, idx):
                    out.append(directive)
                    idx += len(token)
                    break
            else:
                out.append(ch)
                idx += 1
            continue
        out.append("%%" if ch == "%" else ch)
        idx += 1
    return "".join(out)
