from datetime import datetime, timedelta, timezone

import pytest

from crawler_utils.core.dates import ParsedDate, extract_date, ldml_to_strptime
from crawler_utils.core.paths import MISSING


def test_extract_date_handles_missing_input() -> None:
    assert extract_date(None) is None
    assert extract_date() is None
    assert extract_date("   ") is None
    assert extract_date(MISSING) is None


def test_extract_date_rejects_non_dates() -> None:
    assert extract_date("Created by Maven 3.5.4") is None


def test_extract_date_fails_on_unknown_zone_abbreviation() -> None:
    assert extract_date("Thu Jun 18 20:06:26 CEST 2009") is None


def test_extract_date_pom_properties_form() -> None:
    parsed = extract_date("Sat Nov 13 19:35:12 GMT+01:00 2010")
    assert parsed is not None
    assert parsed.to_iso() == "2010-11-13T18:35:12.000Z"


def test_extract_date_iso_format() -> None:
    parsed = extract_date("2010-11-13T18:35:12.000Z")
    assert parsed is not None
    assert parsed.to_iso() == "2010-11-13T18:35:12.000Z"
    assert parsed.to_datetime() == datetime(2010, 11, 13, 18, 35, 12, tzinfo=timezone.utc)


def test_extract_date_iso_with_offset() -> None:
    parsed = extract_date("2010-11-13T20:35:12+02:00")
    assert parsed is not None
    assert parsed.to_iso() == "2010-11-13T18:35:12.000Z"
    assert parsed.to_iso_date() == "2010-11-13"


def test_extract_date_with_additional_formats() -> None:
    parsed = extract_date("11-13-2010", ["MM-dd-yyyy", "EEE MMM d yyyy"])
    assert parsed is not None
    assert parsed.to_iso_date() == "2010-11-13"


def test_extract_date_with_strptime_format() -> None:
    parsed = extract_date("13/11/2010", ["%d/%m/%Y"])
    assert parsed is not None
    assert parsed.to_iso_date() == "2010-11-13"


def test_extract_date_sql_formats() -> None:
    parsed = extract_date("2018-05-28 07:26:25 UTC")
    assert parsed is not None
    assert parsed.to_iso_date() == "2018-05-28"

    parsed = extract_date("2018-05-28 07:26:25.123456789 +02:00")
    assert parsed is not None
    assert parsed.to_iso() == "2018-05-28T05:26:25.123Z"


def test_extract_date_rfc2822_format() -> None:
    parsed = extract_date("Mon, 28 May 2018 07:26:25 GMT")
    assert parsed is not None
    assert parsed.to_iso() == "2018-05-28T07:26:25.000Z"


def test_extract_date_ignores_future_dates() -> None:
    assert extract_date("2103-09-30 00:00:00.000000000 Z") is None


def test_extract_date_future_check_uses_given_now() -> None:
    now = datetime(2010, 1, 1, tzinfo=timezone.utc)
    assert extract_date("2010-11-13T18:35:12Z", now=now) is None
    assert extract_date("2009-11-13T18:35:12Z", now=now) is not None


def test_extract_date_rejects_future_date_from_every_parser() -> None:
    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
    assert extract_date(tomorrow.strftime("%Y-%m-%d"), ["%Y-%m-%d"]) is None


def test_extract_date_skips_future_candidate_and_tries_next() -> None:
    now = datetime(2010, 1, 15, tzinfo=timezone.utc)
    parsed = extract_date("01-02-2010", ["%d-%m-%Y", "%m-%d-%Y"], now=now)
    assert parsed is not None
    assert parsed.to_iso_date() == "2010-01-02"


def test_custom_formats_are_tried_first() -> None:
    parsed = extract_date("2010-11-12", ["%Y-%d-%m"])
    assert parsed is not None
    assert parsed.to_iso_date() == "2010-12-11"


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        ("MM-dd-yyyy", "%m-%d-%Y"),
        ("EEE MMM d yyyy", "%a %b %d %Y"),
        ("EEE MMM d HH:mm:ss 'GMT'ZZ yyyy", "%a %b %d %H:%M:%S GMT%z %Y"),
        ("yyyy-MM-dd'T'HH:mm:ss.SSS", "%Y-%m-%dT%H:%M:%S.%f"),
        ("dd '' MM", "%d ' %m"),
    ],
)
def test_ldml_to_strptime(pattern: str, expected: str) -> None:
    assert ldml_to_strptime(pattern) == expected


def test_parsed_date_keeps_original_offset_for_calendar_date() -> None:
    value = datetime(2010, 11, 13, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    parsed = ParsedDate(value)
    assert parsed.to_iso_date() == "2010-11-13"
    assert parsed.to_iso() == "2010-11-14T04:30:00.000Z"
