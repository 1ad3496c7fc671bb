from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from consumo.adapters.parsers import parse_data, parse_decimal, parse_quantidade


@pytest.mark.parametrize(
    "val,esperado",
    [
        ("15", Decimal("15")),
        ("12,5", Decimal("12.5")),
        ("1e3", Decimal("1000")),
        ("2,5E2", Decimal("250")),
        ("1e999999", None),
        ("12.5 kg", None),
        ("12abc", None),
        ("3 4", None),
        ("1.250,75", Decimal("1250.75")),
        ("1,250.75", Decimal("1250.75")),
        (7, Decimal("7")),
        (2.5, Decimal("2.5")),
        (Decimal("3.10"), Decimal("3.10")),
        ("-4", Decimal("-4")),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (Decimal("Infinity"), None),
    ],
)
def test_parse_decimal(val, esperado):
    assert parse_decimal(val) == esperado


@pytest.mark.parametrize(
    "txt,exp_num,exp_unit",
    [
        ("15", Decimal("15"), None),
        ("12,5 kg", Decimal("12.5"), "KG"),
        ("1.250,75 KG", Decimal("1250.75"), "KG"),
        ("1e3 kg", Decimal("1000"), "KG"),
        ("12 kg extra", None, None),
        ("kg", None, None),
        ("", None, None),
        (None, None, None),
    ],
)
def test_parse_quantidade(txt, exp_num, exp_unit):
    num, unidade = parse_quantidade(txt)
    assert num == exp_num
    assert unidade == exp_unit


@pytest.mark.parametrize(
    "val,esperado",
    [
        ("2026-10-19", datetime(2026, 10, 19)),
        ("2026-10-19T08:30:00", datetime(2026, 10, 19, 8, 30)),
        ("2026-10-19 08:30", datetime(2026, 10, 19, 8, 30)),
        ("19/10/2026", datetime(2026, 10, 19)),
        ("19/10/2026 17:45", datetime(2026, 10, 19, 17, 45)),
        (datetime(2026, 1, 2, 3, 4), datetime(2026, 1, 2, 3, 4)),
        ("ontem", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_data(val, esperado):
    assert parse_data(val) == esperado


UTC_MEIO_DIA = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
SAO_PAULO = timezone(timedelta(hours=-3))


@pytest.mark.parametrize(
    "val,aware",
    [
        (UTC_MEIO_DIA, UTC_MEIO_DIA),
        ("2026-10-19T12:00:00+00:00", UTC_MEIO_DIA),
        ("2026-10-19T23:30:00-03:00", datetime(2026, 10, 19, 23, 30, tzinfo=SAO_PAULO)),
    ],
)
def test_parse_data_com_fuso_vira_horario_local_naive(val, aware):
    d = parse_data(val)
    assert d.tzinfo is None
    assert d == aware.astimezone().replace(tzinfo=None)
