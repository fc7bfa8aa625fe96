from datetime import date

import pytest

from bgm.utils.season import previous_quarter, quarter_start, season_name, season_window_start


@pytest.mark.parametrize(
    "month, expected",
    [(1, 1), (2, 1), (3, 1), (4, 4), (5, 4), (6, 4), (7, 7), (8, 7), (9, 7), (10, 10), (11, 10), (12, 10)],
)
def test_quarter_start(month: int, expected: int) -> None:
    assert quarter_start(month) == expected


@pytest.mark.parametrize("month", [0, 13, -1])
def test_quarter_start_rejects_bad_month(month: int) -> None:
    with pytest.raises(ValueError):
        quarter_start(month)


def test_previous_quarter_rolls_back_year() -> None:
    assert previous_quarter(2024, 1) == (2023, 10)
    assert previous_quarter(2024, 3) == (2023, 10)
    assert previous_quarter(2024, 4) == (2024, 1)


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2024, 5, 17), "2024-01-01"),
        (date(2024, 1, 1), "2023-10-01"),
        (date(2023, 11, 30), "2023-07-01"),
        (date(2024, 2, 29), "2023-10-01"),
        (date(2024, 7, 1), "2024-04-01"),
        (date(2024, 12, 31), "2024-07-01"),
    ],
)
def test_season_window_start(today: date, expected: str) -> None:
    assert season_window_start(today) == expected


def test_season_window_start_every_month() -> None:
    for month in range(1, 13):
        out = season_window_start(date(2030, month, 15))
        y, m, d = out.split("-")
        assert d == "01"
        assert len(m) == 2
        assert int(m) in (1, 4, 7, 10)
        # the window opens 3 to 5 months before today
        months_back = (2030 * 12 + month) - (int(y) * 12 + int(m))
        assert 3 <= months_back <= 5


def test_season_window_defaults_to_today() -> None:
    today = date.today()
    assert season_window_start() == season_window_start(today)


def test_season_name() -> None:
    assert [season_name(m) for m in (1, 4, 7, 10)] == ["winter", "spring", "summer", "fall"]
    assert season_name(12) == "fall"
