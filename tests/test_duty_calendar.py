from datetime import date

import pytest

from dutyhub.services.duty_calendar import INDIVIDUAL_DUTIES, events_by_day, group_events, schedule_window, today


ROWS = [
    {"id": "S1", "duty_date": "2024-05-01", "title": "Patrol"},
    {"id": "S2", "duty_date": "2024-05-01", "title": None},
    {"id": "S3", "duty_date": "2024-05-01", "title": "Patrol"},
    {"id": "S4", "duty_date": "2024-05-03", "title": ""},
]


def test_month_window_covers_whole_month():
    assert schedule_window(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


@pytest.mark.parametrize("anchor", [date(2024, 4, 28), date(2024, 5, 1), date(2024, 5, 4)])
def test_week_window_starts_on_sunday(anchor):
    assert schedule_window(anchor, "week") == (date(2024, 4, 28), date(2024, 5, 4))


def test_unknown_view():
    with pytest.raises(ValueError):
        schedule_window(date(2024, 5, 1), "year")


def test_same_title_schedules_share_an_event():
    events = group_events(ROWS, date(2024, 5, 1))

    assert [e.title for e in events] == ["Patrol", INDIVIDUAL_DUTIES]
    assert [s["id"] for s in events[0].schedules] == ["S1", "S3"]
    assert events[0].is_group
    assert not events[1].is_group


def test_blank_title_is_individual():
    events = group_events(ROWS, date(2024, 5, 3))

    assert [e.title for e in events] == [INDIVIDUAL_DUTIES]


def test_every_day_in_range_has_an_entry():
    days = events_by_day(ROWS, date(2024, 5, 1), date(2024, 5, 3))

    assert list(days) == ["2024-05-01", "2024-05-02", "2024-05-03"]
    assert days["2024-05-02"] == []


def test_today_honours_timezone():
    assert isinstance(today("Pacific/Auckland"), date)
