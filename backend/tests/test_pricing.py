from types import SimpleNamespace

import pytest

from coworking.errors import NotFoundError, ValidationFailure
from coworking.models.enums import PriceUnit
from coworking.services.periods import Period
from coworking.services.pricing import calculate_price, calculate_price_for, hours_between

ROOM = SimpleNamespace(
    name="Studio",
    hourly_rate=1000,
    daily_rate=5000,
    daily_rate_coworking=None,
    weekly_rate_coworking=None,
    monthly_rate_coworking=60000,
    is_coworking=1,
)
DESK_A = SimpleNamespace(daily_rate=500, weekly_rate=3000, monthly_rate=9000)
DESK_B = SimpleNamespace(daily_rate=600, weekly_rate=None, monthly_rate=10000)


def test_hourly_price_is_rate_times_hours():
    calc = calculate_price(
        "HOURLY", Period.build("HOURLY", "2024-05-10"), room=ROOM, start_time="10:00", end_time="13:00"
    )
    assert calc.price_unit == PriceUnit.HOUR
    assert calc.base_price == 1000
    assert calc.quantity == 3
    assert calc.total_price == 3000


def test_partial_hour_is_billed_as_full_hour():
    assert hours_between("10:00", "11:30") == 2
    assert hours_between("10:00", "10:01") == 1


def test_hourly_window_must_be_positive():
    with pytest.raises(ValidationFailure):
        hours_between("12:00", "12:00")


def test_hourly_slots_price_each_slot():
    slots = [
        {"date": "2024-05-10", "start_time": "10:00", "end_time": "11:00"},
        {"date": "2024-05-11", "start_time": "15:00", "end_time": "16:00"},
    ]
    calc = calculate_price(
        "HOURLY", Period.build("HOURLY", "2024-05-10"), room=ROOM, hourly_slots=slots
    )
    assert calc.quantity == 2
    assert calc.total_price == 2000
    assert [item["date"] for item in calc.breakdown] == ["2024-05-10", "2024-05-11"]
    assert all(item["price"] == 1000 for item in calc.breakdown)


def test_workspace_monthly_for_one_calendar_month():
    period = Period.build("CALENDAR_MONTH", "2024-02-01", "2024-02-29")
    calc = calculate_price("WORKSPACE_MONTHLY", period, workspaces=[DESK_A, DESK_B])
    assert calc.quantity == 1
    assert calc.base_price == 19000
    assert calc.total_price == 19000


def test_workspace_weekly_falls_back_to_seven_daily_rates():
    period = Period.build("WEEKLY", "2024-02-05", "2024-02-18")
    calc = calculate_price("WORKSPACE_WEEKLY", period, workspaces=[DESK_A, DESK_B])
    assert calc.base_price == 3000 + 600 * 7
    assert calc.quantity == 2


def test_workspace_daily_counts_selected_days():
    period = Period.build("SPECIFIC_DAYS", "2024-02-05", selected_days=["2024-02-05", "2024-02-07"])
    calc = calculate_price("WORKSPACE_DAILY", period, workspaces=[DESK_A])
    assert calc.quantity == 2
    assert calc.total_price == 1000


def test_room_rates_fall_back_to_general_daily_rate():
    daily = calculate_price("ROOM_DAILY", Period.build("WEEKLY", "2024-02-05", "2024-02-06"), room=ROOM)
    assert daily.base_price == 5000
    assert daily.quantity == 2

    weekly = calculate_price("ROOM_WEEKLY", Period.build("WEEKLY", "2024-02-05", "2024-02-11"), room=ROOM)
    assert weekly.base_price == 35000
    assert weekly.quantity == 1


def test_room_rental_requires_coworking_room():
    hall = SimpleNamespace(**{**vars(ROOM), "is_coworking": 0, "name": "Hall"})
    with pytest.raises(ValidationFailure):
        calculate_price("ROOM_MONTHLY", Period.build("CALENDAR_MONTH", "2024-02-01"), room=hall)


def test_workspace_rental_requires_workspaces():
    with pytest.raises(ValidationFailure):
        calculate_price("WORKSPACE_DAILY", Period.build("WEEKLY", "2024-02-05"))


def test_calculate_price_for_loads_rows(db, room, desks):
    calc = calculate_price_for(
        db, "WORKSPACE_DAILY", Period.build("WEEKLY", "2024-02-05", "2024-02-07"),
        workspace_ids=[desks[0].id, desks[1].id],
    )
    assert calc.base_price == 1100
    assert calc.total_price == 3300


def test_calculate_price_for_unknown_workspace(db, desks):
    with pytest.raises(NotFoundError):
        calculate_price_for(
            db, "WORKSPACE_DAILY", Period.build("WEEKLY", "2024-02-05"), workspace_ids=[999]
        )
