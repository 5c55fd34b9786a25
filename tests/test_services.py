from datetime import date

import pytest

from dutyhub.schemas.attendance import AttendanceStatus
from dutyhub.schemas.personnel import PersonnelCreate
from dutyhub.services import attendance, dashboard, departments, personnel, schedules, swaps
from dutyhub.services.personnel import PASSWORD_ALPHABET
from dutyhub.store.provider import ErrorKind


pytestmark = pytest.mark.anyio


# ----- swaps -----

async def test_approving_a_pending_swap(store, roster):
    before = store.find("swap_requests", "W1")

    row, error = await swaps.approve_swap_request(store, "W1")

    assert error is None
    assert row["status"] == "approved"
    assert row["updated_at"] > before["created_at"]


async def test_decided_swap_can_still_be_rewritten(store, roster):
    await swaps.approve_swap_request(store, "W1")
    first = store.find("swap_requests", "W1")["updated_at"]

    row, error = await swaps.reject_swap_request(store, "W1")

    assert error is None
    assert row["status"] == "rejected"
    assert row["updated_at"] >= first


async def test_unknown_swap_is_not_found(store, roster):
    _, error = await swaps.approve_swap_request(store, "nope")

    assert error.kind == ErrorKind.NOT_FOUND


async def test_new_swap_requests_start_pending(store, roster):
    row, error = await swaps.create_swap_request(
        store, {"requester_id": "U1", "target_id": "U2", "schedule_id": "S1B", "status": "approved"}
    )

    assert error is None
    assert row["status"] == "pending"


async def test_swaps_filtered_by_status(store, roster):
    await swaps.approve_swap_request(store, "W2")

    rows, error = await swaps.list_swap_requests(store, "pending")

    assert error is None
    assert [r["id"] for r in rows] == ["W1"]


async def test_unknown_swap_status_is_a_validation_error(store, roster):
    rows, error = await swaps.list_swap_requests(store, "maybe")

    assert rows == []
    assert error.kind == ErrorKind.VALIDATION

    row, error = await swaps.update_swap_request(store, "W1", "maybe")

    assert row is None
    assert error.kind == ErrorKind.VALIDATION
    assert store.find("swap_requests", "W1")["status"] == "pending"
    assert ("update", "swap_requests") not in store.calls


# ----- attendance -----

async def test_check_in_records_present(store, roster):
    row, error = await attendance.check_in(store, "S1B", "U1")

    assert error is None
    assert row["status"] == AttendanceStatus.PRESENT.value
    assert row["check_in"]


async def test_check_in_requires_matching_schedule(store, roster):
    _, error = await attendance.check_in(store, "S2", "U1")
    assert error.kind == ErrorKind.VALIDATION

    _, error = await attendance.check_in(store, "missing", "U1")
    assert error.kind == ErrorKind.VALIDATION


async def test_check_out_after_check_in(store, roster):
    record, _ = await attendance.check_in(store, "S1B", "U1")

    row, error = await attendance.check_out(store, record["id"])

    assert error is None
    assert row["check_out"]


async def test_check_out_needs_a_check_in(store, roster):
    absent = store.seed("attendance", schedule_id="S1B", personnel_id="U1", status="absent")

    _, error = await attendance.check_out(store, absent["id"])
    assert error.kind == ErrorKind.VALIDATION

    _, error = await attendance.check_out(store, "missing")
    assert error.kind == ErrorKind.NOT_FOUND


async def test_mark_status_with_notes(store, roster):
    row, error = await attendance.mark_status(store, "S2", "U2", AttendanceStatus.EXCUSED, "Medical")

    assert error is None
    assert row["status"] == "excused"
    assert row["notes"] == "Medical"


async def test_attendance_for_a_day_follows_schedule_date(store, roster):
    store.seed("attendance", id="A4", schedule_id="S1B", personnel_id="U1", status="present")

    rows, error = await attendance.list_attendance(store, date(2024, 5, 2))

    assert error is None
    assert [r["id"] for r in rows] == ["A4"]

    rows, _ = await attendance.list_attendance(store)
    assert [r["id"] for r in rows] == ["A4", "A3", "A2", "A1"]


# ----- schedules -----

async def test_schedules_in_range_are_ordered(store, roster):
    store.seed("schedules", id="S0", personnel_id="U2", duty_date="2024-05-01", start_time="06:00:00", end_time="10:00:00")

    rows, error = await schedules.list_schedules(store, date(2024, 5, 1), date(2024, 5, 1))

    assert error is None
    assert [r["id"] for r in rows] == ["S0", "S1", "S2"]


async def test_schedule_update_of_missing_row(store, roster):
    _, error = await schedules.update_schedule(store, "missing", {"title": "x"})

    assert error.kind == ErrorKind.NOT_FOUND


async def test_schedule_for_unknown_person_is_rejected(store, roster):
    _, error = await schedules.create_schedule(
        store, {"personnel_id": "ghost", "duty_date": "2024-05-03", "start_time": "08:00:00", "end_time": "17:00:00"}
    )

    assert error.status == 409


# ----- personnel -----

async def test_create_personnel_without_account(store, auth):
    payload = PersonnelCreate(name="Cara Diaz", email="Cara@Example.com")

    data, error = await personnel.create_personnel_account(store, auth, payload)

    assert error is None
    assert data["temporary_password"] is None
    assert data["personnel"]["email"] == "cara@example.com"
    assert auth.users == {}


async def test_create_personnel_with_generated_password(store, auth):
    payload = PersonnelCreate(name="Cara Diaz", email="cara@example.com", role="staff", create_account=True)

    data, error = await personnel.create_personnel_account(store, auth, payload)

    assert error is None
    password = data["temporary_password"]
    assert len(password) == 12
    assert set(password) <= set(PASSWORD_ALPHABET)
    assert data["personnel"]["id"] == auth.users["cara@example.com"]["id"]
    assert "password" not in data["personnel"]


async def test_create_account_keeps_given_password(store, auth):
    payload = PersonnelCreate(name="Cara", email="cara@example.com", create_account=True, password="hunter22")

    data, _ = await personnel.create_personnel_account(store, auth, payload)

    assert data["temporary_password"] == "hunter22"
    assert auth.users["cara@example.com"]["password"] == "hunter22"


async def test_create_account_requires_email(store, auth):
    payload = PersonnelCreate(name="Cara", create_account=True)

    _, error = await personnel.create_personnel_account(store, auth, payload)

    assert error.kind == ErrorKind.VALIDATION


async def test_account_creation_failure_is_prefixed(store, auth):
    auth.add_user("U1", "ana@example.com")
    payload = PersonnelCreate(name="Ana", email="ana@example.com", create_account=True)

    _, error = await personnel.create_personnel_account(store, auth, payload)

    assert error.message == "Account creation failed: User already registered"
    assert store.rows("personnel") == []


async def test_personnel_creation_failure_is_prefixed(store, auth):
    payload = PersonnelCreate(name="Cara", email="cara@example.com", create_account=True, department_id="nope")

    _, error = await personnel.create_personnel_account(store, auth, payload)

    assert error.message.startswith("Personnel creation failed: ")
    assert "cara@example.com" in auth.users


async def test_personnel_listed_by_name(store, roster):
    store.seed("personnel", id="U3", name="Aaron Bell")

    rows, _ = await personnel.list_personnel(store)

    assert [r["name"] for r in rows] == ["Aaron Bell", "Ana Reyes", "Ben Cruz"]


async def test_personnel_lookup_by_email(store, roster):
    row, error = await personnel.get_personnel_by_email(store, "ben@example.com")

    assert error is None
    assert row["id"] == "U2"


# ----- departments -----

async def test_departments_created_and_listed(store):
    await departments.create_department(store, "Rescue")
    await departments.create_department(store, "Medical")

    rows, error = await departments.list_departments(store)

    assert error is None
    assert [r["name"] for r in rows] == ["Medical", "Rescue"]


# ----- dashboard -----

async def test_dashboard_counts(store):
    store.seed("personnel", id="U1", name="Ana")
    store.seed("personnel", id="U2", name="Ben")
    for n in range(4):
        store.seed("schedules", id=f"S{n}", personnel_id="U1", duty_date="2024-05-01", start_time=f"0{n}:00:00", end_time="17:00:00")
    store.seed("schedules", id="S9", personnel_id="U2", duty_date="2024-05-02", start_time="08:00:00", end_time="17:00:00")
    store.seed("attendance", schedule_id="S0", personnel_id="U1", status="present")
    store.seed("attendance", schedule_id="S1", personnel_id="U1", status="late")
    store.seed("attendance", schedule_id="S2", personnel_id="U1", status="absent")
    store.seed("swap_requests", requester_id="U1", target_id="U2", schedule_id="S0", status="pending")
    store.seed("swap_requests", requester_id="U1", target_id="U2", schedule_id="S1", status="approved")

    summary, error = await dashboard.dashboard_summary(store, date(2024, 5, 1))

    assert error is None
    assert summary["total_personnel"] == 2
    assert summary["today_duties"] == 4
    assert summary["pending_swaps"] == 1
    assert summary["attendance_rate"] == 50
    assert [r["id"] for r in summary["today_schedule"]] == ["S0", "S1", "S2", "S3"]


async def test_dashboard_reports_partial_failure(store, roster):
    store.fail("select", "swap_requests", "permission denied", status=403)

    summary, error = await dashboard.dashboard_summary(store, date(2024, 5, 1))

    assert error.message == "permission denied"
    assert summary["pending_swaps"] == 0
    assert summary["total_personnel"] == 2


async def test_dashboard_with_no_duties(store):
    summary, _ = await dashboard.dashboard_summary(store, date(2024, 5, 1))

    assert summary["attendance_rate"] == 0
