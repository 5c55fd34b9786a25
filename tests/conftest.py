import pytest

from fakes import FakeAuth, MemoryStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def roster(store):
    """
    Two people with the cross-references a cascade has to untangle:
    U1 owns S1 (attended by U1 and U2), U2 owns S2, and swap requests
    point both ways.
    """
    dept = store.seed("departments", id="D1", name="Field")
    u1 = store.seed("personnel", id="U1", name="Ana Reyes", email="ana@example.com", role="volunteer", is_active=True, department_id=dept["id"])
    u2 = store.seed("personnel", id="U2", name="Ben Cruz", email="ben@example.com", role="staff", is_active=True)
    s1 = store.seed("schedules", id="S1", personnel_id="U1", duty_date="2024-05-01", start_time="08:00:00", end_time="17:00:00", title="Patrol")
    s1b = store.seed("schedules", id="S1B", personnel_id="U1", duty_date="2024-05-02", start_time="08:00:00", end_time="17:00:00")
    s2 = store.seed("schedules", id="S2", personnel_id="U2", duty_date="2024-05-01", start_time="09:00:00", end_time="18:00:00", title="Patrol")
    store.seed("attendance", id="A1", schedule_id="S1", personnel_id="U1", status="present")
    store.seed("attendance", id="A2", schedule_id="S1", personnel_id="U2", status="late")
    store.seed("attendance", id="A3", schedule_id="S2", personnel_id="U2", status="present")
    store.seed("swap_requests", id="W1", requester_id="U1", target_id="U2", schedule_id="S1", status="pending")
    store.seed("swap_requests", id="W2", requester_id="U2", target_id="U1", schedule_id="S2", status="pending")
    return {"dept": dept, "u1": u1, "u2": u2, "s1": s1, "s1b": s1b, "s2": s2}
