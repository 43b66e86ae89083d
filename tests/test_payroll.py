"""Tests for the weekly payroll engine."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from homelesson.models.payroll import PaymentHistory, PayrollRecord
from homelesson.services import payroll as payroll_service
from homelesson.services.payroll import AllowancePolicy


def test_allowances_all_or_nothing():
    policy = AllowancePolicy(teaching_amount=20000, transport_amount=12000, transport_enabled=False)
    assert policy.allowances_for(0) == (0, 0)
    assert policy.allowances_for(1) == (20000, 0)
    assert policy.allowances_for(100) == (20000, 0)


def test_transport_needs_toggle_and_eligibility():
    policy = AllowancePolicy(teaching_amount=20000, transport_amount=12000, transport_enabled=True)
    assert policy.allowances_for(0) == (0, 0)
    assert policy.allowances_for(25) == (20000, 12000)


async def _week(async_client: AsyncClient, week: int = 10, year: int = 2025) -> dict:
    resp = await async_client.get(f"/api/payroll/week/{week}/{year}")
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.asyncio
async def test_process_pays_only_teachers_with_attendance(async_client: AsyncClient, make_teacher, make_slots, mark):
    """Any attended lesson earns the full teaching allowance; none earns nothing."""
    worker = await make_teacher("Worker")
    idle = await make_teacher("Idle")
    slots = await make_slots(worker["id"], count=4)
    await mark(worker["id"], slots[0], "late")
    for slot in slots[1:]:
        await mark(worker["id"], slot, "absent")
    slot_idle = (await make_slots(idle["id"], day=1))[0]
    await mark(idle["id"], slot_idle, "absent")

    resp = await async_client.post("/api/payroll/process/10/2025")
    assert resp.status_code == 200
    body = resp.json()
    assert body["teachers_processed"] == 2
    assert body["total_amount"] == 20000

    rows = {r["teacher_name"]: r for r in (await _week(async_client))["payroll"]}
    assert rows["Worker"]["teaching_allowance"] == 20000
    assert rows["Worker"]["transport_allowance"] == 0
    assert rows["Worker"]["total_amount"] == 20000
    assert rows["Idle"]["teaching_allowance"] == 0
    assert rows["Idle"]["transport_allowance"] == 0
    assert rows["Idle"]["total_amount"] == 0
    assert rows["Idle"]["paid"] is False
    assert rows["Worker"]["processed_by"] == 1


@pytest.mark.asyncio
async def test_transport_allowance_follows_config(async_client: AsyncClient, make_teacher, make_slots, mark):
    teacher = await make_teacher("Commuter")
    slot = (await make_slots(teacher["id"]))[0]
    await mark(teacher["id"], slot, "present")

    resp = await async_client.put("/api/settings/enable_transport_allowance", json={"config_value": "true"})
    assert resp.status_code == 200
    resp = await async_client.put("/api/settings/teaching_allowance", json={"config_value": "25000"})
    assert resp.status_code == 200

    await async_client.post("/api/payroll/process/10/2025")
    row = (await _week(async_client))["payroll"][0]
    assert row["teaching_allowance"] == 25000
    assert row["transport_allowance"] == 12000
    assert row["total_amount"] == 37000


@pytest.mark.asyncio
async def test_inactive_teachers_are_skipped(async_client: AsyncClient, make_teacher):
    await make_teacher("Active")
    await make_teacher("Resting", status="on-leave")
    resp = await async_client.post("/api/payroll/process/10/2025")
    assert resp.json()["teachers_processed"] == 1
    assert [r["teacher_name"] for r in (await _week(async_client))["payroll"]] == ["Active"]


@pytest.mark.asyncio
async def test_reprocessing_is_idempotent_and_keeps_adjustments(
    async_client: AsyncClient, db_session, make_teacher, make_slots, mark
):
    """A second run updates rows in place; bonus, deduction and paid state survive."""
    teacher = await make_teacher("Steady")
    slot = (await make_slots(teacher["id"]))[0]
    await mark(teacher["id"], slot, "present")

    await async_client.post("/api/payroll/process/10/2025")
    record = (await _week(async_client))["payroll"][0]
    adjust = await async_client.put(
        f"/api/payroll/adjust/{record['id']}", json={"bonus": 3000, "deduction": 500, "paid": True}
    )
    assert adjust.status_code == 200

    again = await async_client.post("/api/payroll/process/10/2025")
    assert again.status_code == 200

    rows = (await _week(async_client))["payroll"]
    assert len(rows) == 1
    assert rows[0]["id"] == record["id"]
    assert rows[0]["teaching_allowance"] == 20000
    assert rows[0]["bonus"] == 3000
    assert rows[0]["deduction"] == 500
    assert rows[0]["paid"] is True
    # processing writes teaching + transport only
    assert rows[0]["total_amount"] == 20000

    payroll_count = await db_session.execute(select(func.count(PayrollRecord.id)))
    history_count = await db_session.execute(select(func.count(PaymentHistory.id)))
    assert payroll_count.scalar() == 1
    assert history_count.scalar() == 1


@pytest.mark.asyncio
async def test_adjust_recomputes_total(async_client: AsyncClient, make_teacher, make_slots, mark):
    teacher = await make_teacher("Bonus")
    slot = (await make_slots(teacher["id"]))[0]
    await mark(teacher["id"], slot, "present")
    await async_client.post("/api/payroll/process/10/2025")
    record = (await _week(async_client))["payroll"][0]

    resp = await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"bonus": 5000})
    assert resp.json()["total_amount"] == 25000
    resp = await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"deduction": 2000})
    data = resp.json()
    assert data["bonus"] == 5000
    assert data["total_amount"] == 23000
    assert data["paid"] is False
    assert data["payment_date"] is None


@pytest.mark.asyncio
async def test_paid_transition_logs_history_exactly_once(async_client: AsyncClient, make_teacher, make_slots, mark):
    teacher = await make_teacher("Payee")
    slot = (await make_slots(teacher["id"]))[0]
    await mark(teacher["id"], slot, "present")
    await async_client.post("/api/payroll/process/10/2025")
    record = (await _week(async_client))["payroll"][0]

    first = await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"bonus": 1000, "paid": True})
    assert first.status_code == 200
    paid = first.json()
    assert paid["paid"] is True
    assert paid["payment_date"] is not None

    second = await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"paid": True})
    assert second.json()["payment_date"] == paid["payment_date"]

    history = (await async_client.get("/api/payroll/history")).json()
    assert history["total"] == 1
    payment = history["payments"][0]
    assert payment["amount"] == 21000
    assert payment["teacher_name"] == "Payee"
    assert payment["reference"].startswith(f"PAY-{teacher['id']}-10-")
    assert payment["notes"] == "Weekly payroll for Week 10, 2025"
    assert payment["payment_type"] == "weekly_payroll"
    assert payment["status"] == "completed"


@pytest.mark.asyncio
async def test_unpaid_clears_flag_only(async_client: AsyncClient, make_teacher):
    await make_teacher("Reverted")
    await async_client.post("/api/payroll/process/10/2025")
    record = (await _week(async_client))["payroll"][0]
    await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"paid": True})

    resp = await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"paid": False})
    assert resp.json()["paid"] is False
    history = (await async_client.get("/api/payroll/history")).json()
    assert history["total"] == 1


@pytest.mark.asyncio
async def test_adjust_missing_record(async_client: AsyncClient):
    resp = await async_client.put("/api/payroll/adjust/777", json={"bonus": 1})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Payroll record not found"


@pytest.mark.asyncio
async def test_adjust_rejects_negative_amounts(async_client: AsyncClient):
    resp = await async_client.put("/api/payroll/adjust/1", json={"deduction": -1})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_failed_batch_writes_nothing(async_client: AsyncClient, db_session, make_teacher, monkeypatch):
    """A failure for one teacher rolls back every teacher's row."""
    await make_teacher("First")
    await make_teacher("Second")

    real_policy = payroll_service.AllowancePolicy
    calls = {"n": 0}

    class FlakyPolicy(real_policy):
        def allowances_for(self, percentage: int) -> tuple[int, int]:
            calls["n"] += 1
            if calls["n"] == 2:
                raise RuntimeError("boom")
            return super().allowances_for(percentage)

    async def flaky_load_policy(db):
        return FlakyPolicy(teaching_amount=20000, transport_amount=0, transport_enabled=False)

    monkeypatch.setattr(payroll_service, "load_policy", flaky_load_policy)

    resp = await async_client.post("/api/payroll/process/10/2025")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error", "success": False}

    count = await db_session.execute(select(func.count(PayrollRecord.id)))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_payment_history_pagination(async_client: AsyncClient, make_teacher):
    for name in ("A", "B", "C"):
        await make_teacher(name)
    await async_client.post("/api/payroll/process/10/2025")
    for record in (await _week(async_client))["payroll"]:
        await async_client.put(f"/api/payroll/adjust/{record['id']}", json={"paid": True})

    page = (await async_client.get("/api/payroll/history?limit=2&offset=0")).json()
    assert page["total"] == 3
    assert len(page["payments"]) == 2
    rest = (await async_client.get("/api/payroll/history?limit=2&offset=2")).json()
    assert len(rest["payments"]) == 1


@pytest.mark.asyncio
async def test_processing_requires_admin(async_client: AsyncClient, as_readonly):
    resp = await async_client.post("/api/payroll/process/10/2025")
    assert resp.status_code == 403
