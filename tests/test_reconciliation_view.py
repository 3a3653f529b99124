"""Tests for the read-only reconciliation path."""

import pytest
from decimal import Decimal

from commission_engine.core.exceptions import PlanNotFoundError
from commission_engine.services.commission_ledger import CommissionLedger
from commission_engine.services.reconciliation_view import ReconciliationView
from commission_engine.utils.money import Money


@pytest.fixture
def view(session_factory) -> ReconciliationView:
    return ReconciliationView(session_factory)


def _paid_plan(plan_factory, earned: str = "0") -> int:
    return plan_factory(
        total="10000",
        expected="800",
        earned=earned,
        installments=[
            {"amount": "5000", "paid_amount": "5000", "status": "PAID"},
            {"amount": "5000"},
        ],
    )


class TestLive:
    def test_ignores_cached_value(self, view: ReconciliationView, plan_factory) -> None:
        plan_id = _paid_plan(plan_factory, earned="12.34")
        result = view.live(plan_id)
        assert result.earned_commission == Money.of("400", "AUD")
        assert result.total_paid == Money.of("5000", "AUD")

    def test_unknown_plan(self, view: ReconciliationView) -> None:
        with pytest.raises(PlanNotFoundError):
            view.live(999)

    def test_matches_ledger_after_store(self, view, session_factory, plan_factory) -> None:
        plan_id = _paid_plan(plan_factory)
        stored = CommissionLedger(session_factory).recompute_and_store(plan_id, "MANUAL_RECALC")
        assert view.live(plan_id) == stored


class TestFindDiscrepancies:
    def test_reports_stale_cache(self, view: ReconciliationView, plan_factory) -> None:
        stale = _paid_plan(plan_factory, earned="0")
        fresh = _paid_plan(plan_factory, earned="400")

        found = view.find_discrepancies([stale, fresh])

        assert [d.plan_id for d in found] == [stale]
        d = found[0]
        assert d.cached == Money.of("0", "AUD")
        assert d.live == Money.of("400", "AUD")
        assert d.delta == Money.of("-400", "AUD")

    def test_tolerance_absorbs_rounding(self, view: ReconciliationView, plan_factory) -> None:
        plan_id = _paid_plan(plan_factory, earned="400.01")
        assert view.find_discrepancies([plan_id], tolerance=Decimal("0.01")) == []
        assert len(view.find_discrepancies([plan_id], tolerance=Decimal("0"))) == 1

    def test_none_scans_every_plan(self, view: ReconciliationView, plan_factory) -> None:
        ids = [_paid_plan(plan_factory, earned="1") for _ in range(3)]
        found = view.find_discrepancies()
        assert [d.plan_id for d in found] == ids

    def test_unknown_ids_are_skipped(self, view: ReconciliationView, plan_factory) -> None:
        plan_id = _paid_plan(plan_factory)
        found = view.find_discrepancies([12345, plan_id])
        assert [d.plan_id for d in found] == [plan_id]

    def test_clean_after_ledger_writes(self, view, session_factory, plan_factory) -> None:
        ids = [_paid_plan(plan_factory, earned="77") for _ in range(2)]
        ledger = CommissionLedger(session_factory)
        for plan_id in ids:
            ledger.recompute_and_store(plan_id, "MANUAL_RECALC")
        assert view.find_discrepancies(ids) == []

    def test_discrepancy_out(self, view: ReconciliationView, plan_factory) -> None:
        plan_id = _paid_plan(plan_factory)
        out = view.find_discrepancies([plan_id])[0].to_out()
        assert out.plan_id == plan_id
        assert out.delta == -400.0
        assert out.currency == "AUD"
