"""Tests for the HTTP surface: routes and the error-to-status mapping.

The engine dependency is overridden with one backed by FakeRepository, so no
database is touched. The client is not entered as a context manager, which
keeps the lifespan (database and event bus) out of these tests.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.routes import get_engine
from src.main import app
from src.workflow.engine import ArrangementEngine
from tests.conftest import TODAY, FakeRepository, make_cost, make_debt, make_income

DISPUTE = {
    "template_type": "dispute",
    "reason": "already_paid",
    "payment_date": "2026-02-10",
    "payment_reference": "BETAALD-7781",
    "received_letter_date": "2026-03-01",
}


@pytest.fixture()
def client(repo: FakeRepository):
    repo.incomes.append(make_income("2000"))
    repo.costs.append(make_cost("1500"))
    engine = ArrangementEngine(repo, clock=lambda: TODAY)
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def debt(repo: FakeRepository):
    return repo.add_debt(make_debt(amount=Decimal("80.00")))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestWorkflowRoutes:
    def test_open_workflow(self, client, debt):
        response = client.get(f"/debts/{debt.id}/workflow")
        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "step1_budget_review"
        assert body["plan"]["kind"] == "installment"
        assert set(body["valid_actions"]) == {"complete_step1", "mark_sent"}

    def test_mark_sent_then_accept(self, client, repo, debt, debtor):
        response = client.post(f"/debts/{debt.id}/workflow", json={
            "action": "mark_sent",
            "debtor": debtor.model_dump(),
            "payload": DISPUTE,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["new_state"] == "step3_awaiting_response"
        assert "BETAALD-7781" in body["letter"]["text"]
        assert body["debt_status_change"]["new_status"] == "wachtend"

        response = client.post(f"/debts/{debt.id}/workflow", json={
            "action": "record_response",
            "outcome": "accepted",
        })
        assert response.status_code == 200
        assert response.json()["debt_status_change"]["resolved_reason"] == "betwisting_erkend"
        assert debt.status == "afbetaald"

    def test_collection_cost_cap(self, client, repo):
        debt = repo.add_debt(make_debt(amount=Decimal("1100"), original_amount=Decimal("1000")))
        response = client.get(f"/debts/{debt.id}/collection-cost-cap")
        assert response.status_code == 200
        assert Decimal(str(response.json()["max_collection_costs"])) == Decimal("150")


class TestErrorMapping:
    def test_unknown_debt_is_404(self, client):
        response = client.get(f"/debts/{uuid.uuid4()}/workflow")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_step_out_of_order_is_409(self, client, debt):
        response = client.post(f"/debts/{debt.id}/workflow", json={"action": "complete_step2"})
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "precondition_not_met"
        assert body["state"] == "step1_budget_review"
        assert body["action"] == "complete_step2"

    def test_missing_strategy_field_is_422(self, client, repo, debt):
        payload = {**DISPUTE, "payment_reference": None}
        response = client.post(f"/debts/{debt.id}/workflow", json={"action": "mark_sent", "payload": payload})
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "invalid_input"
        assert body["fields"] == ["payment_reference"]
        assert repo.proposals == []

    def test_failed_write_is_502_with_letter(self, client, repo, debt, debtor):
        repo.fail_on = {"update_debt"}
        response = client.post(f"/debts/{debt.id}/workflow", json={
            "action": "mark_sent",
            "debtor": debtor.model_dump(),
            "payload": DISPUTE,
        })
        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "upstream_write_failed"
        assert body["failed_step"] == "debt_status"
        assert body["completed_steps"] == ["proposal"]
        assert "BETAALD-7781" in body["letter_text"]


class TestStatelessRoutes:
    def test_breakdown_with_plan(self, client):
        response = client.post("/affordability/breakdown", json={
            "fixed_monthly_income": "2000",
            "fixed_monthly_costs": "1500",
            "debt_amount": "80",
        })
        assert response.status_code == 200
        body = response.json()
        assert Decimal(str(body["breakdown"]["available_for_new_arrangement"])) == Decimal("75.00")
        assert body["plan"]["kind"] == "installment"
        assert body["plan"]["duration_months"] == 2

    def test_breakdown_without_debt_has_no_plan(self, client):
        response = client.post("/affordability/breakdown", json={"fixed_monthly_income": "1800"})
        assert response.status_code == 200
        body = response.json()
        assert body["plan"] is None
        assert "fixed_monthly_costs" in body["breakdown"]["degraded_fields"]

    def test_build_letter(self, client, debtor):
        response = client.post("/letters/build", json={
            "payload": DISPUTE,
            "debtor": debtor.model_dump(),
            "creditor": {"name": "Energie BV", "case_number": "ZK-2024-001", "amount": "80.00"},
            "today": "2026-03-05",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["subject"] == "Betwisting vordering - Dossier ZK-2024-001"
        assert body["placeholders"] == []

    def test_build_letter_unknown_strategy(self, client):
        response = client.post("/letters/build", json={"payload": {"template_type": "kwijtschelding"}})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"
