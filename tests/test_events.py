"""Tests for arena/events.py — payment and activity stream."""

from decimal import Decimal

import pytest

from arena.events import EventStreamBuilder
from arena.models import Role, Step


@pytest.fixture
def stream(sample_pricing, sample_agents) -> EventStreamBuilder:
    return EventStreamBuilder(sample_pricing, sample_agents, clock=lambda: 1_700_000_000_000)


def test_ids_are_sequential_and_unique(stream):
    stream.step_started(Step.MODERATOR_INTRO, 0)
    stream.step_completed(Step.MODERATOR_INTRO, 0, success=True)
    record = stream.bill_step(Step.MODERATOR_INTRO, 0, success=True)

    ids = [e.id for e in stream.events] + [record.id]
    assert ids[0] == "debate-1700000000000-0"
    assert len(set(ids)) == len(ids)


def test_step_started_payload(stream):
    event = stream.step_started(Step.DEBATER_CON, 2)

    assert event.type == "step_start"
    assert event.timestamp == 1_700_000_000_000
    assert event.data == {
        "stepId": "debater_con-r2",
        "step": "debater_con",
        "round": 2,
        "agentName": "Debater B",
        "description": "Debater B: debater_con",
    }


def test_step_completed_carries_error_only_on_failure(stream):
    ok = stream.step_completed(Step.FACT_CHECK, 1, success=True)
    bad = stream.step_completed(Step.FACT_CHECK, 1, success=False, error="timeout")

    assert "error" not in ok.data
    assert bad.data["success"] is False
    assert bad.data["error"] == "timeout"


def test_round_marker(stream):
    event = stream.round_marker(2, 3)
    assert event.type == "round_marker"
    assert event.data == {"round": 2, "maxRounds": 3}


def test_bill_step_records_payment_and_event(stream, sample_agents):
    record = stream.bill_step(Step.JUDGE_VERDICT, 0, success=True)

    assert stream.payments == [record]
    assert record.amount == Decimal("0.02")
    assert record.step == "judge_verdict"
    assert record.sender == "user"
    assert record.recipient == sample_agents[Role.JUDGE].address

    event = stream.events[-1]
    assert event.type == "payment"
    assert event.data["paymentId"] == record.id
    assert event.data["to"] == "Judge (Verdict)"
    assert event.data["amount"] == "0.02"
    assert event.data["asset"] == "USDC"
    assert event.data["step"] == "judge_verdict"


def test_failed_step_is_still_billed(stream):
    record = stream.bill_step(Step.DEBATER_PRO, 1, success=False)
    assert record.amount == Decimal("0.02")
    assert stream.events[-1].data["success"] is False


def test_platform_fee(stream):
    record = stream.bill_platform_fee(Decimal("0.0130"))

    assert record.step == "platform"
    assert record.recipient == "0xplatform"
    event = stream.events[-1]
    assert event.type == "platform_fee"
    assert event.data["to"] == "Platform"
    assert event.data["amount"] == "0.0130"
    assert event.data["feePercentage"] == "5"
