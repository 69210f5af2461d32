"""Unit tests for arena/healthcheck.py — no real API calls."""

import asyncio
from unittest.mock import AsyncMock

from arena.healthcheck import HealthResult, failed_roles, run_health_checks
from arena.models import Role
from arena.providers.base import ProviderError

from tests.conftest import MockProvider


def _seats(*roles: Role) -> dict[Role, MockProvider]:
    return {role: MockProvider(role.value, "OK") for role in roles}


async def test_all_seats_pass():
    providers = _seats(Role.JUDGE, Role.MODERATOR)

    results = await run_health_checks(providers)

    assert [r.role for r in results] == [Role.MODERATOR, Role.JUDGE]
    assert all(r.ok and r.error == "" for r in results)
    assert all(r.latency_sec >= 0 for r in results)
    assert failed_roles(results) == []


async def test_ping_names_the_seat():
    providers = _seats(Role.FACT_CHECKER)

    await run_health_checks(providers)

    prompt = providers[Role.FACT_CHECKER].generate.call_args.args[0]
    assert "fact checker" in prompt
    assert "OK" in prompt


async def test_one_seat_fails():
    providers = _seats(Role.DEBATER_PRO, Role.DEBATER_CON)
    providers[Role.DEBATER_CON].generate = AsyncMock(
        side_effect=ProviderError("debater_con", "403 Forbidden\nbody: {...}")
    )

    results = await run_health_checks(providers)

    pro, con = results
    assert pro == HealthResult(Role.DEBATER_PRO, True, latency_sec=pro.latency_sec)
    assert con.ok is False
    assert "403" in con.error
    assert "\n" not in con.short_error
    assert failed_roles(results) == [Role.DEBATER_CON]


async def test_all_seats_fail_in_seat_order():
    providers = _seats(Role.SUMMARIZER, Role.FACT_CHECKER)
    for role, p in providers.items():
        p.generate = AsyncMock(side_effect=Exception(f"{role.value} down"))

    results = await run_health_checks(providers)

    assert failed_roles(results) == [Role.FACT_CHECKER, Role.SUMMARIZER]
    for result in results:
        assert result.role.value in result.error


async def test_no_providers():
    assert await run_health_checks({}) == []


async def test_timeout_counts_as_failure(monkeypatch):
    providers = _seats(Role.JUDGE)

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    providers[Role.JUDGE].generate = AsyncMock(side_effect=hang)
    monkeypatch.setattr("arena.healthcheck._TIMEOUT_SEC", 0.05)

    [result] = await run_health_checks(providers)

    assert result.ok is False
    assert result.error == "TimeoutError"


def test_short_error_without_message():
    assert HealthResult(Role.JUDGE, False).short_error == "unknown error"
