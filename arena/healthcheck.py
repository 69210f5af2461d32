"""Pre-run connectivity check: one short call per debate seat."""

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from arena.models import Role
from arena.providers.base import AIProvider

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 15.0


@dataclass(frozen=True)
class HealthResult:
    role: Role
    ok: bool
    error: str = ""
    latency_sec: float = 0.0

    @property
    def short_error(self) -> str:
        """First line of the error, capped for console output."""
        return self.error.splitlines()[0][:120] if self.error else "unknown error"


def _ping_prompt(role: Role) -> str:
    return f"Connectivity check for the {role.value.replace('_', ' ')} seat. Reply with OK only."


async def _check_role(role: Role, provider: AIProvider) -> HealthResult:
    start = time.monotonic()
    try:
        await asyncio.wait_for(provider.generate(_ping_prompt(role)), timeout=_TIMEOUT_SEC)
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", role.value, exc)
        return HealthResult(role, False, str(exc) or type(exc).__name__, time.monotonic() - start)
    return HealthResult(role, True, latency_sec=time.monotonic() - start)


async def run_health_checks(providers: Mapping[Role, AIProvider]) -> list[HealthResult]:
    """Ping every configured seat concurrently.

    The debate itself is sequential; these pings are independent of it.
    Results come back in debate seat order, only for roles that have a provider.
    """
    results = await asyncio.gather(*(_check_role(r, providers[r]) for r in Role if r in providers))
    return list(results)


def failed_roles(results: Iterable[HealthResult]) -> list[Role]:
    return [r.role for r in results if not r.ok]
