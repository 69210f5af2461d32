"""Chronological transcript used as context for every agent after the introduction."""

from arena.models import DebateState


def build_context(state: DebateState) -> str:
    """Render all contributions so far as `[agent - Round N]: content`, blank-line separated."""
    return "\n\n".join(
        f"[{c.agent_name} - Round {c.round}]: {c.content}" for c in state.contributions
    )
