"""Integration tests — real API calls, no mocks. Requires .env with OPENROUTER_API_KEY."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

load_dotenv()

pytestmark = pytest.mark.integration

if not os.environ.get("OPENROUTER_API_KEY", "").strip():
    pytestmark = pytest.mark.skip(reason="OPENROUTER_API_KEY not set")


async def test_full_debate_pipeline(tmp_path: Path):
    """Run a real 1-round debate through every role, verify it completes and bills."""
    from config.config_loader import load_config
    from arena.agents import ProviderAgentExecutor, build_role_providers
    from arena.debate import run_debate
    from arena.output import save_to_file

    config = load_config()
    providers = build_role_providers(config)
    assert providers, "No providers could be built"

    executor = ProviderAgentExecutor(providers, config.prompts.system)
    result = await run_debate(
        "Remote work is better than office work",
        executor,
        config,
        max_rounds=1,
    )

    assert result.state.is_complete
    assert result.debate.total_rounds == 1
    assert len(result.state.contributions) == 7
    assert len(result.payments) == 8
    assert result.debate.winner in {"pro", "con", "tie"}

    succeeded = [c for c in result.state.contributions if c.success]
    assert succeeded, "Every agent call failed"
    for c in succeeded:
        assert c.content, f"Empty content from {c.agent_name}"

    score = result.state.scores[0]
    assert 1 <= score.pro_score <= 10
    assert 1 <= score.con_score <= 10

    saved = save_to_file(result, tmp_path / "output")
    content = saved.read_text(encoding="utf-8")
    assert "# Debate:" in content
    assert "## Verdict" in content
