"""Tests for arena/output.py."""

import asyncio
import json
from pathlib import Path

import pytest

from arena.models import Role
from arena.output import _slug, result_to_dict, save_report, save_to_file
from tests.conftest import ScriptedExecutor, failed


def test_slug_basic():
    assert _slug("Should AI be regulated?") == "should-ai-be-regulated"


def test_slug_max_len():
    long_text = "a" * 100
    assert len(_slug(long_text)) <= 40


def test_slug_special_chars():
    result = _slug("Nuclear vs. Solar (2030)")
    assert "." not in result
    assert "(" not in result
    assert ")" not in result


@pytest.fixture
def sample_result(make_engine):
    return asyncio.run(make_engine(max_rounds=2).run("Should AI be regulated?"))


def test_save_to_file_creates_file(tmp_path: Path, sample_result):
    saved = save_to_file(sample_result, tmp_path / "output")
    assert saved.exists()
    assert saved.suffix == ".md"


def test_save_to_file_creates_output_dir(tmp_path: Path, sample_result):
    output_dir = tmp_path / "nested" / "output"
    assert not output_dir.exists()
    save_to_file(sample_result, output_dir)
    assert output_dir.exists()


def test_save_to_file_content(tmp_path: Path, sample_result):
    content = save_to_file(sample_result, tmp_path).read_text(encoding="utf-8")
    assert "# Debate: Should AI be regulated?" in content
    assert "## Introduction" in content
    assert "Welcome to the debate." in content
    assert "## Round 1" in content
    assert "## Round 2" in content
    assert "**accurate** (debater_pro): GDP grew 3%" in content
    assert "**Score:** pro 7 / con 6" in content
    assert "## Verdict" in content
    assert "## Summary" in content


def test_save_to_file_headers(tmp_path: Path, sample_result):
    content = save_to_file(sample_result, tmp_path).read_text(encoding="utf-8")
    assert "**Rounds:** 2" in content
    assert "**Winner:** Pro wins" in content
    assert "**Total cost:** 0.1995" in content


async def test_save_to_file_failed_steps_section(tmp_path: Path, make_engine):
    executor = ScriptedExecutor({Role.SUMMARIZER: failed("rate limited")})
    result = await make_engine(executor, max_rounds=1).run("Topic")

    content = save_to_file(result, tmp_path).read_text(encoding="utf-8")
    assert "## Failed steps" in content
    assert "- Summarizer (round 0): rate limited" in content


def test_save_to_file_no_failed_section_when_clean(tmp_path: Path, sample_result):
    content = save_to_file(sample_result, tmp_path).read_text(encoding="utf-8")
    assert "## Failed steps" not in content


def test_save_to_file_filename_has_slug(tmp_path: Path, sample_result):
    saved = save_to_file(sample_result, tmp_path)
    assert saved.name.endswith("_should-ai-be-regulated.md")


def test_save_to_file_slug_override(tmp_path: Path, sample_result):
    saved = save_to_file(sample_result, tmp_path, slug_override="inbox-item")
    assert saved.name.endswith("_inbox-item.md")


def test_result_to_dict_is_json_serializable(sample_result):
    data = result_to_dict(sample_result)
    encoded = json.dumps(data)

    assert "Should AI be regulated?" in encoded
    assert data["costBreakdown"]["total_cost"] == "0.1995"
    assert data["payments"][0]["amount"] == "0.01"
    assert data["contributions"][0]["role"] == "moderator"
    assert data["events"][0]["type"] == "step_start"


def test_save_report_writes_json(tmp_path: Path, sample_result):
    path = save_report(sample_result, tmp_path)
    data = json.loads(path.read_text(encoding="utf-8"))

    assert path.suffix == ".json"
    assert data["debate"]["winner"] == "pro"
    assert len(data["payments"]) == 1 + 4 * 2 + 2 + 1
    assert data["payments"][-1]["step"] == "platform"
