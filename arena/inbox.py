"""Debate queue: markdown topic files with optional per-topic overrides in frontmatter.

    ---
    max_rounds: 2
    balance: "0.25"
    early_stop: true
    ---
    Remote work beats office work
"""

import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import frontmatter


@dataclass(frozen=True)
class QueuedTopic:
    path: Path
    topic: str
    max_rounds: int | None = None
    balance: str | None = None      # validated by the caller, kept verbatim here
    early_stop: bool | None = None


def ensure_dirs(inbox_dir: Path, archive_dir: Path) -> None:
    for d in (inbox_dir, archive_dir):
        d.mkdir(parents=True, exist_ok=True)


def scan_inbox(inbox_dir: Path) -> list[Path]:
    """Queued topic files, oldest first."""
    return sorted(inbox_dir.glob("*.md"), key=lambda p: p.stat().st_mtime)


def load_topic(file_path: Path) -> QueuedTopic:
    """Read a topic file. Missing frontmatter keys stay None so config defaults apply.

    Raises:
        ValueError: max_rounds is present but not a positive integer.
    """
    post = frontmatter.load(str(file_path))
    meta = post.metadata

    max_rounds = meta.get("max_rounds")
    if max_rounds is not None:
        if isinstance(max_rounds, bool) or not isinstance(max_rounds, int) or max_rounds < 1:
            raise ValueError(f"{file_path.name}: max_rounds must be a positive integer, got {max_rounds!r}")

    balance = meta.get("balance")
    early_stop = meta.get("early_stop")
    return QueuedTopic(
        path=file_path,
        topic=post.content.strip(),
        max_rounds=max_rounds,
        balance=str(balance) if balance is not None else None,
        early_stop=bool(early_stop) if early_stop is not None else None,
    )


def archive_file(file_path: Path, archive_dir: Path, *, failed: bool = False) -> Path:
    """Move a processed topic file to archive_dir as `[FAILED_]<timestamp>_<name>`."""
    stamp = datetime.now().strftime("%Y-%m-%dT%H%M")
    dest = archive_dir / f"{'FAILED_' if failed else ''}{stamp}_{file_path.name}"
    shutil.move(str(file_path), str(dest))
    return dest
