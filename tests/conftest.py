"""Shared test fixtures for LogScribe tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Optional

import pytest
import yaml

from logscribe.core.config_manager import ConfigManager, DEFAULT_CONFIG
from logscribe.core.database import DatabaseManager, KeyValueStore
from logscribe.core.types import CommentDTO, PostDTO


class MemoryStore(KeyValueStore):
    """Dict-backed KeyValueStore for tests."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def raw_get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def raw_set(self, key: str, value: str) -> None:
        self.data[key] = value

    def raw_delete(self, key: str) -> None:
        self.data.pop(key, None)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_post(post_id="abc123", title="Test Post", selftext="Test body", **kwargs) -> PostDTO:
    defaults = {
        "author": "testuser",
        "score": 42,
        "created_utc": 1700000000.0,
        "num_comments": 10,
        "subreddit": "python",
    }
    defaults.update(kwargs)
    return PostDTO(id=post_id, title=title, selftext=selftext, **defaults)


def make_comment(cid, body="comment", author=None, children=None) -> CommentDTO:
    return CommentDTO(
        id=cid,
        author=author or f"user_{cid}",
        body=body,
        score=1,
        children=children or [],
    )


def make_chain(depth: int, prefix: str = "c") -> CommentDTO:
    """Single comment with a reply chain `depth` levels deep."""
    node = make_comment(f"{prefix}{depth}", body=f"level {depth}")
    for level in range(depth - 1, 0, -1):
        node = make_comment(f"{prefix}{level}", body=f"level {level}", children=[node])
    return node


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset all singletons after each test."""
    yield
    ConfigManager.reset()
    DatabaseManager.reset()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def config_file(tmp_dir):
    """Create a temporary settings.yaml and return its path."""
    config_dir = tmp_dir / "config"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "settings.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(dict(DEFAULT_CONFIG), f, default_flow_style=False, sort_keys=False)

    return config_path


@pytest.fixture
def tmp_db_path(tmp_dir):
    """Provide a temporary database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()
