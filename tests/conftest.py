"""Shared test fixtures for Feedglot tests."""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from feedglot.adapters.translation_api import TranslationAPI
from feedglot.core.config_manager import ConfigManager, DEFAULT_CONFIG
from feedglot.core.types import BatchArticle


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset all singletons before each test."""
    yield
    ConfigManager.reset()


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


# --- Helpers for streaming tests ---

def make_article(article_id: str, title: str = "Title", summary: str = "Summary") -> BatchArticle:
    return BatchArticle(id=article_id, title=title, summary=summary)


def ndjson(*records: dict) -> bytes:
    """Encode records as a newline-delimited JSON body."""
    return "".join(json.dumps(r, ensure_ascii=False) + "\n" for r in records).encode("utf-8")


def record(article_id: str, title: str, summary: str) -> dict:
    return {"id": article_id, "title": title, "summary": summary}


async def settle(predicate=lambda: False, spins: int = 200) -> None:
    """Let other tasks run until `predicate()` holds (or for `spins` loop turns)."""
    for _ in range(spins):
        if predicate():
            return
        await asyncio.sleep(0)


class ScriptedAPI(TranslationAPI):
    """Fake transport that replays one script per stream_batch_translate call.

    A script is a list of steps:
    - bytes: yielded as a body chunk
    - asyncio.Event: waited on before continuing
    - Exception instance: raised from the stream
    """

    def __init__(self, *scripts):
        self._scripts = list(scripts)
        self.calls = []
        self.closed = False

    async def stream_batch_translate(self, articles, token=None):
        self.calls.append((list(articles), token))
        script = self._scripts.pop(0)
        for step in script:
            if isinstance(step, asyncio.Event):
                await step.wait()
            elif isinstance(step, BaseException):
                raise step
            else:
                yield step

    async def aclose(self):
        self.closed = True
