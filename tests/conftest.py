"""
Pytest configuration and common fixtures for yuko workflow tests.

All fixtures follow camelCase naming convention.
"""

import asyncio
from typing import Any, List

import pytest

from tests.utils import ScriptedApi
from yuko.client import Client


class SleepRecorder:
    """asyncio.sleep replacement: records delays, yields once, never waits."""

    def __init__(self):
        self.delays: List[float] = []
        self._realSleep = asyncio.sleep

    async def __call__(self, delay: float, result: Any = None) -> Any:
        self.delays.append(delay)
        await self._realSleep(0)
        return result


@pytest.fixture
def scriptedApi() -> ScriptedApi:
    """Fresh fake API with no scripted routes."""
    return ScriptedApi()


@pytest.fixture
def sleepRecorder(monkeypatch) -> SleepRecorder:
    """
    Replace asyncio.sleep so rate-limit waits and backoff return at once.

    Returns:
        SleepRecorder: Recorder with the requested delays in ``delays``
    """
    recorder = SleepRecorder()
    monkeypatch.setattr(asyncio, "sleep", recorder)
    return recorder


@pytest.fixture
async def client(scriptedApi, sleepRecorder):
    """Client on top of the fake API, two retries, fast backoff."""
    client = Client(
        "test_token",
        restConfig={"maxRetries": 2, "retryBackoffFactor": 0.1},
        cacheConfig={"messages": 3},
        transport=scriptedApi.transport,
    )
    yield client
    await client.aclose()
