"""Pytest fixtures for API unit tests.

The API is exercised against a real APIController wrapping a DeviceContext
that is wired to the fake transport and session factory from the root
conftest, so requests run the actual lifecycle code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

import pytest
from aiohttp import web

from tvh_hdhomerun.core.api import APIController
from tvh_hdhomerun.core.api.server import create_app
from tvh_hdhomerun.core.devices import HDHomeRunScanner


T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def create_test_app(controller: APIController) -> web.Application:
    return create_app(controller, localhost_only=True)


@pytest.fixture
def scanner(context) -> HDHomeRunScanner:
    return HDHomeRunScanner(context, scan_interval=3600)


@pytest.fixture
def controller(context, scanner) -> APIController:
    return APIController(context, scanner)
