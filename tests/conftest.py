"""Shared test fixtures for the jvmpulse test suite."""

from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Sample payloads
# =============================================================================


JVM_PAYLOAD = """\
# HELP jvm_threads_current Current thread count of a JVM
# TYPE jvm_threads_current gauge
jvm_threads_current 42.0
# HELP jvm_memory_bytes_used Used bytes of a given JVM memory area.
# TYPE jvm_memory_bytes_used gauge
jvm_memory_bytes_used{area="heap",id="G1 Eden Space"} 1048576.0
jvm_memory_bytes_used{area="heap",id="G1 Old Gen"} 2097152.0
jvm_memory_bytes_used{area="nonheap",id="Metaspace"} 524288.0
# TYPE jvm_memory_bytes_committed gauge
jvm_memory_bytes_committed{area="heap",id="G1 Eden Space"} 2097152.0
jvm_memory_bytes_committed{area="heap",id="G1 Old Gen"} 4194304.0
# TYPE jvm_memory_bytes_max gauge
jvm_memory_bytes_max{area="heap",id="G1 Eden Space"} -1.0
jvm_memory_bytes_max{area="heap",id="G1 Old Gen"} 8388608.0
# HELP jvm_gc_collection_seconds Time spent in a given JVM garbage collector in seconds.
# TYPE jvm_gc_collection_seconds summary
jvm_gc_collection_seconds_count{gc="G1 Young Generation"} 10.0
jvm_gc_collection_seconds_sum{gc="G1 Young Generation"} 0.25
jvm_gc_collection_seconds_count{gc="G1 Old Generation"} 1.0
jvm_gc_collection_seconds_sum{gc="G1 Old Generation"} 0.5
# TYPE process_cpu_seconds_total counter
process_cpu_seconds_total 12.5
# TYPE process_resident_memory_bytes gauge
process_resident_memory_bytes 1.6777216E8
"""


@pytest.fixture
def jvm_payload() -> str:
    """A realistic exposition payload of a JVM with two heap pools and two collectors."""
    return JVM_PAYLOAD


@pytest.fixture
def exposition_file(tmp_path: Path) -> Path:
    """Write the sample payload plus one malformed line to a file."""
    path = tmp_path / "metrics.txt"
    path.write_text(JVM_PAYLOAD + "bad_metric_line_without_value\n")
    return path


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Fake agent server
# =============================================================================


@dataclass
class FakeAgent:
    """Controls the responses of the fake metrics endpoint.

    Attributes:
        base_url: Base URL of the running server.
        payloads: Exposition text served per target id.
        status: HTTP status returned for every request.
        error_body: Body returned together with a non-2xx status.
        delay: Seconds to wait before answering.
        requests: Target ids in the order they were requested.
    """

    base_url: str = ""
    payloads: dict[str, str] = field(default_factory=dict)
    status: int = 200
    error_body: str = ""
    delay: float = 0.0
    requests: list[str] = field(default_factory=list)


def _create_agent_app(agent: FakeAgent) -> web.Application:
    async def _metrics_handler(request: web.Request) -> web.Response:
        target = request.match_info["target"]
        agent.requests.append(target)
        if agent.delay:
            await asyncio.sleep(agent.delay)
        if agent.status >= 400:
            return web.Response(status=agent.status, text=agent.error_body)
        if target not in agent.payloads:
            return web.Response(status=404, text=f"Unknown process {target}")
        return web.Response(text=agent.payloads[target], content_type="text/plain")

    app = web.Application()
    app.router.add_get("/api/processes/{target}/metrics", _metrics_handler)
    return app


@pytest.fixture
async def fake_agent() -> AsyncIterator[FakeAgent]:
    """Aiohttp server mimicking the backend metrics proxy.

    Serves ``JVM_PAYLOAD`` for target ``"1"`` until a test changes it.
    """
    agent = FakeAgent(payloads={"1": JVM_PAYLOAD})
    port = _get_free_port()
    runner = web.AppRunner(_create_agent_app(agent))
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    agent.base_url = f"http://127.0.0.1:{port}"
    yield agent
    await runner.cleanup()
