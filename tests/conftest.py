"""Shared pytest fixtures for BildGenerator tests."""

import base64
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import httpx
import pytest

# The global config is created at import time; keep its content directory out
# of the working tree.
os.environ.setdefault("BILDGEN_CONTENT_DIR", tempfile.mkdtemp(prefix="bildgen-uploads-"))

from bildgen.core.config import BildgenConfig  # noqa: E402
from bildgen.core.gateway import GenerationGateway  # noqa: E402
from bildgen.core.model_resolver import ModelResolver  # noqa: E402
from bildgen.core.provider import ProviderClient  # noqa: E402
from bildgen.core.rate_limiter import RateLimiter  # noqa: E402

PROVIDER_URL = "https://provider.test/api/v1/chat/completions"

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDRtest-image-payload"
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class FakeProvider:
    """``httpx.MockTransport`` handler standing in for the provider.

    Attributes:
        status_code: Status returned for the generation call.
        body: JSON body (dict) or raw text (str) for the generation call.
        images: Mapping of remote image URL to bytes.  URLs not listed fail
            with a 404; URLs in ``broken`` raise a connection error.
        completion_error: Raised instead of answering the generation call.
        requests: Every request the transport received.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.body: dict | str = {"choices": [{"message": {"images": []}}]}
        self.images: dict[str, bytes] = {}
        self.broken: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.completion_error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "POST":
            if self.completion_error is not None:
                raise self.completion_error
            if isinstance(self.body, str):
                return httpx.Response(self.status_code, text=self.body)
            return httpx.Response(self.status_code, json=self.body)

        url = str(request.url)
        if url in self.broken:
            raise httpx.ConnectError("connection refused", request=request)
        if url in self.images:
            return httpx.Response(200, content=self.images[url])
        return httpx.Response(404, text="not found")

    @property
    def completion_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> BildgenConfig:
    """Create a test configuration with a temporary content directory."""
    return BildgenConfig(
        _env_file=None,
        api_key="server-key",
        provider_url=PROVIDER_URL,
        content_dir=temp_dir / "uploads",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway(
    test_config: BildgenConfig,
    fake_provider: FakeProvider,
    fake_clock: FakeClock,
) -> Generator[GenerationGateway, None, None]:
    """Gateway wired to the fake provider and a manual clock."""
    provider = ProviderClient(test_config, transport=httpx.MockTransport(fake_provider))
    try:
        yield GenerationGateway(
            test_config,
            RateLimiter(window_ms=60_000, max_requests=10, clock=fake_clock),
            ModelResolver(test_config.default_model),
            provider,
        )
    finally:
        provider.close()


@pytest.fixture
def test_client(test_config: BildgenConfig, fake_provider: FakeProvider):
    """FastAPI TestClient for an app bound to the test configuration."""
    from fastapi.testclient import TestClient

    from bildgen.api.main import create_app

    app = create_app(test_config, transport=httpx.MockTransport(fake_provider))
    with TestClient(app) as client:
        yield client
