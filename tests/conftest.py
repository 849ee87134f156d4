"""Pytest configuration and shared fixtures."""

import os
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Set before llm_sandbox is imported: importing it builds the module-level app
os.environ.setdefault("LOG_LEVEL", "INFO")

from llm_sandbox.config import Settings  # noqa: E402
from llm_sandbox.main import create_app  # noqa: E402
from tests.upstream_helper import FakeUpstream  # noqa: E402


@pytest.fixture
def prompts_dir(tmp_path: Path) -> Path:
    """Create a prompts directory with two templates and a README."""
    directory = tmp_path / "prompts"
    directory.mkdir()
    (directory / "greeting.md").write_text("Hello {{NAME}}, welcome to {{PLACE}}. Bye {{NAME}}.")
    (directory / "plain.md").write_text("No variables here.")
    (directory / "README.md").write_text("Not a template: {{IGNORED}}")
    return directory


@pytest.fixture
def settings(tmp_path: Path, prompts_dir: Path) -> Settings:
    """Create test settings with both providers configured and storage under tmp_path."""
    return Settings(
        environment="test",
        log_format="standard",
        moonshot_api_key="test-moonshot-key",
        moonshot_base="https://moonshot.test/v1",
        openai_api_key="test-openai-key",
        openai_base="https://openai.test/v1",
        log_file=tmp_path / "logs" / "responses.jsonl",
        prompts_dir=prompts_dir,
        usage_history_size=10,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    """Scripted upstream provider."""
    return FakeUpstream()


@pytest.fixture
def app(settings: Settings, upstream: FakeUpstream) -> FastAPI:
    """Create FastAPI app whose upstream calls go to the fake provider."""
    application = create_app(settings)
    application.state.http_transport = httpx.MockTransport(upstream.handler)
    return application


@pytest.fixture
def client(app: FastAPI):
    """Create test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
