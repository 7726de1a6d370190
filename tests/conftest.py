from __future__ import annotations

import pytest

from codetester.client import TestClient
from codetester.config import HarnessConfig

from toy_service import ToyLanguageService


@pytest.fixture
def config(tmp_path) -> HarnessConfig:
    return HarnessConfig(
        root_dir=tmp_path,
        request_timeout=2.0,
        worksheet_timeout=5.0,
        cancel_timeout=2.0,
    )


@pytest.fixture
def client() -> TestClient:
    return TestClient()


@pytest.fixture
def service(client):
    svc = ToyLanguageService(client)
    yield svc
    svc.shutdown()
