"""Tests for the FastAPI interface."""

import random
import threading
import time

import pytest
from fastapi.testclient import TestClient

from review_pulse.analytics import AnalyticsEmitter
from review_pulse.api import create_app
from review_pulse.classifier import ClassifierAdapter
from review_pulse.config import Config
from review_pulse.credentials import TOKEN_ENV_VAR, TokenStore
from review_pulse.dataset import DatasetLoader
from review_pulse.rendering import ViewStateRenderer
from review_pulse.session import SessionOrchestrator


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)


@pytest.fixture
def build_client(reviews_tsv, http_session, fake_provider, tmp_path):
    def _build(provider=None, source=None, token=None):
        config = Config()
        session = SessionOrchestrator(
            loader=DatasetLoader(source or str(reviews_tsv)),
            classifier=ClassifierAdapter(provider or fake_provider()),
            emitter=AnalyticsEmitter(
                endpoint="https://collector.example.com/exec",
                token=token,
                session=http_session,
            ),
            renderer=ViewStateRenderer(config.business),
            rng=random.Random(3),
        )
        store = TokenStore(str(tmp_path / "creds" / "credentials.yaml"))
        app = create_app(config=config, session=session, token_store=store)
        return TestClient(app)

    return _build


def wait_for_phase(client, *phases, timeout=5.0):
    """Poll /state until the session reaches one of ``phases``."""
    deadline = time.monotonic() + timeout
    while True:
        body = client.get("/state").json()
        if body["phase"] in phases or time.monotonic() > deadline:
            return body
        time.sleep(0.01)


def wait_settled(client):
    return wait_for_phase(client, "ready", "init_error")


def test_health(build_client):
    with build_client() as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_index_serves_page(build_client):
    with build_client() as client:
        response = client.get("/")
    assert response.status_code == 200
    assert "analyzeButton" in response.text


def test_state_after_startup(build_client):
    with build_client() as client:
        body = wait_settled(client)
    assert body["phase"] == "ready"
    assert body["view"]["trigger_enabled"] is True
    assert body["view"]["status"] == "Ready"


def test_loading_phase_is_visible_and_rejects_analyze(build_client, fake_provider):
    gate = threading.Event()
    provider = fake_provider(load_gate=gate)
    try:
        with build_client(provider=provider) as client:
            loading = wait_for_phase(client, "loading_model")
            rejected = client.post("/analyze")
            gate.set()
            ready = wait_settled(client)
            accepted = client.post("/analyze")
    finally:
        gate.set()

    assert loading["phase"] == "loading_model"
    assert loading["view"]["status"] == "Loading AI model..."
    assert loading["view"]["trigger_enabled"] is False
    assert rejected.status_code == 409
    assert ready["phase"] == "ready"
    assert accepted.status_code == 200


def test_analyze_returns_view(build_client, fake_provider, review_texts):
    provider = fake_provider(ranked=[{"label": "NEGATIVE", "score": 0.92}])
    with build_client(provider=provider) as client:
        wait_settled(client)
        response = client.post("/analyze")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["phase"] == "ready"
    view = body["view"]
    assert view["review"] in review_texts
    assert view["sentiment"]["category"] == "negative"
    assert view["decision"]["action_code"] == "OFFER_COUPON"
    assert view["action"] == {"kind": "alert", "text": "Coupon COMEBACK50 sent to the customer."}
    assert view["trigger_enabled"] is True


def test_analyze_failure_reports_error(build_client, fake_provider):
    provider = fake_provider(classify_error=RuntimeError("boom"))
    with build_client(provider=provider) as client:
        wait_settled(client)
        body = client.post("/analyze").json()
    assert body["success"] is False
    assert body["phase"] == "ready"
    assert "boom" in body["message"]
    assert "boom" in body["view"]["error"]


def test_analyze_rejected_after_init_failure(build_client, tmp_path):
    with build_client(source=str(tmp_path / "missing.tsv")) as client:
        state = wait_settled(client)
        response = client.post("/analyze")
    assert state["phase"] == "init_error"
    assert "Please reload" in state["view"]["error"]
    assert response.status_code == 409


def test_token_lifecycle(build_client, http_session):
    with build_client() as client:
        wait_settled(client)
        assert client.get("/token").json() == {
            "configured": False,
            "masked": "NOT SET",
            "analytics_enabled": False,
        }

        saved = client.put("/token", json={"token": "abcd1234wxyz"}).json()
        assert saved == {"configured": True, "masked": "abcd...wxyz", "analytics_enabled": True}

        client.post("/analyze")

        cleared = client.delete("/token").json()
        assert cleared["configured"] is False
        assert cleared["analytics_enabled"] is False

    http_session.post.assert_called_once()
    assert http_session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer abcd1234wxyz"


def test_blank_token_rejected(build_client):
    with build_client() as client:
        response = client.put("/token", json={"token": "   "})
    assert response.status_code == 422
