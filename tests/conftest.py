"""Shared fixtures: fake sentiment backend, recording renderer, session wiring."""

import asyncio
import random
import threading
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from review_pulse.analytics import AnalyticsEmitter
from review_pulse.classifier import ClassifierAdapter
from review_pulse.classifier_providers import AsyncClassifierProvider
from review_pulse.dataset import DatasetLoader
from review_pulse.models import AnalyticsContext
from review_pulse.rendering import Renderer
from review_pulse.session import SessionOrchestrator

REVIEWS = [
    "Great product, works perfectly.",
    "Broke after a week, very disappointed.",
    "It is fine I guess.",
]


class FakeProvider(AsyncClassifierProvider):
    """Deterministic backend; can fail on load or classify, or block on a gate.

    ``gate`` holds ``classify`` inside the event loop; ``load_gate`` is a
    threading event so another thread (a test client) can release ``load``.
    """

    def __init__(
        self,
        ranked: Optional[List[Dict[str, Any]]] = None,
        load_error: Optional[Exception] = None,
        classify_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
        load_gate: Optional[threading.Event] = None,
    ):
        super().__init__("fake", "fake-model")
        self.ranked = ranked if ranked is not None else [{"label": "POSITIVE", "score": 0.95}]
        self.load_error = load_error
        self.classify_error = classify_error
        self.gate = gate
        self.load_gate = load_gate
        self.load_calls = 0
        self.calls: List[str] = []

    async def load(self) -> None:
        self.load_calls += 1
        if self.load_gate is not None:
            await asyncio.get_running_loop().run_in_executor(None, self.load_gate.wait)
        if self.load_error:
            raise self.load_error

    async def classify(self, text: str) -> List[Dict[str, Any]]:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.classify_error:
            raise self.classify_error
        return self.ranked


class RecordingRenderer(Renderer):
    """Keeps every renderer call for assertions."""

    def __init__(self):
        self.events: List[tuple] = []
        self.trigger_enabled = False
        self.status = ""
        self.error: Optional[str] = None
        self.result = None
        self.actions = []

    def set_status(self, text):
        self.status = text
        self.events.append(("status", text))

    def set_trigger_enabled(self, enabled):
        self.trigger_enabled = enabled
        self.events.append(("trigger", enabled))

    def set_loading(self, loading):
        self.events.append(("loading", loading))

    def show_review(self, review):
        self.events.append(("review", review))

    def clear_result(self):
        self.result = None
        self.events.append(("clear_result",))

    def show_result(self, sentiment, decision):
        self.result = (sentiment, decision)
        self.events.append(("result", sentiment.category.value, decision.action_code.value))
        self.dispatch_action(decision)

    def show_error(self, message):
        self.error = message
        self.events.append(("error", message))

    def hide_error(self):
        self.error = None

    def dispatch_action(self, decision):
        self.actions.append(decision.action_code)


@pytest.fixture
def reviews_tsv(tmp_path):
    path = tmp_path / "reviews.tsv"
    path.write_text("text\tlabel\n" + "".join(f"{r}\t1\n" for r in REVIEWS), encoding="utf-8")
    return path


@pytest.fixture
def review_texts():
    return list(REVIEWS)


@pytest.fixture
def fake_provider():
    """Factory for fake sentiment backends."""
    return FakeProvider


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def http_session():
    return MagicMock()


@pytest.fixture
def make_session(reviews_tsv, renderer, http_session):
    """Build a session around a fake provider and a mocked HTTP client."""

    def _make(
        provider: Optional[FakeProvider] = None,
        source: Optional[str] = None,
        endpoint: Optional[str] = "https://collector.example.com/exec",
        token: Optional[str] = "secret-token",
        error_sink=None,
    ) -> SessionOrchestrator:
        kwargs = {"error_sink": error_sink} if error_sink else {}
        emitter = AnalyticsEmitter(endpoint=endpoint, token=token, session=http_session, **kwargs)
        return SessionOrchestrator(
            loader=DatasetLoader(source or str(reviews_tsv)),
            classifier=ClassifierAdapter(provider or FakeProvider()),
            emitter=emitter,
            renderer=renderer,
            context=AnalyticsContext(page_url="http://localhost:8000/"),
            rng=random.Random(7),
        )

    return _make
