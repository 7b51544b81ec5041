"""Tests for the classifier adapter and the sentiment providers."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from review_pulse.classifier import ClassifierAdapter
from review_pulse.classifier_providers import (
    AsyncOpenAIProvider,
    TransformersProvider,
    create_classifier_provider,
    extract_json,
)
from review_pulse.errors import InferenceFailure, ModelLoadError, ModelNotReady


def test_classify_before_load_raises_model_not_ready(fake_provider):
    provider = fake_provider()
    adapter = ClassifierAdapter(provider)
    with pytest.raises(ModelNotReady):
        asyncio.run(adapter.classify("hello"))
    assert provider.calls == []


def test_classify_returns_top_ranked_entry(fake_provider):
    provider = fake_provider(ranked=[
        {"label": "NEGATIVE", "score": 0.8},
        {"label": "POSITIVE", "score": 0.2},
    ])
    adapter = ClassifierAdapter(provider)

    async def scenario():
        await adapter.load()
        return await adapter.classify("meh")

    prediction = asyncio.run(scenario())
    assert adapter.ready
    assert prediction.label == "NEGATIVE"
    assert prediction.score == 0.8
    assert provider.calls == ["meh"]


def test_backend_error_is_wrapped(fake_provider):
    adapter = ClassifierAdapter(fake_provider(classify_error=RuntimeError("CUDA out of memory")))

    async def scenario():
        await adapter.load()
        await adapter.classify("text")

    with pytest.raises(InferenceFailure, match="CUDA out of memory") as exc_info:
        asyncio.run(scenario())
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.parametrize(
    "ranked",
    [
        [],
        [{"label": "POSITIVE"}],
        [{"label": "POSITIVE", "score": 1.7}],
        [{"label": "", "score": 0.5}],
    ],
)
def test_unusable_output_is_inference_failure(fake_provider, ranked):
    adapter = ClassifierAdapter(fake_provider(ranked=ranked))

    async def scenario():
        await adapter.load()
        await adapter.classify("text")

    with pytest.raises(InferenceFailure):
        asyncio.run(scenario())


def test_load_failure_is_model_load_error(fake_provider):
    adapter = ClassifierAdapter(fake_provider(load_error=OSError("model not found")))
    with pytest.raises(ModelLoadError, match="model not found"):
        asyncio.run(adapter.load())
    assert not adapter.ready


def test_transformers_provider_calls_pipeline_with_truncation():
    provider = TransformersProvider("some-model")
    provider._pipeline = MagicMock(return_value=[{"label": "POSITIVE", "score": 0.99}])

    ranked = asyncio.run(provider.classify("Lovely"))

    provider._pipeline.assert_called_once_with("Lovely", truncation=True)
    assert ranked == [{"label": "POSITIVE", "score": 0.99}]


def test_openai_provider_parses_json_verdict():
    provider = AsyncOpenAIProvider("gpt-4o-mini")
    message = SimpleNamespace(content=json.dumps({"label": "negative", "score": 0.87}))
    provider.client = MagicMock()
    provider.client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
    )

    ranked = asyncio.run(provider.classify("Awful"))

    assert ranked == [{"label": "negative", "score": 0.87}]
    kwargs = provider.client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert "Awful" in kwargs["messages"][1]["content"]


def test_openai_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    adapter = ClassifierAdapter(AsyncOpenAIProvider("gpt-4o-mini"))
    with pytest.raises(ModelLoadError, match="OPENAI_API_KEY"):
        asyncio.run(adapter.load())


def test_extract_json_handles_fences_and_trailing_text():
    raw = '```json\n{"label": "POSITIVE", "score": 0.9}\n```'
    assert extract_json(raw) == {"label": "POSITIVE", "score": 0.9}
    assert extract_json('Sure! {"label": "NEGATIVE", "score": 0.6} Hope that helps') == {
        "label": "NEGATIVE",
        "score": 0.6,
    }
    assert extract_json("no json here") is None


def test_factory_builds_known_providers():
    provider = create_classifier_provider({"provider": "transformers", "model": "m"})
    assert isinstance(provider, TransformersProvider)
    assert provider.task == "text-classification"
    assert create_classifier_provider({"provider": "OpenAI", "model": "m"}).name == "openai"
    assert create_classifier_provider({"provider": "google", "model": "m"}).name == "google"


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider"):
        create_classifier_provider({"provider": "vader", "model": "m"})
