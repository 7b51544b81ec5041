"""Async sentiment backends: local transformers pipeline, OpenAI and Google."""

import os
import json
import asyncio
from typing import Optional, Dict, Any, List

from openai import AsyncOpenAI
import google.generativeai as genai
from langsmith import traceable

SENTIMENT_PROMPT = (
    "You are a sentiment classifier for customer product reviews.\n"
    "Classify the overall sentiment of the review. Return ONLY valid JSON, no other text.\n"
    'Schema: {"label": "POSITIVE|NEGATIVE", "score": 0.0-1.0}\n'
    "score is your confidence in the label.\n\n"
    'Review:\n"""\n{review}\n"""'
)


def extract_json(raw: str) -> Optional[Dict[str, Any]]:
    """Tolerant JSON extraction: handles code fences and trailing text."""
    s = raw.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[-1] if "\n" in s else s[3:]
        if s.endswith("```"):
            s = s[:-3]
        s = s.strip()
    start = s.find("{")
    end = s.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        return json.loads(s[start:end + 1])
    except json.JSONDecodeError:
        return None


def _ranked_from_llm(raw: str) -> List[Dict[str, Any]]:
    parsed = extract_json(raw or "")
    if not parsed or "label" not in parsed:
        raise ValueError(f"Unparseable sentiment response: {raw!r}")
    return [{"label": parsed["label"], "score": float(parsed.get("score", 0.0))}]


class AsyncClassifierProvider:
    """Base class for async sentiment providers.

    ``classify`` returns the backend's ranked list of ``{"label", "score"}``
    entries, best first.
    """

    def __init__(self, name: str, model: str, temperature: float = 0.0, max_tokens: int = 50):
        self.name = name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def load(self) -> None:
        """Prepare the backend. Called once before the first ``classify``."""

    @traceable(name="async_classify_review")
    async def classify(self, text: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class TransformersProvider(AsyncClassifierProvider):
    """Local Hugging Face text-classification pipeline."""

    def __init__(self, model: str, task: str = "text-classification", **kwargs):
        super().__init__("transformers", model, **kwargs)
        self.task = task
        self._pipeline = None

    async def load(self) -> None:
        from transformers import pipeline

        # Model download and weight loading are blocking
        loop = asyncio.get_running_loop()
        self._pipeline = await loop.run_in_executor(
            None,
            lambda: pipeline(self.task, model=self.model)
        )

    @traceable(name="transformers_classify")
    async def classify(self, text: str) -> List[Dict[str, Any]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self._pipeline(text, truncation=True)
        )


class AsyncOpenAIProvider(AsyncClassifierProvider):
    """OpenAI chat model prompted for a JSON sentiment verdict."""

    def __init__(self, model: str, **kwargs):
        super().__init__("openai", model, **kwargs)
        self.client = None

    async def load(self) -> None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not found in environment variables")
        self.client = AsyncOpenAI(api_key=api_key)

    @traceable(name="async_openai_classify")
    async def classify(self, text: str) -> List[Dict[str, Any]]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": "You classify the sentiment of customer reviews."},
                {"role": "user", "content": SENTIMENT_PROMPT.replace("{review}", text)}
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        return _ranked_from_llm(response.choices[0].message.content)


class AsyncGoogleProvider(AsyncClassifierProvider):
    """Google Gemini model prompted for a JSON sentiment verdict."""

    def __init__(self, model: str, **kwargs):
        super().__init__("google", model, **kwargs)
        self.client = None

    async def load(self) -> None:
        api_key = os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise ValueError("GOOGLE_API_KEY not found in environment variables")
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(self.model)

    @traceable(name="async_google_classify")
    async def classify(self, text: str) -> List[Dict[str, Any]]:
        generation_config = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
        }

        # genai has no native async support
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: self.client.generate_content(
                SENTIMENT_PROMPT.replace("{review}", text),
                generation_config=generation_config
            )
        )
        return _ranked_from_llm(response.text)


def create_classifier_provider(config: Dict[str, Any]) -> AsyncClassifierProvider:
    """Factory function to create an async sentiment provider."""
    provider_type = config["provider"].lower()
    model = config["model"]
    temperature = config.get("temperature", 0.0)
    max_tokens = config.get("max_tokens", 50)

    if provider_type == "transformers":
        return TransformersProvider(
            model,
            task=config.get("task", "text-classification"),
            temperature=temperature,
            max_tokens=max_tokens,
        )
    elif provider_type == "openai":
        return AsyncOpenAIProvider(model, temperature=temperature, max_tokens=max_tokens)
    elif provider_type == "google":
        return AsyncGoogleProvider(model, temperature=temperature, max_tokens=max_tokens)
    else:
        raise ValueError(f"Unknown provider: {provider_type}")
