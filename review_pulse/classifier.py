"""Classifier adapter: readiness gating and a uniform prediction type."""

import logging
import time
from typing import Any, Dict, List

from pydantic import ValidationError

from review_pulse.classifier_providers import AsyncClassifierProvider
from review_pulse.errors import InferenceFailure, ModelLoadError, ModelNotReady
from review_pulse.models import RawPrediction

logger = logging.getLogger(__name__)


class ClassifierAdapter:
    """Wraps one sentiment provider behind ``load`` / ``classify``."""

    def __init__(self, provider: AsyncClassifierProvider):
        self.provider = provider
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def load(self) -> None:
        logger.info("Loading %s model %s", self.provider.name, self.provider.model)
        t0 = time.monotonic()
        try:
            await self.provider.load()
        except Exception as e:
            raise ModelLoadError(f"Failed to load sentiment model: {e}") from e
        self._ready = True
        logger.info("Model ready in %.1fs", time.monotonic() - t0)

    async def classify(self, text: str) -> RawPrediction:
        """Classify one review and return the top-ranked prediction."""
        if not self._ready:
            raise ModelNotReady("Sentiment model is not loaded yet")

        try:
            ranked = await self.provider.classify(text)
        except Exception as e:
            raise InferenceFailure(f"Sentiment analysis failed: {e}") from e

        return self._top_prediction(ranked)

    @staticmethod
    def _top_prediction(ranked: List[Dict[str, Any]]) -> RawPrediction:
        if not ranked:
            raise InferenceFailure("Sentiment analysis returned no prediction")
        top = ranked[0]
        try:
            return RawPrediction(label=top["label"], score=top["score"])
        except (KeyError, TypeError, ValidationError) as e:
            raise InferenceFailure(f"Unusable sentiment prediction {top!r}: {e}") from e
