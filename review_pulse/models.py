"""Data models for reviews, predictions, decisions and analytics events."""

import json
import random
from enum import Enum
from typing import Optional, Dict, Tuple, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewCorpus(BaseModel):
    """Ordered, immutable, non-empty set of candidate review texts."""
    model_config = ConfigDict(frozen=True)

    reviews: Tuple[str, ...]
    source: Optional[str] = None

    @field_validator("reviews")
    @classmethod
    def _non_empty(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("corpus must contain at least one review")
        return value

    def __len__(self) -> int:
        return len(self.reviews)

    def pick(self, rng: Optional[random.Random] = None) -> str:
        """Pick one review uniformly at random."""
        return (rng or random).choice(self.reviews)


class RawPrediction(BaseModel):
    """Top-ranked output of the sentiment classifier."""
    model_config = ConfigDict(frozen=True)

    label: str
    score: float = Field(ge=0.0, le=1.0)

    @field_validator("label")
    @classmethod
    def _upper_label(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("label must not be empty")
        return value


class SentimentKind(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SentimentCategory(BaseModel):
    """Display-facing sentiment derived from a raw prediction."""
    model_config = ConfigDict(frozen=True)

    category: SentimentKind
    display_label: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    icon_class: str

    @property
    def confidence_text(self) -> str:
        return f"{self.confidence_score * 100:.1f}% confidence"


class ActionCode(str, Enum):
    OFFER_COUPON = "OFFER_COUPON"
    REQUEST_FEEDBACK = "REQUEST_FEEDBACK"
    ASK_REFERRAL = "ASK_REFERRAL"


class BusinessDecision(BaseModel):
    """Business action chosen for a review.

    Carries data only. Renderers perform the side effect that belongs to
    ``action_code`` (show a coupon, open the feedback form, ask for a referral).
    """
    model_config = ConfigDict(frozen=True)

    action_code: ActionCode
    normalized_score: float = Field(ge=0.0, le=1.0)
    message: str
    color: str
    button_label: str


class AnalysisResult(BaseModel):
    """Outcome of one successful analysis run."""
    review: str
    prediction: RawPrediction
    sentiment: SentimentCategory
    decision: BusinessDecision


class AnalyticsContext(BaseModel):
    """Where an analytics event comes from."""
    event_type: str = "sentiment_analysis"
    variant: str = "B"
    page_url: Optional[str] = None
    user_id: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class AnalyticsEvent(BaseModel):
    """One analytics record, serialized to the collector's field names."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str
    variant: str
    user_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    review_text: str
    sentiment_label: str
    sentiment_confidence: float
    action_code: Optional[ActionCode] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire format expected by the collection endpoint."""
        ts = self.timestamp.astimezone(timezone.utc)
        payload: Dict[str, Any] = {
            "ts_iso": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "event": self.event_type,
            "variant": self.variant,
            "userId": self.user_id,
            "meta": json.dumps(self.metadata, default=str),
            "review": self.review_text,
            "sentiment_label": self.sentiment_label,
            "sentiment_confidence": self.sentiment_confidence,
        }
        if self.action_code is not None:
            payload["action_taken"] = self.action_code.value
        return payload
