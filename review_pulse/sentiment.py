"""Map raw classifier output to the sentiment shown to the viewer."""

from review_pulse.models import RawPrediction, SentimentCategory, SentimentKind

CONFIDENCE_THRESHOLD = 0.5

ICON_CLASSES = {
    SentimentKind.POSITIVE: "fa-thumbs-up",
    SentimentKind.NEGATIVE: "fa-thumbs-down",
    SentimentKind.NEUTRAL: "fa-face-meh",
}


def categorize(label: str, score: float) -> SentimentCategory:
    """Return the display category for a ``(label, score)`` pair.

    A prediction is only shown as positive or negative when the model is more
    than 50% sure. Everything else, including low-confidence NEGATIVE
    predictions, is shown as neutral.
    """
    label = label.upper()
    if label == "POSITIVE" and score > CONFIDENCE_THRESHOLD:
        kind = SentimentKind.POSITIVE
    elif label == "NEGATIVE" and score > CONFIDENCE_THRESHOLD:
        kind = SentimentKind.NEGATIVE
    else:
        kind = SentimentKind.NEUTRAL

    return SentimentCategory(
        category=kind,
        display_label=kind.value.upper(),
        confidence_score=score,
        icon_class=ICON_CLASSES[kind],
    )


def categorize_prediction(prediction: RawPrediction) -> SentimentCategory:
    return categorize(prediction.label, prediction.score)
