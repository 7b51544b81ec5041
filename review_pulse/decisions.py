"""Business decision engine.

Turns a classifier result into one of three engagement actions:

* ``OFFER_COUPON``     normalized score <= 0.4 (customer at risk of churning)
* ``REQUEST_FEEDBACK`` 0.4 < normalized score < 0.7 (ambiguous experience)
* ``ASK_REFERRAL``     normalized score >= 0.7 (satisfied customer)

The normalized score puts both labels on a single scale where 1.0 is the most
favorable review and 0.0 the least favorable one.
"""

from review_pulse.models import ActionCode, BusinessDecision, RawPrediction

COUPON_MAX_SCORE = 0.4
REFERRAL_MIN_SCORE = 0.7

_PRESENTATION = {
    ActionCode.OFFER_COUPON: {
        "message": "Churn risk detected. Offer the customer a discount coupon.",
        "color": "#dc2626",
        "button_label": "Send Coupon",
    },
    ActionCode.REQUEST_FEEDBACK: {
        "message": "Mixed experience. Ask the customer for detailed feedback.",
        "color": "#d97706",
        "button_label": "Request Feedback",
    },
    ActionCode.ASK_REFERRAL: {
        "message": "Happy customer. Invite them to refer a friend.",
        "color": "#16a34a",
        "button_label": "Ask for Referral",
    },
}


def normalize_score(label: str, score: float) -> float:
    """Project ``(label, score)`` onto a 0..1 favorability scale."""
    label = label.upper()
    if label == "POSITIVE":
        return score
    if label == "NEGATIVE":
        return 1.0 - score
    return 0.5


def select_action(normalized_score: float) -> ActionCode:
    if normalized_score <= COUPON_MAX_SCORE:
        return ActionCode.OFFER_COUPON
    if normalized_score < REFERRAL_MIN_SCORE:
        return ActionCode.REQUEST_FEEDBACK
    return ActionCode.ASK_REFERRAL


def decide(label: str, score: float) -> BusinessDecision:
    """Pick the business action for a classifier result."""
    normalized = normalize_score(label, score)
    action = select_action(normalized)
    return BusinessDecision(
        action_code=action,
        normalized_score=normalized,
        **_PRESENTATION[action],
    )


def decide_prediction(prediction: RawPrediction) -> BusinessDecision:
    return decide(prediction.label, prediction.score)
