"""Renderers that show the session to a viewer.

The session talks to a renderer through a handful of calls (status text, trigger
enabled flag, loading indicator, review text, result, error). Business actions
are data; each renderer performs the action that matches ``action_code``.
"""

import webbrowser
from typing import Optional, Dict, Any

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from review_pulse.config import BusinessConfig
from review_pulse.models import ActionCode, BusinessDecision, SentimentCategory, SentimentKind

ICONS = {
    SentimentKind.POSITIVE: "👍",
    SentimentKind.NEGATIVE: "👎",
    SentimentKind.NEUTRAL: "😐",
}


class Renderer:
    """No-op renderer. Subclasses override what they can display."""

    def set_status(self, text: str) -> None:
        pass

    def set_trigger_enabled(self, enabled: bool) -> None:
        pass

    def set_loading(self, loading: bool) -> None:
        pass

    def show_review(self, review: str) -> None:
        pass

    def clear_result(self) -> None:
        pass

    def show_result(self, sentiment: SentimentCategory, decision: BusinessDecision) -> None:
        pass

    def show_error(self, message: str) -> None:
        pass

    def hide_error(self) -> None:
        pass

    def dispatch_action(self, decision: BusinessDecision) -> None:
        pass


class ViewState(BaseModel):
    """Everything the single page displays."""
    status: str = ""
    trigger_enabled: bool = False
    loading: bool = False
    review: Optional[str] = None
    sentiment: Optional[SentimentCategory] = None
    decision: Optional[BusinessDecision] = None
    action: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def action_payload(decision: BusinessDecision, business: BusinessConfig) -> Dict[str, Any]:
    """What the page should do when the action button is pressed."""
    if decision.action_code == ActionCode.OFFER_COUPON:
        return {"kind": "alert", "text": f"Coupon {business.coupon_code} sent to the customer."}
    if decision.action_code == ActionCode.REQUEST_FEEDBACK:
        return {"kind": "open_url", "url": business.feedback_url}
    return {"kind": "open_url", "url": business.referral_url}


class ViewStateRenderer(Renderer):
    """Records the page state; the web page polls it as JSON."""

    def __init__(self, business: Optional[BusinessConfig] = None):
        self.business = business or BusinessConfig()
        self.state = ViewState()

    def set_status(self, text: str) -> None:
        self.state.status = text

    def set_trigger_enabled(self, enabled: bool) -> None:
        self.state.trigger_enabled = enabled

    def set_loading(self, loading: bool) -> None:
        self.state.loading = loading

    def show_review(self, review: str) -> None:
        self.state.review = review

    def clear_result(self) -> None:
        self.state.sentiment = None
        self.state.decision = None
        self.state.action = None

    def show_result(self, sentiment: SentimentCategory, decision: BusinessDecision) -> None:
        self.state.sentiment = sentiment
        self.state.decision = decision
        self.dispatch_action(decision)

    def show_error(self, message: str) -> None:
        self.state.error = message

    def hide_error(self) -> None:
        self.state.error = None

    def dispatch_action(self, decision: BusinessDecision) -> None:
        # The browser runs the action when the button is clicked
        self.state.action = action_payload(decision, self.business)


class ConsoleRenderer(Renderer):
    """Terminal output with rich."""

    def __init__(
        self,
        console: Optional[Console] = None,
        business: Optional[BusinessConfig] = None,
        open_links: bool = False,
    ):
        self.console = console or Console()
        self.business = business or BusinessConfig()
        self.open_links = open_links

    def set_status(self, text: str) -> None:
        self.console.print(f"[blue]{text}[/blue]")

    def show_review(self, review: str) -> None:
        self.console.print(Panel(review, title="Review", border_style="cyan"))

    def show_result(self, sentiment: SentimentCategory, decision: BusinessDecision) -> None:
        table = Table(title="Analysis")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Sentiment", f"{ICONS[sentiment.category]} {sentiment.display_label}")
        table.add_row("Confidence", sentiment.confidence_text)
        table.add_row("Normalized Score", f"{decision.normalized_score:.2f}")
        table.add_row("Action", decision.action_code.value)

        self.console.print(table)
        self.dispatch_action(decision)

    def show_error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def dispatch_action(self, decision: BusinessDecision) -> None:
        self.console.print(
            f"[bold {decision.color}]{decision.button_label}:[/] {decision.message}"
        )
        action = action_payload(decision, self.business)
        if action["kind"] == "alert":
            self.console.print(f"[yellow]→[/yellow] {action['text']}")
        else:
            self.console.print(f"[yellow]→[/yellow] {action['url']}")
            if self.open_links:
                webbrowser.open(action["url"])
