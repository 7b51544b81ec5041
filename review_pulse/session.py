"""Session orchestrator: initialization and the analyze workflow.

State machine::

    UNINITIALIZED -> LOADING_CORPUS -> LOADING_MODEL -> READY <-> ANALYZING
                          |                 |                       |
                          +--> INIT_ERROR <-+          ANALYSIS_ERROR -> READY

``INIT_ERROR`` is terminal. The analyze trigger is enabled only in ``READY``;
calls to ``analyze`` in any other state are dropped, never queued.
"""

import random
import logging
from enum import Enum
from typing import Dict, Optional, Set, TypedDict

from langgraph.graph import StateGraph, END
from langsmith import traceable
from pydantic import BaseModel

from review_pulse.analytics import AnalyticsEmitter
from review_pulse.classifier import ClassifierAdapter
from review_pulse.classifier_providers import create_classifier_provider
from review_pulse.config import Config
from review_pulse.dataset import DatasetLoader
from review_pulse.decisions import decide_prediction
from review_pulse.errors import AnalysisError, InvalidTransition
from review_pulse.models import (
    AnalysisResult,
    AnalyticsContext,
    BusinessDecision,
    RawPrediction,
    ReviewCorpus,
    SentimentCategory,
)
from review_pulse.rendering import Renderer
from review_pulse.sentiment import categorize_prediction

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING_CORPUS = "loading_corpus"
    LOADING_MODEL = "loading_model"
    READY = "ready"
    ANALYZING = "analyzing"
    ANALYSIS_ERROR = "analysis_error"
    INIT_ERROR = "init_error"


ALLOWED_TRANSITIONS: Dict[SessionPhase, Set[SessionPhase]] = {
    SessionPhase.UNINITIALIZED: {SessionPhase.LOADING_CORPUS},
    SessionPhase.LOADING_CORPUS: {SessionPhase.LOADING_MODEL, SessionPhase.INIT_ERROR},
    SessionPhase.LOADING_MODEL: {SessionPhase.READY, SessionPhase.INIT_ERROR},
    SessionPhase.READY: {SessionPhase.ANALYZING},
    SessionPhase.ANALYZING: {SessionPhase.READY, SessionPhase.ANALYSIS_ERROR},
    SessionPhase.ANALYSIS_ERROR: {SessionPhase.READY},
    SessionPhase.INIT_ERROR: set(),
}

STATUS_LOADING_REVIEWS = "Loading reviews..."
STATUS_LOADING_MODEL = "Loading AI model..."
STATUS_READY = "Ready"
STATUS_ANALYZING = "Analyzing..."
STATUS_INIT_FAILED = "Initialization failed"


class SessionState(BaseModel):
    """Mutable state of one session. Only the orchestrator writes to it."""
    phase: SessionPhase = SessionPhase.UNINITIALIZED
    corpus: Optional[ReviewCorpus] = None
    classifier_ready: bool = False
    busy: bool = False
    last_error: Optional[str] = None


class AnalysisState(TypedDict):
    """State for the analyze workflow."""
    corpus: ReviewCorpus
    context: AnalyticsContext
    review: Optional[str]
    prediction: Optional[RawPrediction]
    sentiment: Optional[SentimentCategory]
    decision: Optional[BusinessDecision]


class SessionOrchestrator:
    """Owns the session state and drives the collaborators."""

    def __init__(
        self,
        loader: DatasetLoader,
        classifier: ClassifierAdapter,
        emitter: AnalyticsEmitter,
        renderer: Optional[Renderer] = None,
        context: Optional[AnalyticsContext] = None,
        rng: Optional[random.Random] = None,
    ):
        self.loader = loader
        self.classifier = classifier
        self.emitter = emitter
        self.renderer = renderer or Renderer()
        self.context = context or AnalyticsContext()
        self.rng = rng or random.Random()
        self.state = SessionState()

        self.workflow = self._build_workflow()

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def trigger_enabled(self) -> bool:
        return self.state.phase == SessionPhase.READY

    def _transition(self, target: SessionPhase) -> None:
        current = self.state.phase
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target.value)
        logger.debug("Session %s -> %s", current.value, target.value)
        self.state.phase = target
        self.renderer.set_trigger_enabled(self.trigger_enabled)

    # Initialization

    async def initialize(self) -> bool:
        """Load the corpus, then the model. Returns True when the session is ready."""
        if self.state.phase != SessionPhase.UNINITIALIZED:
            logger.warning("Session already initialized (%s)", self.state.phase.value)
            return self.state.phase == SessionPhase.READY

        self.renderer.hide_error()
        self._transition(SessionPhase.LOADING_CORPUS)
        self.renderer.set_status(STATUS_LOADING_REVIEWS)
        try:
            self.state.corpus = await self.loader.load()

            self._transition(SessionPhase.LOADING_MODEL)
            self.renderer.set_status(STATUS_LOADING_MODEL)
            await self.classifier.load()
            self.state.classifier_ready = True
        except Exception as e:
            self._fail_initialization(e)
            return False

        self._transition(SessionPhase.READY)
        self.renderer.set_status(STATUS_READY)
        logger.info("Session ready with %d reviews", len(self.state.corpus))
        return True

    def _fail_initialization(self, error: Exception) -> None:
        logger.error("Initialization failed: %s", error)
        self.state.last_error = f"{error}. Please reload the page."
        self._transition(SessionPhase.INIT_ERROR)
        self.renderer.set_status(STATUS_INIT_FAILED)
        self.renderer.show_error(self.state.last_error)

    # Analyze workflow

    def _build_workflow(self):
        """Build the LangGraph analyze workflow - one review per invocation."""
        workflow = StateGraph(AnalysisState)

        workflow.add_node("select_review", self._select_review)
        workflow.add_node("classify", self._classify)
        workflow.add_node("categorize", self._categorize)
        workflow.add_node("decide", self._decide)
        workflow.add_node("render", self._render)
        workflow.add_node("emit_analytics", self._emit_analytics)

        workflow.set_entry_point("select_review")
        workflow.add_edge("select_review", "classify")
        workflow.add_edge("classify", "categorize")
        workflow.add_edge("categorize", "decide")
        workflow.add_edge("decide", "render")
        workflow.add_edge("render", "emit_analytics")
        workflow.add_edge("emit_analytics", END)

        return workflow.compile()

    @traceable(name="select_review")
    async def _select_review(self, state: AnalysisState) -> AnalysisState:
        review = state["corpus"].pick(self.rng)
        self.renderer.show_review(review)
        state["review"] = review
        return state

    @traceable(name="classify")
    async def _classify(self, state: AnalysisState) -> AnalysisState:
        state["prediction"] = await self.classifier.classify(state["review"])
        return state

    @traceable(name="categorize")
    async def _categorize(self, state: AnalysisState) -> AnalysisState:
        state["sentiment"] = categorize_prediction(state["prediction"])
        return state

    @traceable(name="decide")
    async def _decide(self, state: AnalysisState) -> AnalysisState:
        state["decision"] = decide_prediction(state["prediction"])
        return state

    @traceable(name="render")
    async def _render(self, state: AnalysisState) -> AnalysisState:
        self.renderer.show_result(state["sentiment"], state["decision"])
        return state

    @traceable(name="emit_analytics")
    async def _emit_analytics(self, state: AnalysisState) -> AnalysisState:
        sentiment = state["sentiment"]
        self.emitter.emit(
            state["review"],
            sentiment.display_label,
            sentiment.confidence_score,
            state["decision"].action_code,
            state["context"],
        )
        return state

    async def analyze(self) -> Optional[AnalysisResult]:
        """Run one analysis. Returns None when dropped or failed.

        The readiness check and the switch to ANALYZING happen before the first
        await, so a second call made while a run is in flight is dropped.
        """
        if not self.trigger_enabled:
            logger.info("Analyze request dropped: session is %s", self.state.phase.value)
            return None

        self._transition(SessionPhase.ANALYZING)
        self.state.busy = True
        self.state.last_error = None
        self.renderer.hide_error()
        self.renderer.clear_result()
        self.renderer.set_loading(True)
        self.renderer.set_status(STATUS_ANALYZING)

        initial_state: AnalysisState = {
            "corpus": self.state.corpus,
            "context": self.context,
            "review": None,
            "prediction": None,
            "sentiment": None,
            "decision": None,
        }

        try:
            final_state = await self.workflow.ainvoke(initial_state, config={"recursion_limit": 15})
            return AnalysisResult(
                review=final_state["review"],
                prediction=final_state["prediction"],
                sentiment=final_state["sentiment"],
                decision=final_state["decision"],
            )
        except Exception as e:
            if isinstance(e, AnalysisError):
                logger.warning("Analysis failed: %s", e)
            else:
                logger.exception("Unexpected error during analysis")
            self._transition(SessionPhase.ANALYSIS_ERROR)
            self.state.last_error = str(e)
            self.renderer.show_error(self.state.last_error)
            return None
        finally:
            self._transition(SessionPhase.READY)
            self.state.busy = False
            self.renderer.set_loading(False)
            self.renderer.set_status(STATUS_READY)

    async def close(self) -> None:
        """Wait for detached analytics sends."""
        await self.emitter.drain()


def create_session(
    config: Config,
    renderer: Optional[Renderer] = None,
    token: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> SessionOrchestrator:
    """Wire a session from configuration."""
    loader = DatasetLoader(config.dataset.source, text_column=config.dataset.text_column)
    classifier = ClassifierAdapter(create_classifier_provider(config.classifier.model_dump()))
    emitter = AnalyticsEmitter(
        endpoint=config.analytics.endpoint,
        token=token,
        timeout=config.analytics.timeout_seconds,
    )
    context = AnalyticsContext(
        event_type=config.analytics.event,
        variant=config.analytics.variant,
        page_url=config.analytics.page_url,
    )
    return SessionOrchestrator(loader, classifier, emitter, renderer=renderer, context=context, rng=rng)
