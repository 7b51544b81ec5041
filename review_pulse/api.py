"""FastAPI interface: the single demo page and the JSON endpoints behind it."""

import os
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from review_pulse import __version__
from review_pulse.config import Config, load_config
from review_pulse.credentials import TokenStore, mask_token
from review_pulse.logging_utils import setup_logging
from review_pulse.monitoring import setup_langsmith
from review_pulse.rendering import ViewState, ViewStateRenderer
from review_pulse.session import SessionOrchestrator, create_session

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "REVIEW_PULSE_CONFIG"


class TokenRequest(BaseModel):
    """Request model for saving the analytics token."""
    token: str


class TokenResponse(BaseModel):
    """Response model for token status."""
    configured: bool
    masked: str
    analytics_enabled: bool


class StateResponse(BaseModel):
    """Response model for the page state."""
    phase: str
    view: ViewState


class AnalyzeResponse(BaseModel):
    """Response model for an analyze request."""
    success: bool
    phase: str
    view: ViewState
    message: Optional[str] = None


def create_app(
    config: Optional[Config] = None,
    session: Optional[SessionOrchestrator] = None,
    token_store: Optional[TokenStore] = None,
) -> FastAPI:
    """Build the app. Without a session one is wired from configuration at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or load_config(os.getenv(CONFIG_ENV_VAR, "config.yaml"))
        store = token_store or TokenStore(cfg.analytics.credentials_path)
        sess = session
        if sess is None:
            setup_logging(cfg.logging.level)
            setup_langsmith()
            sess = create_session(
                cfg,
                renderer=ViewStateRenderer(cfg.business),
                token=store.get(),
            )
        app.state.config = cfg
        app.state.token_store = store
        app.state.session = sess

        # Serve the page while loading so it can show the loading phases
        init_task = asyncio.create_task(sess.initialize())
        app.state.init_task = init_task
        yield
        if not init_task.done():
            init_task.cancel()
        await asyncio.gather(init_task, return_exceptions=True)
        await sess.close()

    app = FastAPI(title="Review Pulse API", version=__version__, lifespan=lifespan)

    def _session(request: Request) -> SessionOrchestrator:
        return request.app.state.session

    def _view(sess: SessionOrchestrator) -> ViewState:
        renderer = sess.renderer
        if isinstance(renderer, ViewStateRenderer):
            return renderer.state.model_copy()
        return ViewState(
            status=sess.phase.value,
            trigger_enabled=sess.trigger_enabled,
            error=sess.state.last_error,
        )

    def _token_status(request: Request) -> TokenResponse:
        token = request.app.state.token_store.get()
        return TokenResponse(
            configured=bool(token),
            masked=mask_token(token),
            analytics_enabled=_session(request).emitter.enabled,
        )

    @app.get("/", response_class=HTMLResponse)
    async def index():
        """The demo page."""
        return INDEX_HTML

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/state", response_model=StateResponse)
    async def get_state(request: Request):
        """Current page state."""
        sess = _session(request)
        return StateResponse(phase=sess.phase.value, view=_view(sess))

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(request: Request):
        """Analyze one random review."""
        sess = _session(request)
        if not sess.trigger_enabled:
            raise HTTPException(
                status_code=409,
                detail=f"Analyze is disabled while the session is {sess.phase.value}",
            )

        result = await sess.analyze()
        return AnalyzeResponse(
            success=result is not None,
            phase=sess.phase.value,
            view=_view(sess),
            message=sess.state.last_error,
        )

    @app.get("/token", response_model=TokenResponse)
    async def get_token(request: Request):
        """Whether an analytics token is stored."""
        return _token_status(request)

    @app.put("/token", response_model=TokenResponse)
    async def put_token(body: TokenRequest, request: Request):
        """Save the analytics token."""
        try:
            request.app.state.token_store.set(body.token)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        _session(request).emitter.token = request.app.state.token_store.get()
        return _token_status(request)

    @app.delete("/token", response_model=TokenResponse)
    async def delete_token(request: Request):
        """Forget the analytics token."""
        request.app.state.token_store.clear()
        _session(request).emitter.token = request.app.state.token_store.get()
        return _token_status(request)

    return app


INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Review Pulse</title>
<style>
body { font-family: sans-serif; max-width: 720px; margin: 2rem auto; }
#error { color: #b91c1c; display: none; }
#result { display: none; border: 1px solid #ddd; padding: 1rem; margin-top: 1rem; }
#actionButton { color: #fff; border: none; padding: .5rem 1rem; }
</style>
</head>
<body>
<h1>Review Pulse</h1>
<p id="status">Loading...</p>
<p id="error"></p>
<label>Analytics token <input id="token" type="password"></label>
<button id="saveToken">Save</button>
<p><button id="analyzeButton" disabled>Analyze random review</button> <span id="loading" hidden>Analyzing...</span></p>
<blockquote id="review"></blockquote>
<div id="result">
  <h2 id="label"></h2>
  <p id="confidence"></p>
  <p id="message"></p>
  <button id="actionButton"></button>
</div>
<script>
const ICONS = {positive: "\\u{1F44D}", negative: "\\u{1F44E}", neutral: "\\u{1F610}"};
const $ = (id) => document.getElementById(id);
let action = null;

function render(view) {
  $("status").textContent = view.status;
  $("analyzeButton").disabled = !view.trigger_enabled;
  $("loading").hidden = !view.loading;
  $("review").textContent = view.review || "";
  $("error").textContent = view.error || "";
  $("error").style.display = view.error ? "block" : "none";
  if (view.sentiment && view.decision) {
    $("result").style.display = "block";
    $("label").textContent = ICONS[view.sentiment.category] + " " + view.sentiment.display_label;
    $("confidence").textContent = (view.sentiment.confidence_score * 100).toFixed(1) + "% confidence";
    $("message").textContent = view.decision.message;
    $("actionButton").textContent = view.decision.button_label;
    $("actionButton").style.background = view.decision.color;
    action = view.action;
  } else {
    $("result").style.display = "none";
  }
}

async function refresh() {
  const res = await fetch("/state");
  const body = await res.json();
  render(body.view);
  if (body.phase.startsWith("loading") || body.phase === "uninitialized") setTimeout(refresh, 1000);
}

$("analyzeButton").addEventListener("click", async () => {
  $("analyzeButton").disabled = true;
  $("loading").hidden = false;
  const res = await fetch("/analyze", {method: "POST"});
  const body = await res.json();
  if (body.view) render(body.view); else refresh();
});

$("actionButton").addEventListener("click", () => {
  if (!action) return;
  if (action.kind === "alert") alert(action.text);
  else window.open(action.url, "_blank");
});

$("saveToken").addEventListener("click", async () => {
  const token = $("token").value.trim();
  await fetch("/token", {
    method: token ? "PUT" : "DELETE",
    headers: {"Content-Type": "application/json"},
    body: token ? JSON.stringify({token}) : undefined,
  });
  $("token").value = "";
});

refresh();
</script>
</body>
</html>
"""


app = create_app()
