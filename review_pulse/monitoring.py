"""LangSmith tracing for the analyze workflow."""

import os
import logging
from typing import Optional

from langsmith import Client

logger = logging.getLogger(__name__)

DEFAULT_PROJECT = "review-pulse"


def tracing_enabled() -> bool:
    return os.getenv("LANGSMITH_TRACING", "").lower() == "true"


def setup_langsmith(project: Optional[str] = None) -> Optional[Client]:
    """Turn on tracing when a LangSmith key is present.

    Returns the client, or None when tracing stays off. The ``@traceable``
    workflow nodes and providers are no-ops in that case.
    """
    api_key = os.getenv("LANGSMITH_API_KEY")
    if not api_key:
        logger.debug("LANGSMITH_API_KEY not set, tracing disabled")
        return None

    api_url = os.getenv("LANGSMITH_ENDPOINT", "https://api.smith.langchain.com")
    os.environ["LANGSMITH_TRACING"] = "true"
    os.environ["LANGSMITH_ENDPOINT"] = api_url
    os.environ.setdefault("LANGSMITH_PROJECT", project or DEFAULT_PROJECT)

    logger.info("LangSmith tracing to project %s", os.environ["LANGSMITH_PROJECT"])
    return Client(api_key=api_key, api_url=api_url)
