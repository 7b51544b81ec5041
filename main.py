#!/usr/bin/env python3
"""Run the review sentiment demo from a source checkout."""

import sys
import importlib.util
from pathlib import Path

from dotenv import load_dotenv

# import name -> distribution name
REQUIRED = {
    "yaml": "pyyaml",
    "click": "click",
    "pydantic": "pydantic",
    "pandas": "pandas",
    "langgraph": "langgraph",
    "fastapi": "fastapi",
}


def check_dependencies():
    """Exit with an install hint when a core dependency is missing."""
    missing = [dist for module, dist in REQUIRED.items() if importlib.util.find_spec(module) is None]
    if missing:
        print("❌ Missing required dependencies:", ", ".join(missing))
        print("\nInstall the project from the repository root:")
        print("  pip install -e .")
        sys.exit(1)


if __name__ == "__main__":
    env_path = Path(__file__).parent / ".env"
    load_dotenv(env_path if env_path.exists() else None)

    check_dependencies()
    from review_pulse.cli import cli
    cli()
