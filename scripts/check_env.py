#!/usr/bin/env python3
"""Script to check environment variables and the stored analytics token."""

import os
from pathlib import Path

from dotenv import load_dotenv

from review_pulse.config import load_config
from review_pulse.credentials import TOKEN_ENV_VAR, TokenStore, mask_token

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
    print(f"✓ Loaded .env from: {env_path}")
else:
    print(f"⚠ .env file not found at: {env_path}")
    load_dotenv()  # Try current directory

print("\nEnvironment Variables Check:")
print("=" * 50)

# All optional: which ones matter depends on classifier.provider
optional_vars = {
    "OPENAI_API_KEY": "OpenAI API key (classifier.provider=openai)",
    "GOOGLE_API_KEY": "Google API key (classifier.provider=google)",
    "LANGSMITH_API_KEY": "LangSmith API key (tracing)",
    TOKEN_ENV_VAR: "Analytics token fallback",
}

for var_name, description in optional_vars.items():
    value = os.getenv(var_name)
    if value:
        print(f"✓ {var_name}: {mask_token(value)} ({description})")
    else:
        print(f"○ {var_name}: NOT SET ({description})")

print("\n" + "=" * 50)

config_path = Path(__file__).parent.parent / "config.yaml"
try:
    config = load_config(str(config_path))
except FileNotFoundError:
    print(f"⚠ config.yaml not found at: {config_path}")
else:
    store = TokenStore(config.analytics.credentials_path)
    token = store.get()
    print(f"Dataset source: {config.dataset.source}")
    print(f"Classifier: {config.classifier.provider} / {config.classifier.model}")
    print(f"Analytics endpoint: {config.analytics.endpoint or 'NOT SET'}")
    print(f"Analytics token: {mask_token(token)} ({store.path})")
    if config.analytics.endpoint and token:
        print("✓ Analytics enabled")
    else:
        print("○ Analytics disabled (needs both endpoint and token)")
