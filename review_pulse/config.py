"""Configuration management for the review sentiment demo."""

import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field


class DatasetConfig(BaseModel):
    """Where candidate reviews come from."""
    source: str = "reviews_test.tsv"
    text_column: str = "text"


class ClassifierConfig(BaseModel):
    """Sentiment backend selection."""
    provider: str = "transformers"
    model: str = "distilbert-base-uncased-finetuned-sst-2-english"
    task: str = "text-classification"
    temperature: float = 0.0
    max_tokens: int = 50


class AnalyticsConfig(BaseModel):
    """Analytics collection endpoint and event defaults."""
    endpoint: Optional[str] = None
    event: str = "sentiment_analysis"
    variant: str = "B"
    page_url: Optional[str] = None
    timeout_seconds: Optional[float] = None
    credentials_path: str = "~/.review_pulse/credentials.yaml"


class BusinessConfig(BaseModel):
    """Targets for the business actions."""
    coupon_code: str = "COMEBACK50"
    feedback_url: str = "https://example.com/feedback"
    referral_url: str = "https://example.com/refer"


class ServerConfig(BaseModel):
    """Web server settings."""
    host: str = "127.0.0.1"
    port: int = 8000


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "INFO"


class Config(BaseModel):
    """Main configuration model."""
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    business: BusinessConfig = Field(default_factory=BusinessConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file."""
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f) or {}

    return Config(**config_data)


def save_config(config: Config, config_path: str = "config.yaml") -> None:
    """Save configuration to YAML file."""
    config_file = Path(config_path)

    with open(config_file, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
