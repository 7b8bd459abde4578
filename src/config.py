# src/config.py
import yaml
import os
from pathlib import Path
from dotenv import load_dotenv
import logging
import sys
from typing import Any

from src.constants import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LIMIT,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TEMPERATURE,
    DEFAULT_LLM_TIMEOUT,
    DEFAULT_TEXT_THRESHOLD,
    DEFAULT_THRESHOLD,
    MAX_CONTEXT_CHARS,
    STRONG_MATCH_CUTOFF,
)

load_dotenv(override=True)

# ENV VARIABLES
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()

MONGO_URI = os.getenv("MONGO_URI", "").strip()
MONGO_HOST = os.getenv("MONGO_HOST", "localhost").strip()
MONGO_PORT = int(os.getenv("MONGO_PORT", 27017))
MONGO_USERNAME = os.getenv("MONGO_USERNAME", "").strip()
MONGO_PASSWORD = os.getenv("MONGO_PASSWORD", "").strip()
MONGO_DATABASE = os.getenv("MONGO_DATABASE", "acceleraqa_rag").strip()
MONGO_PARAMS = os.getenv("MONGO_PARAMS", "?authSource=admin").strip()

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "").strip()
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256").strip()
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "").strip()

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0").strip()
SERVER_PORT = int(os.getenv("SERVER_PORT", 8000))

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
]


def get_mongodb_uri() -> str:
    """Build the MongoDB connection string from the environment."""
    if MONGO_URI:
        return MONGO_URI
    if MONGO_USERNAME and MONGO_PASSWORD:
        return (
            f"mongodb://{MONGO_USERNAME}:{MONGO_PASSWORD}@{MONGO_HOST}:{MONGO_PORT}"
            f"/{MONGO_DATABASE}{MONGO_PARAMS}"
        )
    return f"mongodb://{MONGO_HOST}:{MONGO_PORT}/{MONGO_DATABASE}"


def configure_logging(level=logging.INFO):
    """Configure logging for the entire application."""
    # Check if already configured to avoid duplicate handlers
    if not logging.getLogger().hasHandlers():
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.addHandler(console_handler)


class Config:
    def __init__(self, config_path: str | Path | None = None):
        config_path = config_path or CONFIG_PATH
        with open(config_path, "r") as file:
            self.config = yaml.safe_load(file) or {}

    def get(self, *keys, default=None) -> Any:
        """Generalized method to get a value from a nested dictionary."""
        value = self.config
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    # LLM
    def get_llm_model(self) -> str:
        return self.get("llm", "model", default=DEFAULT_LLM_MODEL)

    def get_llm_temperature(self) -> float:
        return float(self.get("llm", "temperature", default=DEFAULT_LLM_TEMPERATURE))

    def get_llm_max_tokens(self) -> int:
        return int(self.get("llm", "max_tokens", default=DEFAULT_LLM_MAX_TOKENS))

    def get_llm_timeout(self) -> int:
        return int(self.get("llm", "timeout", default=DEFAULT_LLM_TIMEOUT))

    # RAG
    def get_default_limit(self) -> int:
        return int(self.get("rag", "default_limit", default=DEFAULT_LIMIT))

    def get_default_threshold(self) -> float:
        return float(self.get("rag", "default_threshold", default=DEFAULT_THRESHOLD))

    def get_default_text_threshold(self) -> float:
        return float(
            self.get("rag", "default_text_threshold", default=DEFAULT_TEXT_THRESHOLD)
        )

    def get_max_context_chars(self) -> int:
        return int(self.get("rag", "max_context_chars", default=MAX_CONTEXT_CHARS))

    def get_strong_match_cutoff(self) -> float:
        return float(
            self.get("rag", "strong_match_cutoff", default=STRONG_MATCH_CUTOFF)
        )

    def get_chunk_size(self) -> int:
        return int(self.get("rag", "chunk_size", default=DEFAULT_CHUNK_SIZE))

    def get_chunk_overlap(self) -> int:
        return int(self.get("rag", "chunk_overlap", default=DEFAULT_CHUNK_OVERLAP))


# Expose a module-level config instance for convenient imports
# Allow overriding the config file location via RAG_CONFIG_PATH
CONFIG_PATH = os.getenv(
    "RAG_CONFIG_PATH", str(Path(__file__).parent.parent / "config.yaml")
)
config = Config(CONFIG_PATH)
