"""Root conftest — shared test configuration."""

import os

# Ensure tests never call the real Anthropic API or touch a real data file
os.environ.setdefault("ANTHROPIC_API_KEY", "")
os.environ.setdefault("GENERATION_ENABLED", "false")
os.environ.setdefault("SEED_DEFAULT_COMBINATIONS", "false")
os.environ.setdefault("DATA_FILE", "test-data/combinations.json")
os.environ.setdefault("LOG_FORMAT", "text")
