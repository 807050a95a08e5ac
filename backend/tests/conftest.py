"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real API keys
os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test-fake-key"
os.environ.pop("ANTHROPIC_FALLBACK_API_KEY", None)
os.environ.setdefault("LOG_FORMAT", "text")
