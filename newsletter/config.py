"""Centralized configuration for the newsletter engine."""

import os
from pathlib import Path
from typing import Optional

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# =============================================================================
# Record store
# =============================================================================

# Durable store connection URL (Postgres in production).
# When unset the process runs in offline/demo mode with an in-memory store.
DATABASE_URL: Optional[str] = os.environ.get("DATABASE_URL") or None

# Upper bound on connecting to / checking out from the durable store
STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "10"))

# =============================================================================
# External generation workflow (n8n)
# =============================================================================

# Webhook that starts the generation workflow.
# When unset, a simulated workflow completes generations locally.
N8N_WEBHOOK_URL: Optional[str] = os.environ.get("N8N_WEBHOOK_URL") or None

# Address the workflow calls when a generation finishes
CALLBACK_URL = os.environ.get(
    "CALLBACK_URL", "http://localhost:8000/api/v1/webhooks/n8n"
)

# Shared secret the workflow must echo in X-Callback-Secret (optional)
CALLBACK_SECRET: Optional[str] = os.environ.get("CALLBACK_SECRET") or None

# Dispatch is a single blocking exchange; exceeding this is a dispatch failure
DISPATCH_TIMEOUT_SECONDS = float(os.environ.get("DISPATCH_TIMEOUT_SECONDS", "120"))

# Delay before the simulated workflow delivers its completion callback
DEMO_COMPLETION_DELAY_SECONDS = float(
    os.environ.get("DEMO_COMPLETION_DELAY_SECONDS", "3")
)

# =============================================================================
# Polling
# =============================================================================

POLL_INTERVAL_MS = int(os.environ.get("POLL_INTERVAL_MS", "5000"))
POLL_MAX_ATTEMPTS = int(os.environ.get("POLL_MAX_ATTEMPTS", "60"))

# =============================================================================
# Voice profiles
# =============================================================================

# Status assigned to newly created voice profiles
PROFILE_INITIAL_STATUS = os.environ.get("PROFILE_INITIAL_STATUS", "draft")

# =============================================================================
# Logging / API
# =============================================================================

LOG_FORMAT = os.environ.get("LOG_FORMAT", "console")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if origin.strip()
]
