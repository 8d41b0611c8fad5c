from __future__ import annotations

# GH read operations (single request/response)
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy (transient transport errors only)
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Waiting for a CI run to complete
CI_POLL_INTERVAL_SECONDS = 30.0
CI_POLL_MAX_INTERVAL_SECONDS = 60.0
CI_POLL_BACKOFF = 1.5
CI_WAIT_TIMEOUT_SECONDS = 300.0

# Multi-platform release builds take longer
RELEASE_WAIT_TIMEOUT_SECONDS = 600.0

# Locating the tag-triggered run
RUN_DISCOVERY_TIMEOUT_SECONDS = 60.0
RUN_DISCOVERY_INTERVAL_SECONDS = 5.0
RUN_DISCOVERY_MAX_INTERVAL_SECONDS = 15.0
RUN_DISCOVERY_LOOKBACK = 20
RUN_RECENCY_WINDOW_SECONDS = 5 * 60.0

# Release visibility after a successful workflow
RELEASE_VISIBILITY_TIMEOUT_SECONDS = 60.0
RELEASE_VISIBILITY_INTERVAL_SECONDS = 5.0
RELEASE_VISIBILITY_MAX_INTERVAL_SECONDS = 15.0
