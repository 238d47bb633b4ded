from __future__ import annotations

# GH API reads
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Releases fetched per API page
GH_RELEASES_PAGE_SIZE = 100

# Artifact build and smoke test
BUILD_TIMEOUT_SECONDS = 15 * 60.0
SMOKE_TEST_TIMEOUT_SECONDS = 60.0
