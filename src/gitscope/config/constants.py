"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
They define the ConcatenatedContent wire format and hard query caps.

For configurable values, see models.py (TimeoutsConfig, LimitsConfig, etc.).
"""

# =============================================================================
# ConcatenatedContent Format
# =============================================================================
# Changing any of these breaks compatibility with cached snapshots.

MAX_FILE_SIZE_BYTES = 1024 * 1024
"""Files larger than this are replaced by a placeholder block."""

DELIMITER_WIDTH = 50
"""Number of '=' characters in a block delimiter line."""

DELIMITER = "=" * DELIMITER_WIDTH

EXCLUDED_PREFIX = ".git"
"""Entries whose name starts with this are skipped by every walk."""

# =============================================================================
# Search
# =============================================================================

SEARCH_CONTEXT_LINES = 2
"""Context lines captured before and after each match."""

SEARCH_MAX_LIMIT = 100
"""Hard cap on search results per request."""

REMOTE_MATCHES_PER_FILE = 3
"""Matching lines reported per file by the remote code-search fallback."""

# =============================================================================
# Working Copies
# =============================================================================

WORKING_COPY_PREFIX = "gitscope_"
"""Directory name prefix for working copies under the workspace root."""

WORKING_COPY_HASH_LENGTH = 12
"""Hex digits of the URL hash used in working copy directory names."""
