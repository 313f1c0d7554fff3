"""
Configuration for the YouTube comment tree extractor.

All tunables live in the CONFIG dictionary so they can be adjusted in one
place. Values that differ per user (API key, credential file locations) are
read from the environment, which the CLI populates from a .env file.
"""

import os


# ============================================================================
# CONFIGURATION
# ============================================================================

# Application configuration dictionary
CONFIG = {
    'max_results_videos': 50,            # Videos per API call (max 50 per YouTube API)
    'max_results_comments': 100,         # Comments per API call (max 100 per YouTube API)
    'retry_attempts': 3,                 # Retries for transient errors (429, 5xx, network)
    'backoff_base': 1.0,                 # Seconds; doubled on every retry, plus jitter
    'api_version': 'v3',                 # YouTube Data API version
    'daily_quota_limit': 10000,          # Default daily quota limit in units
    'min_request_interval': 0.0,         # Seconds between two requests, across all workers
    'workers': 1,                        # 1 = one video fully fetched before the next
    'token_cache_name': 'tokencache.json',
    'client_secret_name': 'client_secret.json',
    'output_name': 'comments.json',
}

# API operation costs in quota units
QUOTA_COSTS = {
    'channels.list': 1,
    'playlistItems.list': 1,
    'commentThreads.list': 1,
    'comments.list': 1,
}

# Requested together so the user is prompted only once
SCOPES = [
    'https://www.googleapis.com/auth/youtube.force-ssl',
    'https://www.googleapis.com/auth/youtube.readonly',
]


# ============================================================================
# ENVIRONMENT
# ============================================================================

def env_setting(name, default=None):
    """
    Read a setting from the environment, treating blank and placeholder values as unset.

    Parameters:
        name (str): Environment variable name (e.g., 'YOUTUBE_API_KEY')
        default: Value returned when the variable is missing or unusable

    Returns:
        str or None: The configured value or the default
    """
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    if not value or value.startswith('your_'):
        return default
    return value
