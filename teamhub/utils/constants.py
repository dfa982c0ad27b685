"""
Constants used across the team management system.
"""

import os

TEAM_NAME = os.getenv("TEAM_NAME", "TeamHub")

# Auth
MIN_PASSWORD_LENGTH = 6
ACCESS_TOKEN_EXPIRATION_DAYS = 30

# Roster
MIN_JERSEY_NUMBER = 1
MAX_JERSEY_NUMBER = 99

# Listings
NEWS_LIMIT = 10

# Client cache worker
API_PREFIX = "/api/"
CACHE_NAME = "teamhub-v1"
SHELL_PAGE = "/app.html"
SYNC_CONFIRMATIONS_TAG = "sync-confirmations"
