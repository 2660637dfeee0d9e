"""
Centralized constants for the API, remote clients and scheduler.

Change limits, timeouts or job IDs here instead of scattering literals across main, routes and services.
"""
# Rate limits (slowapi / limits notation), per client IP
API_RATE_LIMIT = "100/15 minutes"
CHAT_RATE_LIMIT = "10/minute"
AUTH_RATE_LIMIT = "5/15 minutes"

# Remote calls
YELP_BASE_URL = "https://api.yelp.com"
YELP_TIMEOUT_SECONDS = 10.0
YELP_MAX_ATTEMPTS = 3
YELP_BACKOFF_BASE_SECONDS = 1.0  # 1s, 2s between attempts
YELP_CACHE_TTL_SECONDS = 5 * 60
YELP_SEARCH_DEFAULT_LIMIT = 20

WEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
WEATHER_TIMEOUT_SECONDS = 5.0

# Sessions expire 24h after creation; expired rows are swept by the cleanup job
SESSION_TTL_HOURS = 24
SESSION_CLEANUP_JOB_ID = "session_cleanup"

# Context extraction
MAX_GROUP_SIZE = 100

# Listing caps
SAVED_PLACES_LIMIT = 200

# Request bodies
MAX_CHAT_MESSAGE_LENGTH = 2000
