"""
Request Throttling Configuration

This module sets up the slowapi Limiter that protects the API from request
floods. It is separate from the daily fact quota (services/quota.py): the
quota counts successful generations per user per day, the limiter counts
raw requests per client address per minute.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from moviefacts.config import settings

# Initialize Limiter
# key_func=get_remote_address: Uses the client's IP address as the unique identifier
# storage_uri: "memory://" for one process, a redis:// URL to share counters between workers
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URL,
    strategy="fixed-window"  # Standard fixed window algorithm
)

# Applied to both fact endpoints (POST and GET), the ones that call the provider
FACT_REQUESTS_PER_MINUTE = "30/minute"
