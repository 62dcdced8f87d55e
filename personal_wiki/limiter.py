from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Storage comes from the app's RATELIMIT_STORAGE_URI
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["50000 per day", "1000 per hour"],
    in_memory_fallback_enabled=True,
)
