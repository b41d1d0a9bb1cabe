"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance that routers import for
per-endpoint limits, wired into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Allocation is the only write path that contends on a shared row;
# routers apply ALLOCATE_RATE_LIMIT to it explicitly.
ALLOCATE_RATE_LIMIT = "30/minute"

limiter = Limiter(key_func=get_remote_address)
