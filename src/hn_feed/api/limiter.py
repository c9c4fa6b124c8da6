"""Shared slowapi rate-limiter singleton.

Keeping the ``Limiter`` instance in its own module lets route modules import
it without importing ``main.py`` (which imports every route module).

Usage in route modules::

    from hn_feed.api.limiter import limiter

    @router.get("/stories")
    @limiter.limit("60/minute")
    async def list_stories(request: Request, ...):
        ...

The ``request`` parameter **must** be present in the route function
signature for slowapi to resolve the rate-limit key.  ``main.create_app()``
attaches the instance to ``app.state`` and registers the 429 handler.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter: Limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)
"""Global rate-limiter instance, keyed by client IP address."""
