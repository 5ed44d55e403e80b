"""Invalidation hook for cached renderings of blog/dashboard views.

Successful post mutations call :meth:`ViewCache.revalidate` for each path
whose rendering is now stale.  The default implementation only records and
logs the paths; a deployment fronted by a CDN or SSR cache can supply its
own implementation through the ``get_view_cache`` dependency.
"""

import logging
from typing import Protocol

from backend.app.core.logging import EVENT_VIEW_REVALIDATED, log_event

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"
BLOG_PATH = "/blog"


def blog_post_path(slug: str) -> str:
    return f"{BLOG_PATH}/{slug}"


class ViewCache(Protocol):
    def revalidate(self, path: str) -> None: ...


class LoggingViewCache:
    """Records revalidated paths in order and logs each one."""

    def __init__(self) -> None:
        self.revalidated: list[str] = []

    def revalidate(self, path: str) -> None:
        self.revalidated.append(path)
        log_event(logger, "info", EVENT_VIEW_REVALIDATED, path=path)
