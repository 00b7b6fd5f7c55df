"""
Static frontend serving.

The built single-page app is served from STATIC_DIR. Unknown paths fall
back to index.html so client-side routes survive a page reload. Paths
under /api never fall back: a missing API route stays a 404.
"""

import logging
import os

from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

logger = logging.getLogger(__name__)

INDEX_DOCUMENT = "index.html"


class SPAStaticFiles(StaticFiles):
    """StaticFiles with an index-document fallback for unknown paths."""

    def __init__(self, directory: str, index_file: str = INDEX_DOCUMENT) -> None:
        super().__init__(directory=directory, html=True)
        self.index_file = index_file

    async def get_response(self, path: str, scope: Scope):
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404 or path == "api" or path.startswith("api/"):
                raise
            logger.debug("Falling back to index document", extra={"path": path})
            return await super().get_response(self.index_file, scope)


def static_files_or_none(directory: str) -> SPAStaticFiles | None:
    """Build the static app, or None if the directory doesn't exist."""
    if not os.path.isdir(directory):
        logger.warning(
            "Static directory not found, frontend will not be served",
            extra={"static_dir": directory},
        )
        return None
    return SPAStaticFiles(directory=directory)
