"""Root FastMCP app: mounts the comments and infra sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .tools.comments import close_orchestrator, comments_server
from .tools.infra import infra_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Enable tracing on startup; close the Gemini client and flush traces on shutdown."""
    tracing.setup()
    yield {}
    await close_orchestrator()
    tracing.shutdown()
    logger.info("Lifespan shutdown complete")


app = FastMCP(
    "comment-insight",
    instructions=(
        "YouTube comment research — extracts the main viewpoints of a video's "
        "comment section, a neutral summary, and how many comments back each "
        "viewpoint. Powered by the YouTube Data API and Gemini."
    ),
    lifespan=_lifespan,
)

app.mount(comments_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``comment-insight-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
