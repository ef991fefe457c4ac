"""CLI entrypoint to run the TennisLab FastAPI server."""

from __future__ import annotations

import os

import uvicorn

from tennislab.config import configure_logging


def main() -> None:
    configure_logging()
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("tennislab.api.server:app", host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":  # pragma: no cover
    main()
