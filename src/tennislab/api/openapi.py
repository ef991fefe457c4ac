"""Write the TennisLab OpenAPI schema to disk for client generation."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path

from fastapi.encoders import jsonable_encoder

from tennislab.api.server import app
from tennislab.config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("api_spec/openapi.json")


def build_schema(server_url: str | None = None) -> dict:
    schema = app.openapi()
    if server_url:
        schema = {**schema, "servers": [{"url": server_url.rstrip("/")}]}
    return jsonable_encoder(schema)


def export_schema(output: Path = DEFAULT_OUTPUT, server_url: str | None = None) -> Path:
    schema = build_schema(server_url)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(schema, indent=2))
    logger.info("OpenAPI schema %s written to %s", schema["info"]["version"], output)
    return output


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - CLI convenience
    parser = argparse.ArgumentParser(description="Export the TennisLab OpenAPI schema.")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--server-url", default=os.getenv("PUBLIC_API_BASE_URL"))
    args = parser.parse_args(argv)
    configure_logging()
    export_schema(args.output, args.server_url)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
