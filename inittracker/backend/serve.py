"""Run the tracker API under uvicorn."""

from __future__ import annotations

import argparse
import logging

from inittracker.backend.config import BackendSettings, load_settings


APP_PATH = "inittracker.backend.api:app"

logger = logging.getLogger(__name__)


def parse_args(settings: BackendSettings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initiative tracker API server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--reload", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    args = parse_args(settings, argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    logger.info("Serving %s on http://%s:%d", APP_PATH, args.host, args.port)
    uvicorn.run(APP_PATH, host=args.host, port=args.port, reload=args.reload, log_level=args.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
