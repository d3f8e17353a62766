from __future__ import annotations

import argparse

import uvicorn

from obs_lab.config import get_settings
from obs_lab.main import create_app


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Observability lab HTTP service")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on (env PORT)")
    args = parser.parse_args()

    uvicorn.run(create_app(settings), host=args.host, port=args.port, access_log=False, log_config=None)


if __name__ == "__main__":
    main()
