"""
CLI entrypoint for the BloodDrive API server.

Usage:
  blooddrive-api --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the BloodDrive API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    args = parser.parse_args()

    import uvicorn

    from blooddrive.logging_config import configure_logging

    configure_logging(level=args.log_level)
    uvicorn.run(
        "blooddrive.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
