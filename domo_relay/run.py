#!/usr/bin/env python3
"""Run the Domo relay"""
import uvicorn

from domo_relay.core.config import settings


def main() -> None:
    uvicorn.run(
        "domo_relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
