from __future__ import annotations

import asyncio

import uvicorn

from document_flow.settings import configure_logging, settings

from .app import create_app


async def _main() -> None:
    configure_logging()
    app = create_app()

    config = uvicorn.Config(
        app,
        host=settings.bind_host,
        port=settings.bind_port,
        log_level=(settings.log_level or "info").lower(),
        loop="uvloop",
        http="httptools",
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    asyncio.run(_main())


if __name__ == "__main__":
    main()
