from __future__ import annotations

import logging

import uvicorn

from resource_vault.core.config import settings
from resource_vault.interfaces.http import create_app


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
