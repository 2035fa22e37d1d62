# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Run the API with ``python -m ems``."""

import uvicorn

from ems.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "ems.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
