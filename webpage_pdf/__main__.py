"""Run the webpage PDF service: ``python -m webpage_pdf``."""

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    # Use 0.0.0.0 by default so containers can bind correctly
    uvicorn.run(
        "webpage_pdf.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
