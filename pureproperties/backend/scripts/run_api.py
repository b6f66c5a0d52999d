from __future__ import annotations

import uvicorn

from app.logging_setup import configure_logging


def main() -> None:
    configure_logging()
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, log_config=None)


if __name__ == "__main__":
    main()
