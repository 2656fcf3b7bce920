"""
Process entry point.

Settings (environment or .env):
- HOST: bind address (default 0.0.0.0)
- PORT: bind port (default 3001)
- LOG_LEVEL: root log level (default INFO)
"""

import logging
import os

import dotenv


def main():
    dotenv.load_dotenv()

    import uvicorn
    from .server import app

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.getLogger().setLevel(log_level)

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
