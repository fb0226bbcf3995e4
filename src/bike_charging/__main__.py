"""Run the API: python -m bike_charging"""

import logging

import uvicorn

from . import env_config as config

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')


def main() -> None:
    uvicorn.run(
        "bike_charging.main:create_app",
        factory=True,
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
