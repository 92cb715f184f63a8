from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from nurturetrack.api.main import create_app
from nurturetrack.internal_core.config import ConfigError, load_config

logger = logging.getLogger("nurturetrack")


def main() -> int:
    load_dotenv()
    try:
        config = load_config()
    except ConfigError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("ERROR: %s", exc)
        return 1

    logging.basicConfig(
        level=config.NURTURE_LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(config)
    logger.info(
        "NurtureTrack backend server listening on http://%s:%s", config.NURTURE_HOST, config.NURTURE_PORT
    )
    uvicorn.run(app, host=config.NURTURE_HOST, port=config.NURTURE_PORT, log_level=config.NURTURE_LOG_LEVEL.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
