import logging
import sys

import uvicorn
from dotenv import load_dotenv

from app.core.config import ConfigError, load_settings
from app.core.logging import setup_logging
from app.main import create_app


def main() -> int:
    # .env goes into os.environ so the per-request chat database scan sees it too
    load_dotenv()
    setup_logging()
    log = logging.getLogger("uvicorn.error")

    try:
        settings = load_settings()
    except ConfigError as e:
        log.error("Invalid environment configuration")
        for name, reason in e.violations:
            log.error("  %s: %s", name, reason)
        return 1

    app = create_app(settings)
    log.info("Secret relay listening on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
