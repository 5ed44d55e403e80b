"""Check deployment configuration and exit non-zero on problems.

Usage::

    python -m backend.app.verify_env
"""

import logging
import sys

from backend.app.core.logging import EVENT_CONFIG_PROBLEM, log_event, setup_logging
from backend.app.core.settings import Settings, settings, verify_configuration

logger = logging.getLogger(__name__)


def main(cfg: Settings | None = None) -> int:
    cfg = cfg or settings
    problems = verify_configuration(cfg)
    for problem in problems:
        log_event(logger, "warning", EVENT_CONFIG_PROBLEM, problem=problem)
    if problems:
        logger.error("Configuration check failed: %d problem(s)", len(problems))
        return 1
    logger.info("Configuration check passed")
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(main())
