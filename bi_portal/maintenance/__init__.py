# bi_portal/maintenance/__init__.py
"""
One-off database maintenance scripts.

Each module has a main() with no command-line flags; connection settings
come from the environment (.env) with the defaults in bi_portal.config.

    python -m bi_portal.maintenance.import_csv
    python -m bi_portal.maintenance.add_indexes
    python -m bi_portal.maintenance.explore_schema
    python -m bi_portal.maintenance.check_sales_data
    python -m bi_portal.maintenance.add_livnex_columns
"""

import logging
import sys
from typing import Callable

logger = logging.getLogger(__name__)

BANNER = '═' * 55


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_script(title: str, func: Callable[[], int]) -> int:
    """
    Run a script body with logging configured.

    The body returns an exit status; any exception is logged and
    turned into status 1.
    """
    configure_logging()
    logger.info(BANNER)
    logger.info(f"  {title}")
    logger.info(BANNER)
    try:
        status = func() or 0
    except Exception as e:
        logger.error(f"❌ {title} failed: {e}", exc_info=True)
        return 1
    return status


__all__ = ['configure_logging', 'run_script', 'BANNER']
