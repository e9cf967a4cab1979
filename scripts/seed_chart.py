#!/usr/bin/env python3
# scripts/seed_chart.py - Seed the default chart of accounts from the command line
import sys
import os
import logging

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from isp_billing.core.db import db_manager
from isp_billing.core.logging_config import setup_logging
from isp_billing.services.chart_of_accounts import seed_chart

logger = logging.getLogger(__name__)


def main() -> int:
    setup_logging()
    health = db_manager.health_check()
    if health["status"] != "healthy":
        logger.error(f"Database unavailable: {health.get('error')}")
        return 1

    with db_manager.transaction() as db:
        created, count = seed_chart(db)
    if created:
        print(f"✅ Seeded {count} accounts")
    else:
        print(f"Chart of accounts already seeded ({count} accounts)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
