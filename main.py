#!/usr/bin/env python3
"""
============================================================================
Ledger Staking Gateway v1.0.0
Process Entry Point
============================================================================

Loads .env, configures logging and serves app.main:app with uvicorn on
API_PORT (default 3001).

USAGE:
    python main.py

============================================================================
"""

import logging
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("GATEWAY")

import uvicorn  # noqa: E402

from services.ledger_config import (  # noqa: E402
    LedgerConfigurationError,
    get_ledger_config,
)


def main() -> int:
    try:
        config = get_ledger_config()
    except LedgerConfigurationError as e:
        logger.critical(f"[{e.error_code}] Refusing to start: {e.message}")
        return 1

    logger.info(f"[GATEWAY] Serving on 0.0.0.0:{config.api_port}")
    uvicorn.run("app.main:app", host="0.0.0.0", port=config.api_port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
