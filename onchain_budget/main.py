"""Main entry point for the API server"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables FIRST, before any other imports
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

import uvicorn

from onchain_budget.utils.logging import get_logger

logger = get_logger(__name__)


def main():
    """Main entry point"""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))

    logger.info("Starting OnchainBudget API", host=host, port=port, state_backend=os.getenv("STATE_BACKEND", "redis"))

    uvicorn.run(
        "onchain_budget.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
