"""
Stale Booking Worker Runner
Run this as a separate process: python run_worker.py
(equivalent to: arq srd_backend.worker.WorkerSettings)
"""

import logging
import sys

from arq.worker import run_worker

from srd_backend.worker import WorkerSettings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("🚀 Starting stale booking worker...")
    try:
        run_worker(WorkerSettings)
    except KeyboardInterrupt:
        logger.info("👋 Worker stopped by user")
