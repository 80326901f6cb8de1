#!/usr/bin/env python3
"""Run the ARQ worker for background reference set generation."""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from arq import run_worker

from character_library.worker import WorkerSettings


def main():
    """Run the ARQ worker. Start the API with JOB_BACKEND=arq to send it jobs."""
    run_worker(WorkerSettings)


if __name__ == "__main__":
    main()
