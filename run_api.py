#!/usr/bin/env python3
"""
Development script to run the task planner API locally.

Reads the TODO_* environment variables (see api/config.py) and starts the
FastAPI application with uvicorn.
"""

import os
import sys
import uvicorn
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import AppConfig


def main():
    """Run the FastAPI application."""
    os.environ.setdefault("ENVIRONMENT", "development")
    config = AppConfig.from_environment()

    print("Starting Task Planner API")
    print(f"   Environment: {config.environment}")
    print(f"   Database: {config.db_file}")
    print(f"   Web client: {config.web_dir}")
    print(f"   Documentation: http://{config.listen_address}:{config.port}/docs")
    print()

    uvicorn.run(
        "api.main:app",
        host=config.listen_address,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True,
        reload_dirs=[str(project_root / "api"), str(project_root / "engine")] if config.debug else None
    )


if __name__ == "__main__":
    main()
