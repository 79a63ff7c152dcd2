#!/usr/bin/env python3
"""
Loan Ledger Entry Point

Starts the FastAPI server on the configured host and port.
"""

import sys

import uvicorn

from loan_ledger.config import get_config
from loan_ledger.logging_config import setup_logging


def run_server() -> None:
    """Run the FastAPI server"""
    config = get_config()
    logger = setup_logging(
        level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file
    )
    logger.info(
        "Starting loan ledger API on %s:%s (%s storage)",
        config.api_host, config.api_port, config.storage_backend
    )
    
    uvicorn.run(
        "loan_ledger.api:create_app",
        factory=True,
        host=config.api_host,
        port=config.api_port,
        reload=config.api_reload,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down loan ledger...")
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)
