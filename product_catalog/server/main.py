#!/usr/bin/env python3
"""
Product Catalog Server - Main Application

Connects to the product store (retrying while it comes up) and serves
the REST API.
"""

import argparse
import logging
import os
import signal
import sys

import uvicorn

from product_catalog.server.api.server import create_app
from product_catalog.server.storage import StorageConfig, StorageConnectionError, StorageManager
from product_catalog.shared import load_config, setup_logging

logger = logging.getLogger(__name__)


class ProductCatalogServer:
    """Main server application."""

    def __init__(self, config_path: str):
        self.config = load_config(config_path)

        self.storage_manager = StorageManager(
            config=StorageConfig.from_dict(self.config.get("storage", {}))
        )

        self.app = create_app(storage_manager=self.storage_manager)

    def start(self) -> bool:
        """Connect to the store and seed it. Returns False when the store never came up."""
        setup_logging(self.config)

        logger.info("Starting Product Catalog Server")

        try:
            self.storage_manager.connect()
        except StorageConnectionError as e:
            logger.error(f"Failed to start server: {e}")
            return False

        self.storage_manager.seed()

        logger.info("Product Catalog Server started")
        logger.info(f"  - Products in store: {self.storage_manager.count_products()}")
        return True

    def stop(self):
        """Stop all server components."""
        logger.info("Stopping Product Catalog Server")
        self.storage_manager.close()
        logger.info("Product Catalog Server stopped")

    def run(self):
        """Run the server."""
        if not self.start():
            sys.exit(1)

        server_config = self.config.get("server", {})
        host = server_config.get("host", "0.0.0.0")
        port = int(os.environ.get("PORT", server_config.get("port", 5000)))

        logger.info(f"Backend API running on http://{host}:{port}")
        logger.info(f"  - Health check: GET http://localhost:{port}/health")
        logger.info(f"  - Products endpoint: GET http://localhost:{port}/api/products")
        logger.info(f"  - Product by ID: GET http://localhost:{port}/api/products/:id")

        try:
            uvicorn.run(
                self.app,
                host=host,
                port=port,
                log_level="info",
            )
        finally:
            self.stop()


def main():
    parser = argparse.ArgumentParser(description="Product Catalog Server")
    parser.add_argument(
        "-c", "--config",
        default="config/config.yaml",
        help="Path to configuration file",
    )

    args = parser.parse_args()

    server = ProductCatalogServer(args.config)

    # Handle signals
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, closing database connection...")
        server.stop()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    server.run()


if __name__ == "__main__":
    main()
