"""HTTP server for exposing Prometheus metrics.

The built-in prometheus_client HTTP server runs in a background thread so it
never blocks the operator event loop.
"""

import logging
from threading import Thread
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server.

    Exposes metrics at http://0.0.0.0:port/metrics for Prometheus to scrape.

    Args:
        port: Port to listen on (default: 8000)
    """
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server(port: int = 8000) -> Thread:
    """Start the metrics server in a daemon thread and return the thread."""
    thread = Thread(target=start_metrics_server, args=(port,), daemon=True)
    thread.start()
    logger.info(f"Metrics server initialization complete (port: {port})")
    return thread
