"""
Utility functions for handling Neo4j operations with better error handling and resilience.
"""

import logging
import time
from functools import wraps
from typing import Callable, Any

from neo4j.exceptions import SessionExpired, ServiceUnavailable, TransientError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (SessionExpired, ServiceUnavailable, TransientError, ConnectionResetError, TimeoutError)


def neo4j_retry(max_retries: int = 3, delay: float = 1.0, exponential_backoff: bool = True):
    """
    Decorator to add retry logic to functions that perform Neo4j operations.

    Only connection-level errors are retried; anything else propagates immediately.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        exponential_backoff: If True, delay doubles with each retry
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            last_exception = None

            for attempt in range(max_retries + 1):  # +1 for the initial attempt
                try:
                    return func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    last_exception = e
                    logger.warning(f"Neo4j operation '{func.__name__}' failed on attempt {attempt + 1}: {e}")

                    if attempt == max_retries:
                        break

                    wait_time = delay
                    if exponential_backoff:
                        wait_time *= (2 ** attempt)

                    logger.info(f"Retrying in {wait_time:.2f} seconds...")
                    time.sleep(wait_time)

            logger.warning(f"All retries exhausted for '{func.__name__}'. Last error: {last_exception}")
            raise last_exception

        return wrapper
    return decorator


def get_connection_health_info(driver) -> dict:
    """
    Get information about Neo4j connection health.
    Useful for debugging and monitoring.
    """
    if driver is None:
        return {
            "status": "unhealthy",
            "message": "Neo4j driver not initialized",
        }

    try:
        server_info = driver.get_server_info()
        return {
            "status": "healthy",
            "address": str(server_info.address),
            "agent": server_info.agent,
            "protocol_version": ".".join(str(p) for p in server_info.protocol_version),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "message": "Failed to connect to Neo4j"
        }
