"""Outbound transport for reporting batches."""
from .http_publisher import DEFAULT_CONNECT_TIMEOUT_MS, DEFAULT_SOCKET_TIMEOUT_MS, HttpPublisher

__all__ = ["HttpPublisher", "DEFAULT_CONNECT_TIMEOUT_MS", "DEFAULT_SOCKET_TIMEOUT_MS"]
