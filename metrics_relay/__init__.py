"""metrics-relay: flatten an in-process metrics registry into tagged time series
and ship them to an HTTP collector."""
from .version import __version__, get_version

__all__ = ["__version__", "get_version"]
