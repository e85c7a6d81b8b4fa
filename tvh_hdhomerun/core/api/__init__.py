"""
REST API for the tuner service.

Exposes the discovered HDHomeRun devices, their frontends and the
``fe_override`` property over HTTP/JSON.

Usage:
    python -m tvh_hdhomerun --api-port 9982

The API runs in the same event loop as the discovery scanner.
"""

from .controller import APIController
from .server import APIServer

__all__ = ["APIServer", "APIController"]
