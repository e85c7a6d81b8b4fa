"""
API route modules:
- system: health
- devices: device listing, frontends, fe_override, removal, scanning
"""

from .devices import setup_device_routes
from .system import setup_system_routes


def setup_all_routes(app, controller):
    """Register all API routes with the application."""
    setup_system_routes(app, controller)
    setup_device_routes(app, controller)
