"""HDHomeRun network transports."""

from .control_session import HDHomeRunControlSession
from .hdhomerun_protocol import ControlError, PacketError
from .udp_discovery import UDPDiscoveryTransport

__all__ = [
    "ControlError",
    "HDHomeRunControlSession",
    "PacketError",
    "UDPDiscoveryTransport",
]
