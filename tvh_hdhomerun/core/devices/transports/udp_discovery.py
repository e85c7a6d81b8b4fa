"""
UDP broadcast discovery of HDHomeRun devices.

Blocking; the scanner calls ``discover`` through
``asyncio.to_thread`` while it holds the device lock.
"""

from __future__ import annotations

import ipaddress
import socket
import time
from typing import Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from ..discovery_protocol import DiscoveredTuner
from ..types import DEVICE_ID_WILDCARD, DEVICE_TYPE_TUNER, DEVICE_TYPE_WILDCARD, MAX_HDHOMERUN_DEVICES
from .hdhomerun_protocol import (
    HDHOMERUN_DISCOVER_UDP_PORT,
    PacketError,
    decode_packet,
    discover_request,
    parse_discover_reply,
)

logger = get_module_logger("UDPDiscovery")


class UDPDiscoveryTransport:
    """Broadcasts a discover request and gathers replies until ``timeout``."""

    RECV_BUFFER = 3074

    def __init__(
        self,
        timeout: float = 1.0,
        broadcast_address: str = "255.255.255.255",
        port: int = HDHOMERUN_DISCOVER_UDP_PORT,
    ):
        self.timeout = timeout
        self.broadcast_address = broadcast_address
        self.port = port
        self._sock: Optional[socket.socket] = None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(("", 0))
            self._sock = sock
        return self._sock

    def discover(
        self,
        device_type: int = DEVICE_TYPE_TUNER,
        device_id: int = DEVICE_ID_WILDCARD,
        max_results: int = MAX_HDHOMERUN_DEVICES,
    ) -> list[DiscoveredTuner]:
        sock = self._socket()
        sock.sendto(discover_request(device_type, device_id), (self.broadcast_address, self.port))

        results: dict[int, DiscoveredTuner] = {}
        deadline = time.monotonic() + self.timeout

        while len(results) < max_results:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            sock.settimeout(remaining)
            try:
                data, (host, _port) = sock.recvfrom(self.RECV_BUFFER)
            except socket.timeout:
                break

            try:
                reply = parse_discover_reply(decode_packet(data), int(ipaddress.IPv4Address(host)))
            except PacketError as e:
                logger.debug("Ignoring discovery reply from %s: %s", host, e)
                continue

            if device_type != DEVICE_TYPE_WILDCARD and reply.device_type != device_type:
                continue
            if device_id != DEVICE_ID_WILDCARD and reply.device_id != device_id:
                continue
            results.setdefault(reply.device_id, reply)

        return list(results.values())

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()
