"""
TCP control session to one tuner of an HDHomeRun device.

The connection is opened on first use, so creating a session (as every
frontend does) costs nothing until something is actually queried.
"""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .hdhomerun_protocol import (
    HDHOMERUN_CONTROL_TCP_PORT,
    HEADER_SIZE,
    ControlError,
    decode_packet,
    frame_length,
    getset_request,
    parse_getset_reply,
)

logger = get_module_logger("ControlSession")


class HDHomeRunControlSession:
    """Get/set access to ``/sys`` and ``/tunerN`` variables of one device."""

    def __init__(
        self,
        device_id: int,
        ip_addr: int,
        tuner_index: int = 0,
        timeout: float = 2.5,
        port: int = HDHOMERUN_CONTROL_TCP_PORT,
    ):
        if tuner_index < 0:
            raise ValueError(f"invalid tuner index {tuner_index}")
        self.device_id = device_id
        self.ip_address = str(ipaddress.IPv4Address(ip_addr))
        self.tuner_index = tuner_index
        self.timeout = timeout
        self.port = port
        self._sock: Optional[socket.socket] = None

    def __repr__(self) -> str:
        return f"HDHomeRunControlSession({self.device_id:08X}-{self.tuner_index} @ {self.ip_address})"

    def _connect(self) -> socket.socket:
        if self._sock is None:
            self._sock = socket.create_connection((self.ip_address, self.port), timeout=self.timeout)
        return self._sock

    def _recv_exact(self, sock: socket.socket, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = sock.recv(size - len(chunks))
            if not chunk:
                raise ConnectionError(f"{self!r}: connection closed by device")
            chunks.extend(chunk)
        return bytes(chunks)

    def get(self, name: str) -> str:
        """Read a control variable, e.g. ``/sys/model``."""
        return self._getset(name, None)

    def _getset(self, name: str, value: Optional[str]) -> str:
        sock = self._connect()
        try:
            sock.sendall(getset_request(name, value))
            header = self._recv_exact(sock, HEADER_SIZE)
            rest = self._recv_exact(sock, frame_length(header) - HEADER_SIZE)
        except OSError:
            self.close()
            raise
        return parse_getset_reply(decode_packet(header + rest))

    def model_string(self) -> Optional[str]:
        """Model string such as ``hdhomerun3_atsc``; None if the device has none."""
        try:
            return self.get("/sys/model")
        except ControlError as e:
            logger.debug("%r has no model string: %s", self, e)
            return None

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()
