"""
Stable identities for HDHomeRun devices.

The 32-bit device id printed on every HDHomeRun is hashed with SHA-1 and
hex-encoded. The digest is used as the adapter's uuid, which is both the
registry dedup key and the settings key, so it has to be identical across
restarts. The id is hashed in little-endian byte order, which is what
existing Tvheadend installations on x86/ARM hosts already persisted.
"""

from __future__ import annotations

import hashlib
import struct

UUID_HEX_LENGTH = 40


def identity_digest(device_id: int) -> bytes:
    """Return the raw 20-byte digest for ``device_id``."""
    if not 0 <= device_id <= 0xFFFFFFFF:
        raise ValueError(f"device id out of 32-bit range: {device_id!r}")
    return hashlib.sha1(struct.pack("<I", device_id)).digest()


def derive_identity(device_id: int) -> str:
    """Return the 40-char hex identity for ``device_id``."""
    return identity_digest(device_id).hex()


def format_device_id(device_id: int) -> str:
    return f"{device_id:08X}"
