"""Tests for device identity derivation."""

import hashlib
import struct

import pytest

from tvh_hdhomerun.core.devices.identity import (
    UUID_HEX_LENGTH,
    derive_identity,
    format_device_id,
    identity_digest,
)


class TestDeriveIdentity:
    """derive_identity is SHA-1 over the little-endian 32-bit id."""

    def test_matches_sha1_of_packed_id(self):
        expected = hashlib.sha1(bytes([0x4D, 0x3C, 0x2B, 0x1A])).hexdigest()
        assert derive_identity(0x1A2B3C4D) == expected

    def test_is_forty_lowercase_hex_chars(self):
        uuid = derive_identity(0x1A2B3C4D)
        assert len(uuid) == UUID_HEX_LENGTH
        assert uuid == uuid.lower()
        int(uuid, 16)

    def test_deterministic(self):
        assert derive_identity(0x10123456) == derive_identity(0x10123456)

    def test_distinct_ids_give_distinct_identities(self):
        assert derive_identity(0x10123456) != derive_identity(0x10123457)

    @pytest.mark.parametrize("device_id", [0, 0xFFFFFFFF])
    def test_range_bounds_accepted(self, device_id):
        assert identity_digest(device_id) == hashlib.sha1(struct.pack("<I", device_id)).digest()

    @pytest.mark.parametrize("device_id", [-1, 0x100000000])
    def test_out_of_range_rejected(self, device_id):
        with pytest.raises(ValueError):
            derive_identity(device_id)


def test_format_device_id_is_eight_uppercase_hex_digits():
    assert format_device_id(0x1A2B3C4D) == "1A2B3C4D"
    assert format_device_id(0xABC) == "00000ABC"
