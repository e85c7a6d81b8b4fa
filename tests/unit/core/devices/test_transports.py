"""Loopback tests for the UDP discovery transport and TCP control session."""

import socket
import struct
import threading

import pytest

from tvh_hdhomerun.core.devices import DEVICE_ID_WILDCARD, DEVICE_TYPE_TUNER
from tvh_hdhomerun.core.devices.transports import HDHomeRunControlSession, UDPDiscoveryTransport
from tvh_hdhomerun.core.devices.transports.hdhomerun_protocol import (
    HEADER_SIZE,
    TAG_DEVICE_ID,
    TAG_DEVICE_TYPE,
    TAG_ERROR_MESSAGE,
    TAG_GETSET_NAME,
    TAG_GETSET_VALUE,
    TAG_TUNER_COUNT,
    TYPE_DISCOVER_RPY,
    TYPE_GETSET_RPY,
    decode_packet,
    encode_packet,
    frame_length,
)

LOOPBACK = 0x7F000001


def _discover_reply(device_id: int, device_type: int = DEVICE_TYPE_TUNER, tuners: int = 2) -> bytes:
    return encode_packet(TYPE_DISCOVER_RPY, [
        (TAG_DEVICE_TYPE, struct.pack(">I", device_type)),
        (TAG_DEVICE_ID, struct.pack(">I", device_id)),
        (TAG_TUNER_COUNT, bytes([tuners])),
    ])


@pytest.fixture
def udp_responder():
    """A loopback 'device' that answers one discovery request with canned replies."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5)
    replies: list[bytes] = []
    requests: list[bytes] = []

    def serve():
        try:
            data, peer = sock.recvfrom(2048)
        except OSError:
            return
        requests.append(data)
        for reply in replies:
            sock.sendto(reply, peer)

    thread = threading.Thread(target=serve, daemon=True)
    yield sock.getsockname()[1], replies, requests, thread
    thread.join(timeout=5)
    sock.close()


class TestUDPDiscovery:

    def test_collects_tuner_replies(self, udp_responder):
        port, replies, requests, thread = udp_responder
        replies.extend([
            _discover_reply(0x1A2B3C4D, tuners=3),
            _discover_reply(0x1A2B3C4D, tuners=3),
            b"garbage",
            _discover_reply(0x20000001, device_type=5),
            _discover_reply(0x10212345, tuners=1),
        ])
        thread.start()

        transport = UDPDiscoveryTransport(timeout=0.5, broadcast_address="127.0.0.1", port=port)
        try:
            records = transport.discover(DEVICE_TYPE_TUNER, DEVICE_ID_WILDCARD, 8)
        finally:
            transport.close()

        assert [(r.device_id, r.tuner_count) for r in records] == [(0x1A2B3C4D, 3), (0x10212345, 1)]
        assert all(r.ip_addr == LOOPBACK for r in records)
        request = decode_packet(requests[0])
        assert request.get_u32(TAG_DEVICE_TYPE) == DEVICE_TYPE_TUNER
        assert request.get_u32(TAG_DEVICE_ID) == DEVICE_ID_WILDCARD

    def test_stops_at_max_results(self, udp_responder):
        port, replies, _requests, thread = udp_responder
        replies.extend(_discover_reply(0x10000000 + i) for i in range(4))
        thread.start()

        transport = UDPDiscoveryTransport(timeout=2.0, broadcast_address="127.0.0.1", port=port)
        try:
            records = transport.discover(DEVICE_TYPE_TUNER, DEVICE_ID_WILDCARD, 2)
        finally:
            transport.close()

        assert len(records) == 2

    def test_no_replies_is_empty(self, udp_responder):
        port, _replies, _requests, thread = udp_responder
        thread.start()

        transport = UDPDiscoveryTransport(timeout=0.2, broadcast_address="127.0.0.1", port=port)
        try:
            assert transport.discover() == []
        finally:
            transport.close()


@pytest.fixture
def tcp_device():
    """A loopback control endpoint answering each get request from a name -> reply map."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    server.settimeout(5)
    answers: dict[str, list] = {}

    def recv_exact(conn, size):
        data = b""
        while len(data) < size:
            chunk = conn.recv(size - len(data))
            if not chunk:
                return None
            data += chunk
        return data

    def serve():
        try:
            conn, _ = server.accept()
        except OSError:
            return
        with conn:
            while True:
                header = recv_exact(conn, HEADER_SIZE)
                if header is None:
                    return
                rest = recv_exact(conn, frame_length(header) - HEADER_SIZE)
                name = decode_packet(header + rest).get_string(TAG_GETSET_NAME)
                conn.sendall(encode_packet(TYPE_GETSET_RPY, answers[name]))

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield server.getsockname()[1], answers
    server.close()
    thread.join(timeout=5)


class TestControlSession:

    def test_model_string(self, tcp_device):
        port, answers = tcp_device
        answers["/sys/model"] = [
            (TAG_GETSET_NAME, b"/sys/model\x00"),
            (TAG_GETSET_VALUE, b"hdhomerun3_atsc\x00"),
        ]

        session = HDHomeRunControlSession(0x1A2B3C4D, LOOPBACK, port=port)
        try:
            assert session.model_string() == "hdhomerun3_atsc"
            assert session.get("/sys/model") == "hdhomerun3_atsc"
        finally:
            session.close()

    def test_model_error_reply_means_no_model(self, tcp_device):
        port, answers = tcp_device
        answers["/sys/model"] = [(TAG_ERROR_MESSAGE, b"ERROR: unknown getset variable\x00")]

        session = HDHomeRunControlSession(0x1A2B3C4D, LOOPBACK, port=port)
        try:
            assert session.model_string() is None
        finally:
            session.close()

    def test_negative_tuner_index_rejected(self):
        with pytest.raises(ValueError):
            HDHomeRunControlSession(0x1A2B3C4D, LOOPBACK, tuner_index=-1)

    def test_creating_a_session_does_not_connect(self):
        session = HDHomeRunControlSession(0x1A2B3C4D, LOOPBACK, tuner_index=1, port=1)
        assert session.ip_address == "127.0.0.1"
        session.close()


@pytest.mark.hardware
def test_discovers_real_tuners():
    """Broadcast on the local network; needs at least one HDHomeRun powered on."""
    transport = UDPDiscoveryTransport(timeout=2.0)
    try:
        records = transport.discover()
    finally:
        transport.close()

    assert records
    for record in records:
        session = HDHomeRunControlSession(record.device_id, record.ip_addr)
        try:
            assert session.model_string()
        finally:
            session.close()
