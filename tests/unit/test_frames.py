"""Unit tests for the channel frame codec."""

import base64

import pytest

from kube_request.exceptions import FrameProtocolError
from kube_request.models import Channel
from kube_request.transport.frames import SUBPROTOCOL, decode_frame, encode_frame


class TestDecodeFrame:
    """Test decoding of inbound channel frames."""

    def test_raw_channel_index(self):
        """Test a raw index byte selects the channel."""
        frame = decode_frame(bytes([1]) + b"aGVsbG8=")
        assert frame.channel is Channel.STDOUT
        assert frame.message == "hello"

    def test_ascii_digit_channel(self):
        """Test the ASCII digit form sent by API servers."""
        frame = decode_frame(b"2aGk=")
        assert frame.channel is Channel.STDERR
        assert frame.message == "hi"

    def test_text_message(self):
        """Test text messages are decoded like binary ones."""
        frame = decode_frame("1aGVsbG8=")
        assert frame.channel is Channel.STDOUT
        assert frame.message == "hello"

    def test_empty_payload(self):
        frame = decode_frame(bytes([3]))
        assert frame.channel is Channel.ERROR
        assert frame.message == ""

    def test_utf8_payload(self):
        payload = base64.b64encode("héllo ✓".encode("utf-8"))
        assert decode_frame(b"1" + payload).message == "héllo ✓"

    def test_invalid_utf8_is_replaced(self):
        payload = base64.b64encode(b"ok\xff")
        assert decode_frame(b"1" + payload).message == "ok�"

    @pytest.mark.parametrize("index", [5, 9, ord("5"), ord("9"), 255])
    def test_unknown_channel(self, index):
        """Test out-of-range channel bytes are rejected."""
        with pytest.raises(FrameProtocolError) as exc_info:
            decode_frame(bytes([index]) + b"aGVsbG8=")
        assert exc_info.value.channel_index == index
        assert exc_info.value.code == "FRAME_PROTOCOL_ERROR"

    def test_non_byte_text(self):
        with pytest.raises(FrameProtocolError, match="not byte-encoded"):
            decode_frame("1\u20ac")

    def test_empty_message(self):
        with pytest.raises(FrameProtocolError, match="Empty frame"):
            decode_frame(b"")

    def test_invalid_base64(self):
        with pytest.raises(FrameProtocolError, match="Invalid base64"):
            decode_frame(b"1abc")


class TestEncodeFrame:
    """Test encoding of outbound frames."""

    def test_stdin(self):
        assert encode_frame(Channel.STDIN, "ls") == "0bHM="

    def test_bytes_payload(self):
        assert encode_frame(Channel.STDIN, b"ls") == "0bHM="

    def test_resize_is_decodable(self):
        """Test encoded frames decode back to the same channel."""
        frame = decode_frame(encode_frame(Channel.RESIZE, '{"Width": 80}'))
        assert frame.channel is Channel.RESIZE
        assert frame.message == '{"Width": 80}'


def test_subprotocol_name():
    assert SUBPROTOCOL == "base64.channel.k8s.io"
