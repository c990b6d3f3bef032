from __future__ import annotations

import pytest

from eventplan.core.encoding import (
    DecodeError,
    b64url_decode,
    b64url_encode,
    decode_text,
    encode_text,
)


def test_b64url_encode_strips_padding_and_uses_url_alphabet() -> None:
    encoded = b64url_encode(b"\xfb\xff\xfe")

    assert encoded == "-__-"
    assert b64url_encode(b"a") == "YQ"


def test_b64url_decode_restores_missing_padding() -> None:
    assert b64url_decode("YQ") == b"a"
    assert b64url_decode("YWI") == b"ab"
    assert b64url_decode("") == b""


@pytest.mark.parametrize("raw", [b"", b"\x00", bytes(range(256)), "héllo".encode()])
def test_b64url_roundtrip(raw: bytes) -> None:
    assert b64url_decode(b64url_encode(raw)) == raw


@pytest.mark.parametrize("value", ["ab+c", "ab/c", "abc=", "a b", "abcde", "Y\n"])
def test_b64url_decode_rejects_malformed_input(value: str) -> None:
    with pytest.raises(DecodeError):
        b64url_decode(value)


def test_text_codec_uses_utf8() -> None:
    assert encode_text("é") == b"\xc3\xa9"
    assert decode_text(b"\xc3\xa9") == "é"


def test_decode_text_rejects_invalid_utf8() -> None:
    with pytest.raises(DecodeError):
        decode_text(b"\xff\xfe")
