"""Tests for Ed25519 signing primitives."""

import time

import pytest

from botid.core.crypto import (
    generate_keypair,
    is_timestamp_valid,
    public_key_from_private,
    sign,
    verify,
)
from botid.core.protocol import (
    build_message,
    normalize_headers,
    normalize_url,
    raw_request_path,
)


def test_keypair_lengths_and_uniqueness():
    """Keys are fixed-length hex DER and differ between calls."""
    public_a, private_a = generate_keypair()
    public_b, private_b = generate_keypair()

    assert len(public_a) == 88
    assert len(private_a) == 96
    assert public_a != public_b
    assert private_a != private_b
    bytes.fromhex(public_a)
    bytes.fromhex(private_a)


def test_public_key_from_private_matches(keypair):
    """Deriving the public key gives the generated one."""
    public_key, private_key = keypair
    assert public_key_from_private(private_key) == public_key


@pytest.mark.parametrize(
    "message",
    ["", "hello", "1700000000.bot_abc.GET./api/data", "ünïcødé ✓"],
)
def test_sign_verify_roundtrip(keypair, message):
    """A signature verifies under the matching public key."""
    public_key, private_key = keypair
    signature = sign(message, private_key)

    assert len(signature) == 128
    assert verify(message, signature, public_key) is True


def test_signing_is_deterministic(keypair):
    """Ed25519 signatures are deterministic."""
    _, private_key = keypair
    assert sign("same", private_key) == sign("same", private_key)


def test_tampered_message_rejected(keypair):
    """A signature over one message does not verify another."""
    public_key, private_key = keypair
    signature = sign("message one", private_key)
    assert verify("message two", signature, public_key) is False


def test_wrong_key_rejected(keypair):
    """A signature does not verify under an unrelated key."""
    _, private_key = keypair
    other_public, _ = generate_keypair()
    signature = sign("hello", private_key)
    assert verify("hello", signature, other_public) is False


@pytest.mark.parametrize(
    "signature,public_key",
    [
        ("not-hex", None),
        ("abcd", None),
        (None, "not-hex"),
        (None, "deadbeef"),
        (None, ""),
    ],
)
def test_verify_never_raises_on_garbage(keypair, signature, public_key):
    """Malformed hex, keys or signatures give False."""
    real_public, private_key = keypair
    real_signature = sign("hello", private_key)

    assert (
        verify("hello", signature or real_signature, public_key or real_public)
        is False
    )


def test_verify_rejects_private_key_as_public(keypair):
    """Private key material is not accepted as a public key."""
    _, private_key = keypair
    assert verify("hello", sign("hello", private_key), private_key) is False


def test_sign_rejects_malformed_private_key():
    """A broken private key is a caller error."""
    with pytest.raises(ValueError):
        sign("hello", "zz")


def test_timestamp_window_boundaries():
    """The replay window is inclusive at +/-300 seconds."""
    now = int(time.time())
    for offset in (-300, -1, 0, 1, 300):
        assert is_timestamp_valid(now + offset, now=now) is True
    for offset in (-301, 301):
        assert is_timestamp_valid(now + offset, now=now) is False


def test_timestamp_defaults_to_current_time():
    assert is_timestamp_valid(int(time.time())) is True
    assert is_timestamp_valid(0) is False


def test_build_message_format():
    """Method is upper-cased and only the URL path is signed."""
    assert (
        build_message(1700000000, "bot_1", "post", "https://x.test/a/b?q=1#frag")
        == "1700000000.bot_1.POST./a/b"
    )
    assert build_message(1, "bot_1", "get", "/items?page=2") == "1.bot_1.GET./items"
    assert build_message(1, "bot_1", "GET", "https://x.test") == "1.bot_1.GET./"


def test_build_message_keeps_raw_path():
    """Encoded characters and repeated slashes are signed as written."""
    assert build_message(1, "b", "GET", "//foo/bar") == "1.b.GET.//foo/bar"
    assert build_message(1, "b", "GET", "/a%20b?x=1#f") == "1.b.GET./a%20b"
    assert build_message(1, "b", "GET", "https://x.test/a%20b") == "1.b.GET./a%20b"
    assert raw_request_path(b"//x/y?q=1") == "//x/y"
    assert raw_request_path(b"") == "/"


def test_normalize_headers():
    """Names are lower-cased and lists collapse to the first value."""
    headers = normalize_headers(
        {"X-BotID": ["bot_1", "bot_2"], "X-Empty": "", "Other": None, "A": "b"}
    )
    assert headers == {"x-botid": "bot_1", "a": "b"}


def test_normalize_url():
    assert normalize_url(None) == "https://botid.net"
    assert normalize_url("https://r.test///") == "https://r.test"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
