"""
Unit tests for identity generation.
"""

import hashlib

import pytest

from relaychat.identity import DEFAULT_IDENTITY_LENGTH, MAX_IDENTITY_LENGTH, generate_identity


class TestGenerateIdentity:
    """Tests for generate_identity()."""

    def test_matches_sha256_of_big_endian_port(self):
        expected = hashlib.sha256(b"\x1f\x90").hexdigest()[:DEFAULT_IDENTITY_LENGTH]
        assert generate_identity(8080) == expected

    def test_is_deterministic(self):
        assert generate_identity(54321, 16) == generate_identity(54321, 16)

    @pytest.mark.parametrize("length", [1, 10, 32, MAX_IDENTITY_LENGTH])
    def test_length(self, length: int):
        identity = generate_identity(40000, length)
        assert len(identity) == length
        assert all(c in "0123456789abcdef" for c in identity)

    def test_shorter_identity_is_prefix_of_longer(self):
        assert generate_identity(1234, MAX_IDENTITY_LENGTH).startswith(generate_identity(1234, 8))

    def test_different_ports_differ(self):
        assert generate_identity(50000) != generate_identity(50001)

    def test_same_port_reused_gives_same_identity(self):
        # A peer reconnecting from a port used earlier is indistinguishable by name.
        first = generate_identity(60000)
        second = generate_identity(60000)
        assert first == second

    def test_max_length_is_digest_hex_length(self):
        assert MAX_IDENTITY_LENGTH == 64
