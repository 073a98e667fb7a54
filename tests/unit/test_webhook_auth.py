"""Unit tests for webhook signature verification."""

import hashlib
import hmac

import pytest
from workplace_webhook.auth import WebhookAuth, sign_payload, verify_signature
from workplace_webhook.exceptions import (
    AuthenticationFailure,
    MalformedSignature,
    MissingSignature,
    SignatureMismatch,
)


class TestVerifySignature:
    """Tests for the verify_signature function."""

    def setup_method(self):
        """Set up test fixtures."""
        self.secret = "test-app-secret"
        self.payload = b'{"object": "page", "entry": []}'

    def test_valid_signature_passes(self):
        """Test that a canonical signature verifies."""
        signature = sign_payload(self.payload, self.secret)

        assert verify_signature(signature, self.secret, self.payload) is None

    def test_missing_signature(self):
        """Test that None and empty headers raise MissingSignature."""
        with pytest.raises(MissingSignature):
            verify_signature(None, self.secret, self.payload)

        with pytest.raises(MissingSignature):
            verify_signature("", self.secret, self.payload)

    def test_signature_without_separator_is_malformed(self):
        """Test that a header without '=' raises MalformedSignature."""
        digest = hmac.new(self.secret.encode(), self.payload, hashlib.sha1).hexdigest()

        with pytest.raises(MalformedSignature):
            verify_signature(digest, self.secret, self.payload)

    def test_wrong_hash_is_mismatch(self):
        """Test that a wrong digest raises SignatureMismatch."""
        with pytest.raises(SignatureMismatch):
            verify_signature("sha1=deadbeef", self.secret, self.payload)

    def test_single_bit_mutation_is_mismatch(self):
        """Test that flipping any single bit of the body breaks the signature."""
        signature = sign_payload(self.payload, self.secret)

        for index in (0, len(self.payload) // 2, len(self.payload) - 1):
            for bit in (0, 3, 7):
                mutated = bytearray(self.payload)
                mutated[index] ^= 1 << bit
                with pytest.raises(SignatureMismatch):
                    verify_signature(signature, self.secret, bytes(mutated))

    def test_wrong_secret_is_mismatch(self):
        """Test that a signature made with another secret is rejected."""
        signature = sign_payload(self.payload, "other-secret")

        with pytest.raises(SignatureMismatch):
            verify_signature(signature, self.secret, self.payload)

    def test_hash_is_taken_after_first_separator(self):
        """Test that only the first '=' separates algorithm from hash."""
        signature = sign_payload(self.payload, self.secret) + "=extra"

        with pytest.raises(SignatureMismatch):
            verify_signature(signature, self.secret, self.payload)

    def test_failures_share_base_class(self):
        """Test that all verification failures are AuthenticationFailure."""
        assert issubclass(MissingSignature, AuthenticationFailure)
        assert issubclass(MalformedSignature, AuthenticationFailure)
        assert issubclass(SignatureMismatch, AuthenticationFailure)

    def test_empty_body_can_be_signed(self):
        """Test that an empty body has a valid signature too."""
        signature = sign_payload(b"", self.secret)

        verify_signature(signature, self.secret, b"")


class TestWebhookAuth:
    """Tests for WebhookAuth HMAC-SHA1 authentication."""

    def setup_method(self):
        """Set up test fixtures."""
        self.secret = "test-secret-key-12345"
        self.auth = WebhookAuth(self.secret)

    def test_verify_signature_valid(self):
        """Test that a valid signature is accepted."""
        payload = b'{"object": "group"}'
        signature = self.auth.sign_payload(payload)

        assert self.auth.verify_signature(payload, signature) is True

    def test_verify_signature_invalid(self):
        """Test that an invalid signature is rejected."""
        payload = b'{"object": "group"}'

        assert self.auth.verify_signature(payload, "sha1=invalid") is False
        assert self.auth.verify_signature(payload, "invalid") is False

    def test_verify_signature_missing(self):
        """Test that missing signature is rejected."""
        assert self.auth.verify_signature(b"{}", None) is False

    def test_sign_payload_format(self):
        """Test that sign_payload returns sha1=<40 hex chars>."""
        signature = self.auth.sign_payload(b'{"object": "user"}')

        algorithm, _, digest = signature.partition("=")
        assert algorithm == "sha1"
        assert len(digest) == 40
        assert all(c in "0123456789abcdef" for c in digest)

    def test_sign_payload_matches_hmac_sha1(self):
        """Test that the digest is plain HMAC-SHA1 of the body."""
        payload = b'{"object": "user"}'
        expected = hmac.new(self.secret.encode(), payload, hashlib.sha1).hexdigest()

        assert self.auth.sign_payload(payload) == f"sha1={expected}"

    def test_verify_signature_case_sensitive(self):
        """Test that an upper-cased digest is rejected."""
        payload = b'{"object": "page"}'
        algorithm, _, digest = self.auth.sign_payload(payload).partition("=")

        assert self.auth.verify_signature(payload, f"{algorithm}={digest.upper()}") is False

    def test_init_accepts_bytes_secret(self):
        """Test that __init__ accepts bytes secret."""
        auth = WebhookAuth(b"bytes-secret-key")
        signature = auth.sign_payload(b"test")

        assert auth.verify_signature(b"test", signature) is True
        assert WebhookAuth("bytes-secret-key").sign_payload(b"test") == signature

    def test_verify_signature_with_unicode_secret(self):
        """Test that unicode secrets work correctly."""
        auth = WebhookAuth("unicode-secret-密钥")
        signature = auth.sign_payload(b"{}")

        assert auth.verify_signature(b"{}", signature) is True
