"""Tests for password hashing and session tokens."""

import jwt as pyjwt
import pytest

from worktrack_api.core.security import create_session_token, decode_token, hash_password, verify_password


class TestPasswordHashing:
    """Tests for hash_password and verify_password."""

    @pytest.mark.parametrize("password", ["correct horse battery", "a", "pässwörd-ünïcode", "x" * 200])
    def test_hash_round_trip(self, password: str) -> None:
        hashed = hash_password(password)
        assert verify_password(password, hashed) is True

    def test_wrong_password_rejected(self) -> None:
        hashed = hash_password("CorrectPassword")
        assert verify_password("WrongPassword", hashed) is False
        assert verify_password("CorrectPassword ", hashed) is False

    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("SecurePassword123!")
        assert "SecurePassword123!" not in hashed

    def test_same_password_produces_different_hashes(self) -> None:
        """A fresh salt is drawn per hash."""
        hash1 = hash_password("SamePassword")
        hash2 = hash_password("SamePassword")
        assert hash1 != hash2
        assert verify_password("SamePassword", hash1) is True
        assert verify_password("SamePassword", hash2) is True

    def test_uses_scrypt(self) -> None:
        assert hash_password("anything").startswith("$scrypt$")

    @pytest.mark.parametrize("stored", ["", "not-a-hash", "deadbeef.cafebabe", "$scrypt$garbage", None])
    def test_malformed_stored_hash_fails_closed(self, stored: str | None) -> None:
        assert verify_password("anything", stored) is False


class TestSessionTokens:
    """Tests for create_session_token and decode_token."""

    SECRET = "test-secret-key-for-testing-32chars"

    def test_token_carries_user_id_role_and_flag(self) -> None:
        token = create_session_token(42, "admin", self.SECRET, needs_password_change=True)
        payload = decode_token(token, self.SECRET)
        assert payload["sub"] == "42"
        assert payload["role"] == "admin"
        assert payload["npc"] is True
        assert payload["type"] == "session"

    def test_flag_defaults_to_false(self) -> None:
        payload = decode_token(create_session_token(1, "employee", self.SECRET), self.SECRET)
        assert payload["npc"] is False

    def test_expired_token_rejected(self) -> None:
        token = create_session_token(1, "employee", self.SECRET, expires_minutes=-1)
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_token(token, self.SECRET)

    def test_wrong_secret_key_rejected(self) -> None:
        token = create_session_token(1, "employee", self.SECRET)
        with pytest.raises(pyjwt.InvalidSignatureError):
            decode_token(token, "completely-wrong-secret-of-some-length")

    def test_malformed_token_string(self) -> None:
        with pytest.raises(pyjwt.DecodeError):
            decode_token("not.a.valid.token.at.all", self.SECRET)
