"""
Tests for the shared-password gate.
"""

import pytest

from contigos.auth import check_password
from contigos.config import get_settings


class TestCheckPassword:
    """Tests for check_password."""

    def test_correct_password(self):
        assert check_password("geheim", expected="geheim") is True

    def test_wrong_password(self):
        assert check_password("falsch", expected="geheim") is False

    @pytest.mark.parametrize("candidate", ["", None])
    def test_empty_candidate(self, candidate):
        assert check_password(candidate, expected="geheim") is False

    def test_empty_configured_password_denies(self):
        assert check_password("", expected="") is False

    def test_reads_password_from_environment(self, monkeypatch):
        monkeypatch.setenv("APP_PASSWORD", "aus-der-umgebung")
        get_settings.cache_clear()
        assert check_password("aus-der-umgebung") is True
        assert check_password("geheim") is False

    def test_unset_password_denies_everything(self, monkeypatch):
        monkeypatch.delenv("APP_PASSWORD", raising=False)
        monkeypatch.chdir("/")  # keep a local .env out of the way
        get_settings.cache_clear()
        assert check_password("anything") is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
