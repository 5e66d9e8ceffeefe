"""
Reader Configuration Tests
==========================
"""

from mobimeta.config import ReaderConfig


class TestReaderConfig:
    """Tests for defaults and environment overrides."""

    def test_defaults(self):
        config = ReaderConfig()
        assert config.checked_record_index is False
        assert config.fallback_encoding == "cp1252"

    def test_from_env_empty(self, monkeypatch):
        monkeypatch.delenv("MOBIMETA_CHECKED_RECORD_INDEX", raising=False)
        monkeypatch.delenv("MOBIMETA_FALLBACK_ENCODING", raising=False)
        assert ReaderConfig.from_env() == ReaderConfig()

    def test_from_env_checked(self, monkeypatch):
        for value in ("1", "true", "YES", "on"):
            monkeypatch.setenv("MOBIMETA_CHECKED_RECORD_INDEX", value)
            assert ReaderConfig.from_env().checked_record_index is True
        monkeypatch.setenv("MOBIMETA_CHECKED_RECORD_INDEX", "no")
        assert ReaderConfig.from_env().checked_record_index is False

    def test_from_env_encoding(self, monkeypatch):
        monkeypatch.setenv("MOBIMETA_FALLBACK_ENCODING", "Latin-1")
        assert ReaderConfig.from_env().fallback_encoding == "iso8859-1"

    def test_from_env_unknown_encoding_ignored(self, monkeypatch):
        monkeypatch.setenv("MOBIMETA_FALLBACK_ENCODING", "not-a-codec")
        assert ReaderConfig.from_env().fallback_encoding == "cp1252"
