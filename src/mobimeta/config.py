"""
mobimeta - Reader Configuration
===============================

Decoding options shared by the library and the CLI. Configuration can
come from:
- Default values (defined here)
- Environment variables (ReaderConfig.from_env)
- Command-line options (the CLI overrides individual fields)
"""

from dataclasses import dataclass
import codecs
import os


# Text encodings declared in the MOBI header (field at record0+28)
TEXT_ENCODINGS = {
    1252: "cp1252",
    65001: "utf-8",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class ReaderConfig:
    """
    Options controlling how a container is decoded.

    Attributes:
        checked_record_index: Validate PDB record indices against the
            declared record count before reading the record table
            (default: False, read the table blindly)
        fallback_encoding: Codec used to turn title and EXTH payloads into
            text when the MOBI header declares an unknown encoding
            (default: "cp1252")
    """

    checked_record_index: bool = False
    fallback_encoding: str = "cp1252"

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        """
        Create ReaderConfig from environment variables.

        Environment variables (all optional):
            MOBIMETA_CHECKED_RECORD_INDEX: "1", "true", "yes" or "on"
            MOBIMETA_FALLBACK_ENCODING: Any codec name Python knows

        Returns:
            ReaderConfig with values from environment variables
        """
        config = cls()

        if checked := os.environ.get("MOBIMETA_CHECKED_RECORD_INDEX"):
            config.checked_record_index = checked.strip().lower() in _TRUE_VALUES

        if encoding := os.environ.get("MOBIMETA_FALLBACK_ENCODING"):
            try:
                config.fallback_encoding = codecs.lookup(encoding).name
            except LookupError:
                pass  # Ignore unknown codecs

        return config
