"""
Centralized ID generation for marktrace.

Correlation IDs bind one intercepted call's start mark, end mark and
captured record together, so they must be unique across concurrent calls.
"""

import secrets
import uuid
from typing import Literal, Optional


IDFormat = Literal["hex32", "uuid4"]


class IDGenerator:
    """
    Central ID generator.

    - uuid4 (36 chars, dashed) is the default: correlation IDs end up inside
      mark names such as ``start:redis-<id>`` and stay readable there.
    - hex32 is available for error IDs and other internal tracking.
    """

    DEFAULT_FORMAT: IDFormat = "uuid4"

    @staticmethod
    def generate(format: Optional[IDFormat] = None) -> str:
        """
        Generates an ID in the requested format.

        Examples:
            >>> IDGenerator.generate("hex32")
            'a3f4b2c1d5e6f7a8b9c0d1e2f3a4b5c6'

            >>> IDGenerator.generate("uuid4")
            '550e8400-e29b-41d4-a716-446655440000'
        """
        if format is None:
            format = IDGenerator.DEFAULT_FORMAT

        if format == "hex32":
            return secrets.token_hex(16)
        elif format == "uuid4":
            return str(uuid.uuid4())
        else:
            raise ValueError(f"Unsupported ID format: {format}")

    @staticmethod
    def is_valid_id(id_str: str, format: Optional[IDFormat] = None) -> bool:
        """
        Checks whether a string is a valid ID.

        Args:
            id_str: String to check
            format: Expected format (None to auto-detect)
        """
        if not id_str:
            return False

        try:
            if format == "hex32" or (format is None and "-" not in id_str):
                return len(id_str) == 32 and all(c in "0123456789abcdef" for c in id_str.lower())
            uuid.UUID(id_str)
            return len(id_str) == 36
        except (ValueError, TypeError):
            return False


def generate_id(format: Optional[IDFormat] = None) -> str:
    """Convenience alias for IDGenerator.generate()."""
    return IDGenerator.generate(format)


def generate_correlation_id() -> str:
    """Mints a fresh correlation ID for one intercepted call."""
    return IDGenerator.generate("uuid4")


def is_valid_id(id_str: str) -> bool:
    """Convenience alias for IDGenerator.is_valid_id()."""
    return IDGenerator.is_valid_id(id_str)
