"""
This module re-exports the connection-related models from the database package for use in connector code.
"""

from database.models import ConnectionRecord, UsedStateNonce  # noqa: F401

__all__ = ["ConnectionRecord", "UsedStateNonce"]
