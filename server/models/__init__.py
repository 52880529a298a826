"""
Pydantic models for the MockDB server.

All data shapes defined here. No imports from routes.
"""

from server.models.requests import SDK_ENVELOPE_KEYS, BatchRequest, BatchRequestItem, FindParams

__all__ = [
    "SDK_ENVELOPE_KEYS",
    "BatchRequest",
    "BatchRequestItem",
    "FindParams",
]
