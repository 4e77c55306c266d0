"""Ingestion layer.

This package turns rtl_433 write payloads into normalized samples and feeds
them to the state store.
"""

__all__: list[str] = []
