"""Serialization helpers for engine log output."""

from modal_engine.diagnostics.json_codec import dumps_bytes, dumps_text

__all__ = ["dumps_bytes", "dumps_text"]
