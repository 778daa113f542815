from __future__ import annotations

import json

from modal_engine.diagnostics import dumps_bytes, dumps_text


def test_dumps_text_handles_non_string_keys_and_objects() -> None:
    class Strategy:
        def __repr__(self) -> str:
            return "Strategy()"

    payload = json.loads(dumps_text({1: "one", "body": Strategy()}))

    assert payload == {"1": "one", "body": "Strategy()"}


def test_dumps_bytes_options() -> None:
    raw = dumps_bytes({"b": 1, "a": 2}, pretty=True, sort_keys=True)
    assert raw.startswith(b"{\n")
    assert raw.index(b'"a"') < raw.index(b'"b"')
