from __future__ import annotations

import hashlib
import json
import typing


def json_signature(obj: typing.Any) -> str:
    return hashlib.sha256(
        json.dumps(obj, sort_keys=True, default=str).encode(),
        usedforsecurity=False,
    ).hexdigest()


def resource_name(*parts: str) -> str:
    return "-".join(part for part in parts if part)
