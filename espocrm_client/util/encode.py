# espocrm_client/util/encode.py
from __future__ import annotations

import dataclasses
import json
from typing import Any

from pydantic import BaseModel

from espocrm_client.errors import EncodingError
from espocrm_client.models.types import Params, Value


def _plain(obj: Any) -> Any:
    if isinstance(obj, Value):
        return obj.to_python()
    if isinstance(obj, Params):
        return obj.to_dict()
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        # shallow, so nested Values/Params still go through this hook
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_json(payload: Any) -> bytes:
    """UTF-8 JSON request body. Raises EncodingError, never returns partial output."""
    try:
        return json.dumps(
            payload, default=_plain, ensure_ascii=False, allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError, UnicodeEncodeError) as e:
        raise EncodingError(f"Unable to encode request body as JSON: {e}") from e
