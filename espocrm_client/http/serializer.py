# espocrm_client/http/serializer.py
"""
Params -> query string, in the bracket notation PHP's http_build_query
produces for nested arrays:

    offset=0&where%5B0%5D%5Btype%5D=isTrue&where%5B0%5D%5Battribute%5D=x

Keys are built from a path of segments (["where", 0, "value", 2] ->
"where[0][value][2]"), then the whole key and the value are each
percent-encoded on their own.
"""
from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple, Union

from espocrm_client.errors import EncodingError
from espocrm_client.models.types import Params, Value, ValueKind, Where
from espocrm_client.util.url import bracket_key, encode_component

PathSegment = Union[str, int]
Segment = Tuple[str, str]


def _walk(path: List[PathSegment], value: Value) -> Iterator[Segment]:
    if value.kind is ValueKind.MAP:
        for key, child in value.payload:
            yield from _walk(path + [key], child)
    elif value.kind is ValueKind.ARRAY:
        for index, child in enumerate(value.payload):
            yield from _walk(path + [index], child)
    else:
        yield bracket_key(path), value.as_text()


def _where_segments(where: Sequence[Where]) -> Iterator[Segment]:
    for i, w in enumerate(where):
        yield from _walk(["where", i], w.as_value())


def iter_segments(params: Params) -> Iterator[Segment]:
    """
    Un-encoded (key, value) pairs in emission order:
    select, orderBy, order, offset, boolFilterList, maxSize, primaryFilter, where
    """
    if params.select is not None:
        yield "select", params.select
    if params.order_by is not None:
        yield "orderBy", params.order_by
    if params.order is not None:
        yield "order", params.order.token()
    if params.offset is not None:
        yield "offset", str(params.offset)
    if params.bool_filter_list is not None:
        yield from _walk(["boolFilterList"], Value.array(params.bool_filter_list))
    if params.max_size is not None:
        yield "maxSize", str(params.max_size)
    if params.primary_filter is not None:
        yield "primaryFilter", params.primary_filter
    if params.where is not None:
        yield from _where_segments(params.where)


def serialize(params: Params) -> str:
    """Render params as a query string (no leading '?'). Empty Params -> ""."""
    try:
        parts = [
            f"{encode_component(k)}={encode_component(v)}"
            for k, v in iter_segments(params)
        ]
    except UnicodeEncodeError as e:
        raise EncodingError(f"Unable to percent-encode query parameter: {e}") from e
    return "&".join(parts)
