# tests/test_serializer.py
import pytest

from espocrm_client.errors import EncodingError
from espocrm_client.http.serializer import iter_segments, serialize
from espocrm_client.models.types import FilterType, Order, Params, Value, Where

WHERE_IS_TRUE = (
    "offset=0&where%5B0%5D%5Btype%5D=isTrue&where%5B0%5D%5Battribute%5D=exampleBoolean"
)


def _is_true(value=None):
    return Where(FilterType.IsTrue, "exampleBoolean", value)


def test_empty_params_serialize_to_empty_string():
    assert serialize(Params()) == ""


def test_offset_and_order():
    out = serialize(Params().set_offset(0).set_order(Order.Desc).build())
    assert set(out.split("&")) == {"order=desc", "offset=0"}


def test_where_without_value():
    params = Params().set_offset(0).set_where([_is_true()]).build()
    assert serialize(params) == WHERE_IS_TRUE


def test_where_with_string_value():
    params = Params().set_offset(0).set_where([_is_true(Value.string("a"))]).build()
    assert serialize(params) == WHERE_IS_TRUE + "&where%5B0%5D%5Bvalue%5D=a"


def test_where_with_array_value():
    # Same output as PHP:
    #   http_build_query(['offset' => 0, 'where' => [[
    #       'type' => 'isTrue', 'attribute' => 'exampleBoolean',
    #       'value' => ['a', 'b', 'c']]]])
    value = Value.array([Value.string("a"), Value.string("b"), Value.string("c")])
    params = Params().set_offset(0).set_where([_is_true(value)]).build()
    assert serialize(params) == (
        WHERE_IS_TRUE
        + "&where%5B0%5D%5Bvalue%5D%5B0%5D=a"
        + "&where%5B0%5D%5Bvalue%5D%5B1%5D=b"
        + "&where%5B0%5D%5Bvalue%5D%5B2%5D=c"
    )


def test_scalar_rendering():
    params = Params().set_where(
        [
            Where(FilterType.Equals, "isActive", Value.boolean(True)),
            Where(FilterType.GreaterThan, "amount", Value.integer(-15)),
        ]
    )
    segments = list(iter_segments(params))
    assert ("where[0][value]", "true") in segments
    assert ("where[1][value]", "-15") in segments


def test_field_emission_order():
    params = (
        Params()
        .set_where([Where(FilterType.IsNull, "deletedAt")])
        .set_primary_filter("active")
        .set_max_size(20)
        .set_bool_filter_list(["onlyMy", "followed"])
        .set_offset(40)
        .set_order(Order.Asc)
        .set_order_by("createdAt")
        .set_select("name,emailAddress")
    )
    keys = [k for k, _ in iter_segments(params)]
    assert keys == [
        "select",
        "orderBy",
        "order",
        "offset",
        "boolFilterList[0]",
        "boolFilterList[1]",
        "maxSize",
        "primaryFilter",
        "where[0][type]",
        "where[0][attribute]",
    ]
    assert serialize(params) == (
        "select=name%2CemailAddress&orderBy=createdAt&order=asc&offset=40"
        "&boolFilterList%5B0%5D=onlyMy&boolFilterList%5B1%5D=followed"
        "&maxSize=20&primaryFilter=active"
        "&where%5B0%5D%5Btype%5D=isNull&where%5B0%5D%5Battribute%5D=deletedAt"
    )


def test_multiple_conditions_keep_list_order():
    params = Params().set_where(
        [
            Where(FilterType.Equals, "b", "2"),
            Where(FilterType.Equals, "a", "1"),
        ]
    )
    keys = [k for k, _ in iter_segments(params)]
    assert keys == [
        "where[0][type]",
        "where[0][attribute]",
        "where[0][value]",
        "where[1][type]",
        "where[1][attribute]",
        "where[1][value]",
    ]


def test_spaces_encode_as_percent_20():
    params = Params().set_where([Where(FilterType.Contains, "name", "Acme Corp")])
    assert serialize(params).endswith("where%5B0%5D%5Bvalue%5D=Acme%20Corp")


def test_reserved_and_non_ascii_characters_are_encoded():
    params = Params().set_primary_filter("a&b=c/é~")
    assert serialize(params) == "primaryFilter=a%26b%3Dc%2F%C3%A9~"


def test_nested_group_recurses_into_maps():
    group = Where(
        FilterType.Or,
        "status",
        [
            Where(FilterType.Equals, "status", "New").as_value(),
            Where(FilterType.In, "stage", ["Won", "Lost"]).as_value(),
        ],
    )
    keys = [k for k, _ in iter_segments(Params().set_where([group]))]
    assert keys == [
        "where[0][type]",
        "where[0][attribute]",
        "where[0][value][0][type]",
        "where[0][value][0][attribute]",
        "where[0][value][0][value]",
        "where[0][value][1][type]",
        "where[0][value][1][attribute]",
        "where[0][value][1][value][0]",
        "where[0][value][1][value][1]",
    ]


def test_empty_array_value_emits_nothing():
    params = Params().set_where([Where(FilterType.In, "status", [])])
    assert serialize(params) == (
        "where%5B0%5D%5Btype%5D=in&where%5B0%5D%5Battribute%5D=status"
    )


def test_serialization_is_deterministic():
    params = (
        Params()
        .set_offset(0)
        .set_where([Where(FilterType.ArrayAnyOf, "tags", ["x", "y"])])
    )
    assert serialize(params) == serialize(params)


def test_unencodable_text_raises_encoding_error():
    params = Params().set_primary_filter("bad\ud800")
    with pytest.raises(EncodingError):
        serialize(params)
