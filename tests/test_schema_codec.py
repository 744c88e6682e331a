import pytest

from iudx.catalogue.services.schema_codec import decode_name, decode_schema, encode_name, encode_schema


SCHEMA = {
    "id": "schema-1",
    "$schema": "http://json-schema.org/draft-07/schema#",
    "properties": {
        "$ref": "#/definitions/point",
        "nested": [{"$id": "inner", "value": "$keep"}],
    },
}


def test_encoded_schema_has_no_reserved_field_names():
    encoded = encode_schema(SCHEMA)

    def keys(value):
        if isinstance(value, dict):
            for key, item in value.items():
                yield key
                yield from keys(item)
        elif isinstance(value, list):
            for item in value:
                yield from keys(item)

    assert all("$" not in key for key in keys(encoded))
    # values are untouched
    assert encoded["properties"]["nested"][0]["value"] == "$keep"
    assert encoded["&dschema"] == SCHEMA["$schema"]


@pytest.mark.parametrize(
    "document",
    [
        SCHEMA,
        {"id": "plain", "type": "object", "required": ["a", "b"]},
        {"id": "amp", "a&b": 1, "&d": {"$&": "&a"}},
        {},
    ],
)
def test_decode_inverts_encode(document):
    assert decode_schema(encode_schema(document)) == document


def test_names_with_escape_character_do_not_collide():
    assert encode_name("&d") != encode_name("$")
    assert decode_name(encode_name("&d")) == "&d"


def test_unknown_escape_sequences_are_left_alone():
    assert decode_name("a&b") == "a&b"
    assert decode_name("trailing&") == "trailing&"
