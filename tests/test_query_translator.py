"""Tests for filter parsing and store query translation."""

from iudx.catalogue.pipeline.query import (
    QueryPlan,
    TranslationFault,
    list_query,
    parse_filter_string,
    to_query,
)


def test_single_tag_is_lowercased_equality_on_shadow_field():
    plan = to_query({"tags": ["Air"]})
    assert isinstance(plan, QueryPlan)
    assert plan.query == {"_tags": "air"}


def test_multiple_tags_become_lowercased_membership():
    plan = to_query({"tags": ["A", "B"]})
    assert plan.query == {"_tags": {"$in": ["a", "b"]}}


def test_tags_key_matches_case_insensitively():
    plan = to_query({"Tags": ["Pollution"]})
    assert plan.query == {"_tags": "pollution"}


def test_repeated_non_tag_key_keeps_last_value():
    """Multi-valued plain filters are not OR-ed: the last value wins."""
    filters = parse_filter_string("color=red&color=blue")
    assert filters == {"color": ["red", "blue"]}
    plan = to_query(filters)
    assert plan.query == {"color": "blue"}


def test_plain_filter_values_keep_case():
    plan = to_query({"provider": ["IISc"]})
    assert plan.query == {"provider": "IISc"}


def test_attribute_filter_becomes_projection_not_query():
    plan = to_query({"attributeFilter": ["name", "id"], "item-type": ["provider"]})
    assert plan.query == {"item-type": "provider"}
    assert plan.projection == {"name": 1, "id": 1, "_id": 0}


def test_internal_identifier_is_always_excluded():
    assert to_query({"attributeFilter": ["_id", "name"]}).projection["_id"] == 0
    assert to_query({"city": ["pune"]}).projection == {"_id": 0}


def test_operator_keys_are_rejected():
    assert isinstance(to_query({"$where": ["1"]}), TranslationFault)


def test_non_string_values_are_rejected():
    assert isinstance(to_query({"color": [1, 2]}), TranslationFault)
    assert isinstance(to_query({"color": []}), TranslationFault)


def test_list_query_constrains_item_type():
    plan = list_query("resource-item")
    assert plan.query == {"item-type": "resource-item"}
    assert plan.projection == {"_id": 0}


def test_parse_filter_splits_grouped_values():
    assert parse_filter_string("tags=(Air,Pollution)&attributeFilter=[id,NAME]") == {
        "tags": ["Air", "Pollution"],
        "attributeFilter": ["id", "NAME"],
    }


def test_parse_filter_url_decodes_pairs():
    assert parse_filter_string("name=air%20quality&city=New+Delhi") == {
        "name": ["air quality"],
        "city": ["New Delhi"],
    }


def test_parse_filter_rejects_empty_and_malformed_strings():
    for raw in (None, "", "   ", "tags", "=value", "tags=", "tags=()", "a=1&&b=2"):
        assert isinstance(parse_filter_string(raw), TranslationFault), raw


def test_encoded_comma_stays_inside_value():
    assert parse_filter_string("name=Pune%2C%20India") == {"name": ["Pune, India"]}
    assert parse_filter_string("name=(Pune%2C+India,Delhi)") == {"name": ["Pune, India", "Delhi"]}


def test_encoded_group_markers_are_unwrapped():
    assert parse_filter_string("attributeFilter=%5Bid,name%5d") == {"attributeFilter": ["id", "name"]}
    assert parse_filter_string("tags=%28Air%29") == {"tags": ["Air"]}
