"""Tests for root operation field discovery."""
from __future__ import annotations

from graphql import parse
import pytest

from gateway_service.core.exceptions import SchemaCompositionError
from gateway_service.features.graphql.introspection import get_root_type_fields, parse_type_defs


@pytest.mark.unit
class TestGetRootTypeFields:
    """Tests for get_root_type_fields."""

    def test_query_fields_in_declaration_order(self):
        fields = get_root_type_fields("type Query { foo: String bar: Int }")

        assert fields == {"Query": ["foo", "bar"]}

    def test_extensions_count_as_declarations(self):
        fields = get_root_type_fields(
            """
            extend type Query { products: [String] }
            extend type Mutation { addProduct(name: String!): String }
            """
        )

        assert fields == {"Query": ["products"], "Mutation": ["addProduct"]}

    def test_non_root_types_are_ignored(self):
        fields = get_root_type_fields(
            """
            type Product { id: ID! }
            type Query { product: Product }
            """
        )

        assert fields == {"Query": ["product"]}

    def test_duplicate_field_names_are_kept_once(self):
        fields = get_root_type_fields(
            [
                "type Query { foo: String }",
                "extend type Query { bar: String }",
                "extend type Query { foo: String }",
            ]
        )

        assert fields == {"Query": ["foo", "bar"]}

    def test_subscription_root(self):
        fields = get_root_type_fields("type Subscription { productAdded: String }")

        assert fields == {"Subscription": ["productAdded"]}

    def test_schema_block_renames_root_types(self):
        fields = get_root_type_fields(
            """
            schema { query: RootQuery }
            type RootQuery { foo: String }
            type Query { ignored: String }
            """
        )

        assert fields == {"RootQuery": ["foo"]}

    def test_root_type_without_fields_is_omitted(self):
        assert get_root_type_fields("type Query") == {}

    def test_accepts_parsed_documents(self):
        fields = get_root_type_fields(parse("type Query { foo: String }"))

        assert fields == {"Query": ["foo"]}

    def test_invalid_sdl_raises(self):
        with pytest.raises(SchemaCompositionError) as exc_info:
            get_root_type_fields("type Query {")

        assert exc_info.value.type == "schema-composition-failed"


def test_parse_type_defs_skips_blank_fragments() -> None:
    documents = parse_type_defs(["", "   ", "type Query { foo: String }"])

    assert len(documents) == 1


def test_parse_type_defs_rejects_unknown_fragment_types() -> None:
    with pytest.raises(SchemaCompositionError, match="Unsupported schema fragment type: int"):
        parse_type_defs([42])  # type: ignore[list-item]
