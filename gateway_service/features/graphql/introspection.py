"""Root operation field discovery for schema fragments."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Any

from graphql import (
    DocumentNode,
    GraphQLError,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    parse,
)

from gateway_service.core.exceptions import SchemaCompositionError

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_ROOT_TYPE_NAMES", "get_root_type_fields", "parse_type_defs"]

DEFAULT_ROOT_TYPE_NAMES: dict[OperationType, str] = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}


def parse_type_defs(type_defs: str | DocumentNode | Sequence[str | DocumentNode]) -> list[DocumentNode]:
    """Parse one or many schema fragments into documents.

    Raises:
        SchemaCompositionError: If a fragment is not valid SDL or has an
            unsupported type.
    """
    fragments: Sequence[Any] = (
        [type_defs] if isinstance(type_defs, str | DocumentNode) else type_defs
    )
    documents: list[DocumentNode] = []
    for fragment in fragments:
        if isinstance(fragment, DocumentNode):
            documents.append(fragment)
        elif isinstance(fragment, str):
            if not fragment.strip():
                continue
            try:
                documents.append(parse(fragment))
            except GraphQLError as e:
                raise SchemaCompositionError(
                    f"Invalid GraphQL schema fragment: {e.message}",
                    extra={"locations": [str(loc) for loc in e.locations or []]},
                ) from e
        else:
            raise SchemaCompositionError(
                f"Unsupported schema fragment type: {type(fragment).__name__}",
            )
    return documents


def get_root_type_fields(
    type_defs: str | DocumentNode | Sequence[str | DocumentNode],
) -> dict[str, list[str]]:
    """Collect field names declared on root operation types.

    Both type definitions and ``extend type`` blocks count. A ``schema { }``
    block in the fragments renames the root types it declares.

    Args:
        type_defs: Schema fragment text, a parsed document, or a sequence of them

    Returns:
        Root type name mapped to its field names in declaration order,
        without duplicates. Root types without fields are omitted.

    Example:
        >>> get_root_type_fields("type Query { foo: String }")
        {'Query': ['foo']}
    """
    documents = parse_type_defs(type_defs)

    root_names = dict(DEFAULT_ROOT_TYPE_NAMES)
    for document in documents:
        for definition in document.definitions:
            if isinstance(definition, SchemaDefinitionNode | SchemaExtensionNode):
                for operation_type in definition.operation_types or ():
                    root_names[operation_type.operation] = operation_type.type.name.value

    root_type_names = set(root_names.values())
    fields: dict[str, list[str]] = {}
    for document in documents:
        for definition in document.definitions:
            if not isinstance(definition, ObjectTypeDefinitionNode | ObjectTypeExtensionNode):
                continue
            type_name = definition.name.value
            if type_name not in root_type_names:
                continue
            names = fields.setdefault(type_name, [])
            for field_node in definition.fields or ():
                if field_node.name.value not in names:
                    names.append(field_node.name.value)

    return {type_name: names for type_name, names in fields.items() if names}
