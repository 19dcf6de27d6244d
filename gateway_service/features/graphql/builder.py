"""Building the executable server configuration from the aggregate.

Resolver maps use the ``(parent, args, context, info)`` convention shared by
extensions and data sources; they are adapted here to graphql-core's
``resolve(parent, info, **args)`` signature while being attached to the
schema built from every fragment.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import inspect
import logging
from typing import TYPE_CHECKING, Any

from graphql import (
    DocumentNode,
    GraphQLEnumType,
    GraphQLError,
    GraphQLInterfaceType,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLUnionType,
    assert_valid_schema,
    build_ast_schema,
)

from gateway_service.core.exceptions import SchemaCompositionError
from gateway_service.features.graphql.binding import validate_bindings
from gateway_service.features.graphql.introspection import parse_type_defs
from gateway_service.features.graphql.merge import merge_graphql_config
from gateway_service.features.graphql.types import AggregateConfig, ServerConfig

if TYPE_CHECKING:
    from gateway_service.features.graphql.types import (
        ContextModifierValue,
        PartialGraphQLConfig,
        ResolverMap,
    )

logger = logging.getLogger(__name__)

__all__ = [
    "build_executable_schema",
    "create_context_function",
    "create_graphql_config",
]

_RESOLVE_TYPE_KEYS = ("__resolve_type", "__resolveType")
_IS_TYPE_OF_KEYS = ("__is_type_of", "__isTypeOf")


def create_context_function(
    modifiers: Iterable[ContextModifierValue],
) -> Callable[[Any], dict[str, Any]]:
    """Chain context modifiers into a single context builder.

    Modifiers run in order on a fresh ``{}``: mappings are merged as they
    are, callables receive ``(request, context_so_far)`` and their return
    value (if any) is merged. Later modifiers override earlier keys.
    Modifiers must be synchronous: the context is built before execution
    starts, outside any event loop the builder could await on.

    Raises:
        SchemaCompositionError: If a modifier is a coroutine function.
    """
    chain = tuple(modifiers)
    for modifier in chain:
        if _is_async_callable(modifier):
            raise SchemaCompositionError(
                f"Context modifiers must be synchronous, got coroutine function {modifier!r}",
                extra={"modifier": repr(modifier)},
            )

    def context(request: Any = None) -> dict[str, Any]:
        ctx: dict[str, Any] = {}
        for modifier in chain:
            value = modifier(request, ctx) if callable(modifier) else modifier
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise SchemaCompositionError(
                    f"Context modifier {modifier!r} returned an awaitable, "
                    "context modifiers must be synchronous",
                    extra={"modifier": repr(modifier)},
                )
            if value:
                ctx.update(value)
        return ctx

    return context


def _is_async_callable(modifier: Any) -> bool:
    if inspect.iscoroutinefunction(modifier):
        return True
    return callable(modifier) and inspect.iscoroutinefunction(getattr(modifier, "__call__", None))


def _field_resolver(resolver: Callable[..., Any]) -> Callable[..., Any]:
    def resolve(parent: Any, info: Any, **args: Any) -> Any:
        return resolver(parent, args, info.context, info)

    resolve.__wrapped__ = resolver  # type: ignore[attr-defined]
    return resolve


def _resolve_type(resolver: Callable[..., Any]) -> Callable[..., Any]:
    def resolve_type(value: Any, info: Any, abstract_type: Any) -> Any:
        return resolver(value, info.context, info)

    return resolve_type


def _is_type_of(resolver: Callable[..., Any]) -> Callable[..., Any]:
    def is_type_of(value: Any, info: Any) -> Any:
        return resolver(value, info.context, info)

    return is_type_of


def _passthrough(value: Any, info: Any, **args: Any) -> Any:
    return value


def _undefined(type_name: str, field_name: str | None = None) -> SchemaCompositionError:
    target = f"{type_name}.{field_name}" if field_name else type_name
    return SchemaCompositionError(
        f'"{target}" defined in resolvers, but not in schema',
        extra={"type": type_name, "field": field_name},
    )


def _apply_object_resolvers(
    schema: GraphQLSchema,
    gql_type: GraphQLObjectType,
    fields: Mapping[str, Any],
) -> None:
    is_subscription = schema.subscription_type is gql_type
    for field_name, resolver in fields.items():
        if field_name in _IS_TYPE_OF_KEYS:
            gql_type.is_type_of = _is_type_of(resolver)
            continue

        field = gql_type.fields.get(field_name)
        if field is None:
            raise _undefined(gql_type.name, field_name)

        if isinstance(resolver, Mapping):
            if "subscribe" in resolver:
                field.subscribe = _field_resolver(resolver["subscribe"])
                field.resolve = _passthrough
            if "resolve" in resolver:
                field.resolve = _field_resolver(resolver["resolve"])
        elif is_subscription:
            # A bare callable on the subscription root produces the event stream
            field.subscribe = _field_resolver(resolver)
            field.resolve = _passthrough
        else:
            field.resolve = _field_resolver(resolver)


def _apply_resolver_map(schema: GraphQLSchema, resolver_map: ResolverMap) -> None:
    for type_name, fields in resolver_map.items():
        gql_type = schema.get_type(type_name)
        if gql_type is None:
            raise _undefined(type_name)

        if isinstance(gql_type, GraphQLScalarType):
            if isinstance(fields, GraphQLScalarType):
                gql_type.serialize = fields.serialize
                gql_type.parse_value = fields.parse_value
                gql_type.parse_literal = fields.parse_literal
            continue

        if isinstance(gql_type, GraphQLEnumType):
            for value_name, internal_value in fields.items():
                if value_name not in gql_type.values:
                    raise _undefined(type_name, value_name)
                gql_type.values[value_name].value = internal_value
            continue

        if isinstance(gql_type, GraphQLInterfaceType | GraphQLUnionType):
            for key, resolver in fields.items():
                if key in _RESOLVE_TYPE_KEYS:
                    gql_type.resolve_type = _resolve_type(resolver)
                elif isinstance(gql_type, GraphQLInterfaceType) and key in gql_type.fields:
                    gql_type.fields[key].resolve = _field_resolver(resolver)
                else:
                    raise _undefined(type_name, key)
            continue

        if isinstance(gql_type, GraphQLObjectType):
            _apply_object_resolvers(schema, gql_type, fields)
            continue

        raise SchemaCompositionError(
            f'Resolvers for "{type_name}" are not supported',
            extra={"type": type_name},
        )


def build_executable_schema(
    type_defs: Iterable[str | DocumentNode],
    resolvers: Iterable[ResolverMap] = (),
) -> GraphQLSchema:
    """Build one executable schema from every fragment and resolver map.

    All fragments are parsed into a single document so that ``extend type``
    blocks from any fragment are applied to the type wherever it is defined.
    Resolver maps are attached in order; a later map overrides an earlier
    one for the same type and field.

    Raises:
        SchemaCompositionError: On invalid SDL, an invalid resulting schema or
            a resolver for an undefined type or field.
    """
    documents = parse_type_defs(list(type_defs))
    definitions = [definition for document in documents for definition in document.definitions]
    if not definitions:
        msg = "Cannot build a GraphQL schema without type definitions"
        raise SchemaCompositionError(msg)

    try:
        schema = build_ast_schema(DocumentNode(definitions=tuple(definitions)))
        assert_valid_schema(schema)
    except (GraphQLError, TypeError, ValueError) as e:
        raise SchemaCompositionError(f"Invalid GraphQL schema: {e}") from e

    for resolver_map in resolvers:
        _apply_resolver_map(schema, resolver_map)

    return schema


def create_graphql_config(
    entries: Iterable[tuple[str, PartialGraphQLConfig]],
    default_config: Mapping[str, Any] | None = None,
    *,
    eager_binding_validation: bool = False,
) -> ServerConfig:
    """Create the complete server configuration.

    Args:
        entries: (extension name, config) pairs in registration order
        default_config: Base configuration (schema, resolvers, context,
            dataSources and passthrough options)
        eager_binding_validation: Check auto-bound resolvers against known
            data sources now instead of when fields are resolved

    Returns:
        Immutable server configuration
    """
    aggregate = AggregateConfig.seed(default_config)
    for extension_name, extension_config in entries:
        aggregate = merge_graphql_config(aggregate, extension_config, extension_name)

    if eager_binding_validation:
        validate_bindings(aggregate.resolvers, aggregate.data_sources)

    schema = build_executable_schema(aggregate.schemas, aggregate.resolvers)

    logger.info(
        "Built GraphQL config",
        extra={
            "schemas": len(aggregate.schemas),
            "resolver_maps": len(aggregate.resolvers),
            "context_modifiers": len(aggregate.context_modifiers),
            "data_sources": sorted(aggregate.data_sources),
        },
    )

    return ServerConfig(
        schema=schema,
        context=create_context_function(aggregate.context_modifiers),
        data_sources=aggregate.data_sources,
        options=aggregate.options,
    )
