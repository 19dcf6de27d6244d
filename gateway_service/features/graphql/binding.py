"""Auto-binding of schema root fields to data source methods.

An extension may ship only a schema fragment and a data source whose method
names match the root fields. Every ``Query.foo`` declared in the fragment is
then resolved by ``context.data_sources[<api>].foo(parent, args, context, info)``.

Binding is optimistic: whether the method exists is only checked when the
field is resolved. ``validate_bindings`` offers the eager check.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import TYPE_CHECKING, Any

from graphql import DocumentNode

from gateway_service.core.exceptions import ResolverBindingError, ResolverMethodNotDefinedError
from gateway_service.features.graphql.introspection import get_root_type_fields
from gateway_service.features.graphql.types import PartialGraphQLConfig

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from gateway_service.features.graphql.types import ResolverMap

logger = logging.getLogger(__name__)

__all__ = [
    "AutoBoundResolver",
    "get_context_data_sources",
    "get_data_source",
    "get_extension_graphql_config",
    "iter_bound_resolvers",
    "validate_bindings",
]


def get_context_data_sources(context: Any) -> Mapping[str, Any]:
    """Return the data sources of a request context.

    Mapping contexts use the ``data_sources`` key, other contexts the
    ``data_sources`` attribute. A context without data sources yields an
    empty mapping.
    """
    if isinstance(context, Mapping):
        data_sources = context.get("data_sources")
    else:
        data_sources = getattr(context, "data_sources", None)
    return data_sources if isinstance(data_sources, Mapping) else {}


def get_data_source(data_sources: Mapping[str, Any], name: str | None) -> Any | None:
    """Get a data source by its configured name, or None when not registered."""
    if name is None:
        return None
    return data_sources.get(name)


class AutoBoundResolver:
    """Resolver forwarding a root field to the same-named data source method.

    Uses the ``(parent, args, context, info)`` resolver convention. The
    method result is returned as is, awaitables included.
    """

    __slots__ = ("data_source", "field_name", "type_name")

    def __init__(self, type_name: str, field_name: str, data_source: str | None) -> None:
        self.type_name = type_name
        self.field_name = field_name
        self.data_source = data_source

    def __call__(self, parent: Any, args: Mapping[str, Any], context: Any, info: Any) -> Any:
        api = get_data_source(get_context_data_sources(context), self.data_source)
        if api is None:
            logger.debug(
                "Data source not available, resolving to null",
                extra={"data_source": self.data_source, "field": self.binding},
            )
            return None

        method = getattr(api, self.field_name, None)
        if not callable(method):
            raise ResolverMethodNotDefinedError(str(self.data_source), self.field_name)

        return method(parent, args, context, info)

    @property
    def binding(self) -> str:
        return f"{self.type_name}.{self.field_name}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.binding} => "
            f"{self.data_source}.{self.field_name})"
        )


def get_extension_graphql_config(
    type_defs: str | DocumentNode | Sequence[str | DocumentNode] | None,
    data_source_name: str | None,
) -> PartialGraphQLConfig | None:
    """Build a GraphQL config auto-binding every root field of ``type_defs``.

    Args:
        type_defs: Extension's schema fragment(s)
        data_source_name: Name of the data source serving the fields

    Returns:
        Config holding the normalised fragments and the synthesized resolver
        map, or None when ``type_defs`` is empty.
    """
    if not type_defs:
        return None

    resolvers: dict[str, dict[str, AutoBoundResolver]] = {}
    for type_name, field_names in get_root_type_fields(type_defs).items():
        type_resolvers = resolvers.setdefault(type_name, {})
        for field_name in field_names:
            logger.debug(
                'Binding "%s.%s => %s.%s(obj, args, context, info)" resolver',
                type_name,
                field_name,
                data_source_name,
                field_name,
            )
            type_resolvers[field_name] = AutoBoundResolver(type_name, field_name, data_source_name)

    schemas = (type_defs,) if isinstance(type_defs, str | DocumentNode) else tuple(type_defs)
    return PartialGraphQLConfig(schemas=schemas, resolvers=(resolvers,))


def iter_bound_resolvers(resolver_maps: Iterable[ResolverMap]) -> Iterator[AutoBoundResolver]:
    """Yield every auto-bound resolver of the given resolver maps."""
    for resolver_map in resolver_maps:
        for fields in resolver_map.values():
            if not isinstance(fields, Mapping):
                continue
            for resolver in fields.values():
                if isinstance(resolver, AutoBoundResolver):
                    yield resolver


def validate_bindings(
    resolver_maps: Iterable[ResolverMap],
    data_sources: Mapping[str, Any],
) -> None:
    """Check auto-bound resolvers against the known data source instances.

    Resolvers whose data source is not among ``data_sources`` are skipped:
    the source may be supplied per request.

    Raises:
        ResolverBindingError: If a known data source lacks a bound method.
    """
    missing: list[tuple[str, str, str]] = []
    for resolver in iter_bound_resolvers(resolver_maps):
        api = get_data_source(data_sources, resolver.data_source)
        if api is None:
            continue
        if not callable(getattr(api, resolver.field_name, None)):
            missing.append((resolver.type_name, resolver.field_name, str(resolver.data_source)))

    if missing:
        raise ResolverBindingError(missing)
