"""Configuration types exchanged between extensions and the composition engine.

Extensions hand back loose mappings (``{"schema": ..., "resolvers": ...}``);
they are normalised once into ``PartialGraphQLConfig`` and from then on
only travel as immutable values. The merge step consumes them as a closed
set of contribution variants.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphql import ExecutionResult, GraphQLSchema

__all__ = [
    "AggregateConfig",
    "ConfigContribution",
    "ContextModifier",
    "ContextModifierValue",
    "DataSourceBinding",
    "ExtensionRegistered",
    "PartialGraphQLConfig",
    "ResolverMap",
    "ResolverMaps",
    "SchemaFragment",
    "ServerConfig",
    "Unsupported",
    "deep_merge",
]

ResolverMap: TypeAlias = Mapping[str, Mapping[str, Any]]
ContextModifierValue: TypeAlias = Callable[[Any, dict[str, Any]], Any] | Mapping[str, Any]

_SCHEMA_KEYS = ("schema", "schemas")
_DATA_SOURCE_KEYS = ("dataSources", "data_sources")
_EMPTY: Mapping[str, Any] = MappingProxyType({})


def deep_merge(target: Any, source: Any) -> Any:
    """Merge ``source`` into ``target`` without mutating either.

    Mappings combine key-wise (recursively), lists and tuples concatenate,
    anything else is replaced by ``source``.
    """
    if isinstance(target, Mapping) and isinstance(source, Mapping):
        merged = dict(target)
        for key, value in source.items():
            merged[key] = deep_merge(merged[key], value) if key in merged else value
        return merged
    if isinstance(target, list | tuple) and isinstance(source, list | tuple):
        return [*target, *source]
    return source


def _as_sequence(value: Any) -> tuple[Any, ...]:
    if isinstance(value, list | tuple):
        return tuple(value)
    return (value,)


# ----------------------------------------------------------------------------
# Contribution variants
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SchemaFragment:
    """Schema fragments contributed under ``schema``/``schemas``."""

    key: str
    items: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class ResolverMaps:
    """Resolver maps contributed under ``resolvers``."""

    items: tuple[ResolverMap, ...]


@dataclass(frozen=True, slots=True)
class ContextModifier:
    """A single context modifier (callable or static mapping)."""

    modifier: ContextModifierValue


@dataclass(frozen=True, slots=True)
class DataSourceBinding:
    """Data source instances keyed by name."""

    data_sources: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Unsupported:
    """Option the merger has no policy for."""

    key: str
    value: Any


ConfigContribution: TypeAlias = (
    SchemaFragment | ResolverMaps | ContextModifier | DataSourceBinding | Unsupported
)


# ----------------------------------------------------------------------------
# Partial (per extension) configuration
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class PartialGraphQLConfig:
    """GraphQL configuration produced by a single extension."""

    schemas: tuple[Any, ...] = ()
    resolvers: tuple[ResolverMap, ...] = ()
    context: ContextModifierValue | None = None
    data_sources: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    unsupported: tuple[tuple[str, Any], ...] = ()
    schema_key: str = "schema"

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_sources", MappingProxyType(dict(self.data_sources)))

    @classmethod
    def from_value(cls, value: Any) -> PartialGraphQLConfig:
        """Normalise an initializer result into a PartialGraphQLConfig.

        Args:
            value: ``None``, a PartialGraphQLConfig or a mapping using the
                ``schema(s)``/``resolvers``/``context``/``dataSources`` keys.
                Keys with a ``None`` value are ignored.

        Raises:
            TypeError: If ``value`` is neither of the accepted shapes.
        """
        if value is None:
            return cls()
        if isinstance(value, PartialGraphQLConfig):
            return value
        if not isinstance(value, Mapping):
            msg = f"Extension GraphQL config must be a mapping, got {type(value).__name__}"
            raise TypeError(msg)

        schemas: tuple[Any, ...] = ()
        schema_key = "schema"
        resolvers: tuple[ResolverMap, ...] = ()
        context: ContextModifierValue | None = None
        data_sources: dict[str, Any] = {}
        unsupported: list[tuple[str, Any]] = []

        for key, item in value.items():
            if not key or item is None:
                continue
            if key in _SCHEMA_KEYS:
                schemas = (*schemas, *_as_sequence(item))
                schema_key = key
            elif key == "resolvers":
                resolvers = (*resolvers, *_as_sequence(item))
            elif key == "context":
                context = item
            elif key in _DATA_SOURCE_KEYS:
                data_sources.update(item)
            else:
                unsupported.append((key, item))

        return cls(
            schemas=schemas,
            resolvers=resolvers,
            context=context,
            data_sources=data_sources,
            unsupported=tuple(unsupported),
            schema_key=schema_key,
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.schemas
            or self.resolvers
            or self.context is not None
            or self.data_sources
            or self.unsupported
        )

    def contributions(self) -> Iterator[ConfigContribution]:
        """Yield the contributions of this config in merge order."""
        if self.schemas:
            yield SchemaFragment(self.schema_key, self.schemas)
        if self.resolvers:
            yield ResolverMaps(self.resolvers)
        if self.context is not None:
            yield ContextModifier(self.context)
        if self.data_sources:
            yield DataSourceBinding(self.data_sources)
        for key, value in self.unsupported:
            yield Unsupported(key, value)

    def combine(self, other: PartialGraphQLConfig) -> PartialGraphQLConfig:
        """Deep-merge ``other`` on top of this config.

        Sequences concatenate, mappings combine key-wise and a scalar from
        ``other`` replaces the one held here.
        """
        context = self.context
        if other.context is not None:
            context = deep_merge(self.context, other.context)

        unsupported = dict(self.unsupported)
        for key, value in other.unsupported:
            unsupported[key] = deep_merge(unsupported[key], value) if key in unsupported else value

        return replace(
            self,
            schemas=(*self.schemas, *other.schemas),
            resolvers=(*self.resolvers, *other.resolvers),
            context=context,
            data_sources={**self.data_sources, **other.data_sources},
            unsupported=tuple(unsupported.items()),
            schema_key=other.schema_key if other.schemas else self.schema_key,
        )


@dataclass(frozen=True, slots=True)
class ExtensionRegistered:
    """Payload of the ``extension.registered`` lifecycle event."""

    name: str
    instance: PartialGraphQLConfig


# ----------------------------------------------------------------------------
# Aggregate (all extensions) and final configuration
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class AggregateConfig:
    """Accumulated configuration of the base config plus every extension.

    Order of every sequence is significant: it decides resolver precedence
    and the order in which context modifiers run.
    """

    schemas: tuple[Any, ...] = ()
    resolvers: tuple[ResolverMap, ...] = ()
    context_modifiers: tuple[ContextModifierValue, ...] = ()
    data_sources: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    options: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_sources", MappingProxyType(dict(self.data_sources)))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @classmethod
    def seed(cls, default_config: Mapping[str, Any] | None = None) -> AggregateConfig:
        """Create the aggregate from the base server configuration.

        ``schema(s)``, ``resolvers`` (a single map or a sequence),
        ``context`` and ``dataSources`` are unpacked; every other key is kept
        as a passthrough option.
        """
        config = dict(default_config or {})
        schemas: tuple[Any, ...] = ()
        for key in _SCHEMA_KEYS:
            if config.get(key) is not None:
                schemas = (*schemas, *_as_sequence(config[key]))
            config.pop(key, None)

        resolvers = config.pop("resolvers", None)
        context = config.pop("context", None)

        data_sources: dict[str, Any] = {}
        for key in _DATA_SOURCE_KEYS:
            data_sources.update(config.pop(key, None) or {})

        return cls(
            schemas=schemas,
            resolvers=_as_sequence(resolvers) if resolvers is not None else (),
            context_modifiers=(context,) if context is not None else (),
            data_sources=data_sources,
            options=config,
        )

    def with_schemas(self, items: Sequence[Any]) -> AggregateConfig:
        return replace(self, schemas=(*self.schemas, *items))

    def with_resolvers(self, items: Sequence[ResolverMap]) -> AggregateConfig:
        return replace(self, resolvers=(*self.resolvers, *items))

    def with_context_modifier(self, modifier: ContextModifierValue) -> AggregateConfig:
        return replace(self, context_modifiers=(*self.context_modifiers, modifier))

    def with_data_sources(self, data_sources: Mapping[str, Any]) -> AggregateConfig:
        return replace(self, data_sources={**self.data_sources, **data_sources})


@dataclass(frozen=True)
class ServerConfig:
    """Executable configuration handed to the GraphQL server.

    Attributes:
        schema: The composite executable schema.
        context: Builds the per-request context from the request argument.
        data_sources: Data sources contributed by the base config and extensions.
        options: Passthrough base options (debug, introspection, ...).
    """

    schema: GraphQLSchema
    context: Callable[[Any], dict[str, Any]]
    data_sources: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    options: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_sources", MappingProxyType(dict(self.data_sources)))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def build_context(self, request: Any = None) -> dict[str, Any]:
        """Build the request context, injecting ``data_sources`` when no modifier set it."""
        ctx = self.context(request)
        ctx.setdefault("data_sources", dict(self.data_sources))
        return ctx

    async def execute(
        self,
        source: str,
        request: Any = None,
        *,
        variable_values: dict[str, Any] | None = None,
        operation_name: str | None = None,
        root_value: Any = None,
    ) -> ExecutionResult:
        """Run a GraphQL operation against the composite schema."""
        from graphql import graphql

        return await graphql(
            self.schema,
            source,
            root_value=root_value,
            context_value=self.build_context(request),
            variable_values=variable_values,
            operation_name=operation_name,
        )
