"""Folding extension configs into the aggregate GraphQL configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gateway_service.features.graphql.types import (
    ContextModifier,
    DataSourceBinding,
    ResolverMaps,
    SchemaFragment,
    Unsupported,
)

if TYPE_CHECKING:
    from gateway_service.features.graphql.types import AggregateConfig, PartialGraphQLConfig

logger = logging.getLogger(__name__)

__all__ = ["merge_graphql_config"]


def merge_graphql_config(
    dest: AggregateConfig,
    source: PartialGraphQLConfig,
    extension_name: str,
) -> AggregateConfig:
    """Merge one extension's config into the aggregate.

    Schema fragments and resolver maps are appended in order, the context
    modifier is appended to the modifier chain and data sources are
    shallow-merged (later names win). Options without a merge policy are
    logged and dropped.

    Args:
        dest: Aggregate built so far (left untouched)
        source: Extension config to fold in
        extension_name: Name used in log messages

    Returns:
        The new aggregate
    """
    logger.debug('Merging "%s" extension GraphQL config', extension_name)

    merged = dest
    for contribution in source.contributions():
        match contribution:
            case SchemaFragment(key=key, items=items):
                for item in items:
                    if not isinstance(item, str):
                        logger.warning(
                            '"%s" extension contains non-string GraphQL Schema definition, '
                            'please check its "%s" configuration and make sure all items '
                            "are represented as strings. %r",
                            extension_name,
                            key,
                            item,
                            extra={"extension": extension_name},
                        )
                merged = merged.with_schemas(items)
            case ResolverMaps(items=items):
                merged = merged.with_resolvers(items)
            case ContextModifier(modifier=modifier):
                merged = merged.with_context_modifier(modifier)
            case DataSourceBinding(data_sources=data_sources):
                merged = merged.with_data_sources(data_sources)
            case Unsupported(key=key):
                logger.warning(
                    '"%s" extension wants to use GraphQL "%s" option which is not '
                    "supported by the extensions API yet - skipping that option",
                    extension_name,
                    key,
                    extra={"extension": extension_name, "option": key},
                )

    return merged
