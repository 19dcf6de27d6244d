"""Backend configuration aggregated across every configured data source."""

from __future__ import annotations

from collections.abc import Mapping
import inspect
import logging
from typing import TYPE_CHECKING, Any

from gateway_service.core.schemas import BackendConfig
from gateway_service.features.graphql.binding import get_context_data_sources

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

__all__ = ["fetch_backend_config", "merge_backend_configs"]


def _get_locales(config: Any) -> list[str] | None:
    if isinstance(config, Mapping):
        locales = config.get("locales")
    else:
        locales = getattr(config, "locales", None)
    return list(locales) if isinstance(locales, list | tuple) else None


def merge_backend_configs(configs: Iterable[Any]) -> BackendConfig:
    """Reduce backend configs into one.

    Only locales present in every config are kept; a config without a
    locales list leaves the other side untouched. Fields other than
    ``locales`` are dropped.
    """
    locales: list[str] | None = None
    for config in configs:
        if not config:
            continue
        current = _get_locales(config)
        if current is not None and locales is not None:
            locales = [locale for locale in current if locale in locales]
        elif current is not None:
            locales = current
    return BackendConfig(locales=locales)


async def fetch_backend_config(
    obj: Any,
    args: Mapping[str, Any],
    context: Any,
    info: Any,
) -> BackendConfig | None:
    """Resolve the backend config of every data source in the request context.

    Data sources are queried one after another, in their registration
    order; their first fetch may initialize shared state. If any data source
    cannot provide a backend config nothing is returned.
    """
    configs: list[Any] = []

    for api_name, api in get_context_data_sources(context).items():
        fetch = getattr(api, "fetch_backend_config", None)
        if not callable(fetch):
            logger.debug(
                "Data source does not support backend config, skipping aggregation",
                extra={"data_source": api_name},
            )
            return None

        logger.debug('Fetching "%s" API backend config', api_name)
        api_config = fetch(obj, args, context, info)
        if inspect.isawaitable(api_config):
            api_config = await api_config
        if api_config:
            configs.append(api_config)

    return merge_backend_configs(configs)
