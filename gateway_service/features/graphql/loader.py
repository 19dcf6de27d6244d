"""Loading extension code and schema fragments.

The registry only talks to the ``ExtensionLoader`` protocol, so tests and
hosts with their own packaging can supply a different loader.
``ModuleExtensionLoader`` resolves locators the way Python packages are
resolved, with a working-directory fallback for unpackaged extensions.
"""

from __future__ import annotations

from collections.abc import Callable
from importlib import import_module, resources
import importlib.util
import logging
from pathlib import Path
import re
import sys
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

from gateway_service.core.exceptions import ExtensionLoadError

if TYPE_CHECKING:
    from types import ModuleType

logger = logging.getLogger(__name__)

__all__ = ["ExtensionInitializer", "ExtensionLoader", "ModuleExtensionLoader"]

ExtensionInitializer: TypeAlias = Callable[[dict[str, Any]], Any]

_UNSAFE_MODULE_CHARS = re.compile(r"\W")


@runtime_checkable
class ExtensionLoader(Protocol):
    """Resolves an extension locator into its initializer and schema fragment.

    Both methods may be plain or ``async``; the registry awaits awaitable results.
    """

    def load_initializer(self, locator: str) -> ExtensionInitializer | None:
        """Return the extension initializer, or None when the package has none.

        Raises:
            ExtensionLoadError: If the package cannot be imported.
        """
        ...

    def load_schema_fragment(self, locator: str) -> str | None:
        """Return the extension schema fragment text, or None when absent."""
        ...


def _is_path_locator(locator: str) -> bool:
    return "/" in locator or "\\" in locator or locator.startswith(".") or locator.endswith(".py")


class ModuleExtensionLoader:
    """Loads extensions from importable packages or directories.

    Locators are either dotted module paths (``acme_blog.extension``) or
    paths relative to ``base_dir`` (``./extensions/blog``).
    """

    def __init__(
        self,
        schema_file_name: str = "schema.graphql",
        initializer_attr: str = "init_extension",
        base_dir: str | Path | None = None,
    ) -> None:
        self.schema_file_name = schema_file_name
        self.initializer_attr = initializer_attr
        self._base_dir = Path(base_dir) if base_dir is not None else None

    @property
    def base_dir(self) -> Path:
        return self._base_dir if self._base_dir is not None else Path.cwd()

    def load_initializer(self, locator: str) -> ExtensionInitializer | None:
        module = self._import(locator)
        initializer = getattr(module, self.initializer_attr, None)
        if initializer is None:
            logger.debug(
                "Extension package has no initializer",
                extra={"package": locator, "attribute": self.initializer_attr},
            )
            return None
        if not callable(initializer):
            raise ExtensionLoadError(locator, f'"{self.initializer_attr}" is not callable')
        return initializer

    def load_schema_fragment(self, locator: str) -> str | None:
        packaged = self._read_packaged_schema(locator)
        if packaged is not None:
            return packaged

        schema_path = self.base_dir / locator / self.schema_file_name
        logger.debug("Loading schema from %s", schema_path)
        if schema_path.is_file():
            return self._read_schema(locator, schema_path)
        return None

    def _read_packaged_schema(self, locator: str) -> str | None:
        if _is_path_locator(locator):
            return None
        try:
            resource = resources.files(locator).joinpath(self.schema_file_name)
        except Exception as e:
            logger.debug(
                "Schema is not available as a package resource",
                extra={"package": locator, "reason": f"{type(e).__name__}: {e}"},
            )
            return None
        if not resource.is_file():
            return None
        logger.debug("Loading schema from %s", resource)
        return self._read_schema(locator, resource)

    def _read_schema(self, locator: str, source: Any) -> str | None:
        try:
            return source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                'Cannot read "%s" extension schema file %s, continuing without it',
                locator,
                source,
                extra={"package": locator, "path": str(source), "reason": f"{type(e).__name__}: {e}"},
            )
            return None

    def _import(self, locator: str) -> ModuleType:
        if _is_path_locator(locator):
            return self._import_path(locator)
        try:
            return import_module(locator)
        except ImportError as e:
            # Unpackaged extension living in a directory of the working dir
            if (self.base_dir / locator).exists():
                return self._import_path(locator)
            raise ExtensionLoadError(locator, str(e)) from e
        except Exception as e:
            raise ExtensionLoadError(locator, f"{type(e).__name__}: {e}") from e

    def _import_path(self, locator: str) -> ModuleType:
        path = (self.base_dir / locator).resolve()
        search_locations = None
        if path.is_dir():
            search_locations = [str(path)]
            path = path / "__init__.py"
        if not path.is_file():
            raise ExtensionLoadError(locator, f"{path} does not exist")

        module_name = "gateway_extensions." + _UNSAFE_MODULE_CHARS.sub("_", locator.strip("./\\"))
        if module_name in sys.modules:
            return sys.modules[module_name]

        spec = importlib.util.spec_from_file_location(
            module_name,
            path,
            submodule_search_locations=search_locations,
        )
        if spec is None or spec.loader is None:
            raise ExtensionLoadError(locator, f"cannot create a module spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            del sys.modules[module_name]
            raise ExtensionLoadError(locator, f"{type(e).__name__}: {e}") from e
        return module
