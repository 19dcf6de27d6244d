"""Exception classes for the gateway service."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions inherit from this class. The attributes mirror
    RFC 7807 Problem Details so errors surfaced through the hosting server
    can be rendered without translation.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        titles = {
            400: "Bad Request",
            404: "Not Found",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class GatewayException(AppException):
    """Base class for errors raised by the extension composition engine."""

    def __init__(
        self,
        detail: str,
        type: str = "gateway-error",
        status_code: int = 500,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=status_code,
            detail=detail,
            type=type,
            extra=extra,
        )


class ExtensionLoadError(GatewayException):
    """Extension package could not be imported or its initializer failed.

    The registry logs this error and continues with an empty configuration
    for the extension; it is never propagated out of registration.
    """

    def __init__(
        self,
        package: str,
        reason: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        final_extra = {"package": package}
        if extra:
            final_extra.update(extra)
        super().__init__(
            detail=f'Unable to load extension package "{package}": {reason}',
            type="extension-load-failed",
            extra=final_extra,
        )
        self.package = package


class ExtensionConfigError(GatewayException):
    """Extension entries could not be parsed or validated."""

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(
            detail=detail,
            type="extension-config-invalid",
            status_code=422,
            extra=extra,
        )


class ResolverMethodNotDefinedError(GatewayException):
    """An auto-bound resolver targets a data source method that does not exist.

    Raised when the field is resolved, never while binding.

    Example:
        raise ResolverMethodNotDefinedError("shop", "products")
    """

    def __init__(self, data_source: str, method: str) -> None:
        super().__init__(
            detail=f"{data_source}.{method}() resolver method is not defined!",
            type="resolver-method-not-defined",
            extra={"data_source": data_source, "method": method},
        )
        self.data_source = data_source
        self.method = method


class ResolverBindingError(GatewayException):
    """Eager binding validation found resolvers without a backing method."""

    def __init__(self, missing: list[tuple[str, str, str]]) -> None:
        bindings = ", ".join(
            f"{type_name}.{field_name} => {data_source}.{field_name}"
            for type_name, field_name, data_source in missing
        )
        super().__init__(
            detail=f"Auto-bound resolvers without data source methods: {bindings}",
            type="resolver-binding-invalid",
            extra={"missing": [list(item) for item in missing]},
        )
        self.missing = missing


class SchemaCompositionError(GatewayException):
    """The merged schema fragments or resolver maps could not be built."""

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(
            detail=detail,
            type="schema-composition-failed",
            extra=extra,
        )
