"""Record fields that can be broken down per bucket."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .records import Record

__all__ = [
    "FieldSelector",
    "UnsupportedFieldError",
    "coerce_field_value",
]


class UnsupportedFieldError(ValueError):
    """Raised when a field selector is unknown."""


class FieldSelector(str, Enum):
    """Supported generator configuration fields.

    Values are the camelCase keys found in the generator configuration.
    ``LANGUAGES`` is the only multi-valued selector: a record counts once for
    each language it selected.
    """

    JHIPSTER_VERSION = "jhipsterVersion"
    GIT_PROVIDER = "gitProvider"
    NODE_VERSION = "nodeVersion"
    OS = "os"
    ARCH = "arch"
    CPU = "cpu"
    CORES = "cores"
    MEMORY = "memory"
    USER_LANGUAGE = "userLanguage"
    IS_A_REGENERATION = "isARegeneration"
    APPLICATION_TYPE = "applicationType"
    SERVER_PORT = "serverPort"
    AUTHENTICATION_TYPE = "authenticationType"
    CACHE_PROVIDER = "cacheProvider"
    ENABLE_HIBERNATE_CACHE = "enableHibernateCache"
    WEBSOCKET = "websocket"
    DATABASE_TYPE = "databaseType"
    DEV_DATABASE_TYPE = "devDatabaseType"
    PROD_DATABASE_TYPE = "prodDatabaseType"
    SEARCH_ENGINE = "searchEngine"
    MESSAGE_BROKER = "messageBroker"
    SERVICE_DISCOVERY_TYPE = "serviceDiscoveryType"
    BUILD_TOOL = "buildTool"
    ENABLE_SWAGGER_CODEGEN = "enableSwaggerCodegen"
    CLIENT_FRAMEWORK = "clientFramework"
    USE_SASS = "useSass"
    CLIENT_PACKAGE_MANAGER = "clientPackageManager"
    ENABLE_TRANSLATION = "enableTranslation"
    NATIVE_LANGUAGE = "nativeLanguage"
    LANGUAGES = "languages"
    HAS_PROTRACTOR = "hasProtractor"
    HAS_GATLING = "hasGatling"
    HAS_CUCUMBER = "hasCucumber"

    @classmethod
    def parse(cls, value: FieldSelector | str) -> FieldSelector:
        """Resolve a selector from a member, its key, or its enum name.

        Parameters
        ----------
        value
            FieldSelector, camelCase key ("databaseType") or enum name
            ("DATABASE_TYPE"), matched case-insensitively

        Returns
        -------
        FieldSelector
            Matching selector

        Raises
        ------
        UnsupportedFieldError
            If the value names no supported field
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for selector in cls:
                if wanted in (selector.value.lower(), selector.name.lower()):
                    return selector
        raise UnsupportedFieldError(f"Unsupported field: {value!r}")

    def extract(self, record: Record) -> str | None:
        """Return the record's scalar value for this field as a grouping key.

        Returns None when the record does not carry the field.
        """
        return coerce_field_value(record.get(self.value))

    def values_of(self, record: Record) -> tuple[str, ...]:
        """Return every grouping key the record contributes for this field.

        Empty when the record does not carry the field.
        """
        if self is FieldSelector.LANGUAGES:
            return record.languages
        value = self.extract(record)
        return () if value is None else (value,)


def coerce_field_value(value: Any) -> str | None:
    """Coerce a scalar field value to its string grouping key.

    Booleans become "true"/"false", integral floats lose their fraction.

    Example
    -------
    >>> coerce_field_value(True)
    'true'
    >>> coerce_field_value(8080.0)
    '8080'
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
