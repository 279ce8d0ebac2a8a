"""
Configuration of a federation data source.

The host framework hands over a :class:`DataSourceContext` once. Its source
configuration is turned into an immutable :class:`FederationSettings`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import ConfigurationError

ACCESS_TOKEN_KEY = "access-token"
SOURCE_PATH_KEY = "source-path"
MOUNT_POINT_KEY = "mount-point"
INCLUDE_PATTERN_KEY = "include-pattern"


@dataclass(frozen=True)
class DataSourceContext:
    """
    Everything the host framework provides when setting up a data source.

    Attributes
    ----------
    resource_locator : str or None
        Base address of the upstream instance
    source_configuration : mapping or None
        Data source specific settings, see :class:`FederationSettings`
    request_configuration : mapping or None
        Per request settings of the host; not used by the federation
    """

    resource_locator: Optional[str]
    source_configuration: Optional[Mapping[str, Any]] = None
    request_configuration: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class FederationSettings:
    access_token: str
    source_path: Optional[str] = None
    mount_point: Optional[str] = None
    include_pattern: Optional[str] = None

    @classmethod
    def from_configuration(
        cls, configuration: Optional[Mapping[str, Any]]
    ) -> "FederationSettings":
        """
        Read the settings from a source configuration mapping.

        Raises
        ------
        ConfigurationError
            If the access token is missing
        """
        configuration = configuration or {}
        access_token = configuration.get(ACCESS_TOKEN_KEY)

        if access_token is None:
            raise ConfigurationError(f"The {ACCESS_TOKEN_KEY} property is not set.")

        return cls(
            access_token=access_token,
            source_path=configuration.get(SOURCE_PATH_KEY),
            mount_point=configuration.get(MOUNT_POINT_KEY),
            include_pattern=configuration.get(INCLUDE_PATTERN_KEY),
        )

    def compile_include_pattern(self) -> re.Pattern:
        """Compile the include pattern; an unset pattern matches everything."""
        try:
            return re.compile(self.include_pattern or "")
        except re.error as error:
            raise ConfigurationError(
                f"The {INCLUDE_PATTERN_KEY} property is not a valid regular expression: {error}"
            ) from error
