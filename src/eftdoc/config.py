"""eftdoc configuration system.

Configuration is YAML-based with CLI overrides for the per-run values
(--connection-string, --input, --output). Supports environment variable
substitution (${VAR}) in config files so connection secrets stay out of
version control.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.eftdoc/config.yaml
3. ./eftdoc.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from eftdoc.errors import ConfigurationError
from eftdoc.templates.markers import MARKER_SETS

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class CatalogConfig:
    """Metadata catalog configuration.

    Attributes:
        connection_string: ADO.NET connection string or SQLAlchemy URL
        driver: ODBC driver used for ADO.NET style connection strings
        schema: Schema that owns the documented tables
        property_name: Extended property holding the description text
    """

    connection_string: str | None = None
    driver: str = DEFAULT_ODBC_DRIVER
    schema: str = "dbo"
    property_name: str = "MS_Description"

    def __post_init__(self) -> None:
        """Validate catalog configuration."""
        if not self.schema:
            raise ConfigurationError("catalog.schema must not be empty")
        if not self.property_name:
            raise ConfigurationError("catalog.property_name must not be empty")


@dataclass
class TemplateConfig:
    """Companion template patching configuration.

    Attributes:
        enabled: Whether to patch the .Context.tt / .tt companions
        marker_set: Versioned marker table to apply
    """

    enabled: bool = True
    marker_set: str = "ef6"

    def __post_init__(self) -> None:
        """Validate template configuration."""
        if self.marker_set not in MARKER_SETS:
            raise ConfigurationError(
                f"Invalid marker set: {self.marker_set}. Valid: {sorted(MARKER_SETS)}"
            )


@dataclass
class EftdocConfig:
    """Top-level eftdoc configuration.

    Attributes:
        catalog: Metadata catalog connection and lookup settings
        templates: Companion template settings
    """

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    templates: TemplateConfig = field(default_factory=TemplateConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")


def _expand(text: str) -> str:
    def lookup(match: re.Match[str]) -> str:
        name, default = match.group("name", "default")
        value = os.environ.get(name, default)
        if value is None:
            raise ConfigurationError(f"Environment variable not set: {name}")
        return value

    return _ENV_REF.sub(lookup, text)


def substitute_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` references in config values, recursively.

    ``${VAR:-fallback}`` uses ``fallback`` when VAR is unset. Keeps
    passwords out of the config file:

        connection_string: "Server=db01;Database=Sales;Password=${EFTDOC_DB_PASSWORD}"

    Raises:
        ConfigurationError: If a referenced variable is unset and has no fallback
    """
    if isinstance(value, str):
        return _expand(value)
    if isinstance(value, dict):
        return {key: substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


# =============================================================================
# Config File Discovery
# =============================================================================

# Relative to the search directory, highest priority first
CONFIG_CANDIDATES = (
    Path(".eftdoc") / "config.yaml",
    Path("eftdoc.yaml"),
)


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Return the first existing entry of CONFIG_CANDIDATES below ``start_path``.

    ``start_path`` defaults to the current directory.
    """
    base = (start_path or Path.cwd()).resolve()
    return next(
        (base / candidate for candidate in CONFIG_CANDIDATES if (base / candidate).is_file()),
        None,
    )


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> EftdocConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        EftdocConfig instance
    """
    data = substitute_env_vars(data)

    config = EftdocConfig()

    if "catalog" in data:
        catalog_data = data["catalog"] or {}
        config.catalog = CatalogConfig(
            connection_string=catalog_data.get("connection_string"),
            driver=catalog_data.get("driver", DEFAULT_ODBC_DRIVER),
            schema=catalog_data.get("schema", "dbo"),
            property_name=catalog_data.get("property_name", "MS_Description"),
        )

    if "templates" in data:
        templates_data = data["templates"] or {}
        config.templates = TemplateConfig(
            enabled=templates_data.get("enabled", True),
            marker_set=templates_data.get("marker_set", "ef6"),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> EftdocConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        EftdocConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ConfigurationError: If the file is not valid YAML or holds invalid values
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is None:
        return EftdocConfig()

    try:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", source=str(found_path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Top-level config must be a mapping", source=str(found_path))

    config = load_config_from_dict(data)
    config._config_path = found_path
    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return f'''# eftdoc configuration

# Metadata catalog (SQL Server extended properties)
catalog:
  # ADO.NET connection string or SQLAlchemy URL. Prefer an env var reference:
  # connection_string: "${{EFTDOC_CONNECTION_STRING}}"
  # Without an Encrypt keyword the connection is made with Encrypt=no, as
  # SqlClient does; add Encrypt=True (and TrustServerCertificate) to require TLS.
  driver: "{DEFAULT_ODBC_DRIVER}"
  schema: "dbo"
  property_name: "MS_Description"

# Companion T4 templates (<model>.Context.tt and <model>.tt)
templates:
  enabled: true
  marker_set: "ef6"
'''
