"""Metadata catalog access.

- MetadataSource: lookup interface used by the merge pass
- ConnectionDescriptor: validated connection settings
- SqlServerMetadataSource: extended-property lookups on SQL Server
"""

from eftdoc.catalog.base import MetadataSource, normalize_documentation
from eftdoc.catalog.connection import ConnectionDescriptor
from eftdoc.catalog.sqlserver import SqlServerMetadataSource
from eftdoc.config import CatalogConfig


def create_metadata_source(
    catalog: CatalogConfig,
    connection_string: str | None = None,
) -> SqlServerMetadataSource:
    """Build the SQL Server source for a run (does not connect).

    Args:
        catalog: Catalog configuration
        connection_string: Per-run override of ``catalog.connection_string``

    Raises:
        ConfigurationError: If no usable connection string is available
    """
    descriptor = ConnectionDescriptor.parse(connection_string or catalog.connection_string)
    return SqlServerMetadataSource(
        descriptor,
        driver=catalog.driver,
        schema=catalog.schema,
        property_name=catalog.property_name,
    )


__all__ = [
    "ConnectionDescriptor",
    "MetadataSource",
    "SqlServerMetadataSource",
    "create_metadata_source",
    "normalize_documentation",
]
