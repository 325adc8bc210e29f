"""SQL Server metadata source.

Reads ``MS_Description`` extended properties through
``fn_listextendedproperty``. One connection is opened per run and reused
for every lookup; every lookup is a single parameterised round trip.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from eftdoc.catalog.base import MetadataSource, normalize_documentation
from eftdoc.catalog.connection import ConnectionDescriptor
from eftdoc.errors import ConfigurationError, ConnectivityError

logger = logging.getLogger(__name__)

# The property value is sql_variant, which pyodbc cannot fetch directly.
TABLE_QUERY = text(
    """
    SELECT CAST([value] AS nvarchar(max)) AS value
    FROM fn_listextendedproperty(
        :property_name,
        'schema', :schema_name,
        'table', :table_name,
        NULL, NULL)
    """
)

COLUMN_QUERY = text(
    """
    SELECT CAST([value] AS nvarchar(max)) AS value
    FROM fn_listextendedproperty(
        :property_name,
        'schema', :schema_name,
        'table', :table_name,
        'column', :column_name)
    """
)

PING_QUERY = text("SELECT 1")


class SqlServerMetadataSource(MetadataSource):
    """Extended-property lookups against one SQL Server catalog.

    Usage:
        source = SqlServerMetadataSource(ConnectionDescriptor.parse(conn_str))
        with source:
            source.get_table_documentation("Customer")
    """

    name = "sqlserver"

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        driver: str,
        schema: str = "dbo",
        property_name: str = "MS_Description",
    ) -> None:
        """Initialize the source without connecting.

        Args:
            descriptor: Validated connection settings
            driver: ODBC driver name for ADO.NET style descriptors
            schema: Schema owning the documented tables
            property_name: Extended property holding descriptions
        """
        self.descriptor = descriptor
        self.driver = driver
        self.schema = schema
        self.property_name = property_name
        self._engine: Engine | None = None
        self._connection: Connection | None = None

    def describe(self) -> str:
        return f"{self.name}:{self.descriptor.describe()}"

    def open(self) -> None:
        """Open the single connection used for all lookups.

        Raises:
            ConfigurationError: If the pyodbc driver package is not installed
            ConnectivityError: If the catalog cannot be reached
        """
        if self._connection is not None:
            return

        try:
            self._engine = create_engine(self.descriptor.to_url(self.driver))
        except ImportError as e:
            raise ConfigurationError(f"database driver not available: {e}") from e

        try:
            self._connection = self._engine.connect()
        except SQLAlchemyError as e:
            self._engine.dispose()
            self._engine = None
            raise ConnectivityError(
                f"Cannot connect to catalog {self.descriptor.describe()}: {e}"
            ) from e

        logger.debug("Connected to %s", self.describe())

    def close(self) -> None:
        """Close the connection and dispose the engine (idempotent)."""
        if self._connection is not None:
            try:
                self._connection.close()
            finally:
                self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.debug("Closed connection to %s", self.describe())

    def ping(self) -> None:
        """Run a trivial query to prove the connection works."""
        self._scalar(PING_QUERY, "connectivity check")

    def get_table_documentation(self, table_name: str) -> str | None:
        value = self._scalar(
            TABLE_QUERY,
            f"table {table_name}",
            property_name=self.property_name,
            schema_name=self.schema,
            table_name=table_name,
        )
        return normalize_documentation(value)

    def get_column_documentation(self, table_name: str, column_name: str) -> str | None:
        value = self._scalar(
            COLUMN_QUERY,
            f"column {table_name}.{column_name}",
            property_name=self.property_name,
            schema_name=self.schema,
            table_name=table_name,
            column_name=column_name,
        )
        return normalize_documentation(value)

    def _scalar(self, query, target: str, **params: str) -> object:
        if self._connection is None:
            raise ConnectivityError(f"Metadata source is not open (looking up {target})")
        try:
            return self._connection.execute(query, params).scalar()
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Metadata query failed for {target}: {e}") from e
