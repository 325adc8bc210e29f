"""Preflight validation.

Checks everything a ``generate`` run depends on before the run starts:
driver packages, the ODBC driver, the connection string, catalog
reachability, the input model and its companion templates.

Required checks that fail make the run impossible; optional ones (the
companion templates) only produce warnings.
"""

import importlib.util
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as dist_version
from pathlib import Path
from typing import Any

from eftdoc.catalog import ConnectionDescriptor, SqlServerMetadataSource
from eftdoc.config import CatalogConfig
from eftdoc.errors import EftdocError
from eftdoc.models import EdmxModel
from eftdoc.templates import TemplateKind, companion_path


@dataclass
class PreflightCheck:
    """Result of a single check.

    Attributes:
        name: Check name
        available: Whether the check passed
        version: Package version if applicable
        required: Whether a failure blocks the run
        path: Location involved (package origin, file path, server)
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required checks passed
        checks: Individual check results
        errors: Messages for failed required checks
        warnings: Messages for failed optional checks
    """

    success: bool = True
    checks: list[PreflightCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: PreflightCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            detail = f": {check.message}" if check.message else ""
            if check.required:
                self.success = False
                self.errors.append(f"{check.name} failed{detail}")
            else:
                self.warnings.append(f"{check.name} not available{detail}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates run prerequisites.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(catalog, connection_string, input_path)
        if not result.success:
            raise typer.Exit(1)
    """

    def check_package(self, package: str, purpose: str, required: bool = True) -> PreflightCheck:
        """Check that a Python package is importable."""
        spec = importlib.util.find_spec(package)
        if spec is None:
            return PreflightCheck(
                name=package,
                available=False,
                required=required,
                message=f"pip install {package}",
            )

        version = None
        try:
            version = dist_version(package)
        except PackageNotFoundError:
            pass

        return PreflightCheck(
            name=package,
            available=True,
            version=version,
            required=required,
            path=spec.origin,
            message=purpose,
        )

    def check_odbc_driver(self, driver: str) -> PreflightCheck:
        """Check that the configured ODBC driver is registered with the driver manager."""
        name = "odbc-driver"
        try:
            import pyodbc
        except ImportError:
            return PreflightCheck(
                name=name,
                available=False,
                message="pyodbc is not installed",
            )

        installed = pyodbc.drivers()
        if driver in installed:
            return PreflightCheck(name=name, available=True, path=driver, message="ODBC driver")

        found = ", ".join(installed) if installed else "none"
        return PreflightCheck(
            name=name,
            available=False,
            path=driver,
            message=f"'{driver}' not registered (installed: {found})",
        )

    def check_connection_string(self, connection_string: str | None) -> PreflightCheck:
        """Check that the connection string parses and names a database."""
        try:
            descriptor = ConnectionDescriptor.parse(connection_string)
        except EftdocError as e:
            return PreflightCheck(name="connection-string", available=False, message=e.message)

        return PreflightCheck(
            name="connection-string",
            available=True,
            path=descriptor.describe(),
            message="Catalog connection descriptor",
        )

    def check_catalog(
        self, catalog: CatalogConfig, connection_string: str | None
    ) -> PreflightCheck:
        """Open a connection and run a trivial query."""
        try:
            descriptor = ConnectionDescriptor.parse(connection_string)
            source = SqlServerMetadataSource(
                descriptor,
                driver=catalog.driver,
                schema=catalog.schema,
                property_name=catalog.property_name,
            )
            with source:
                source.ping()
        except EftdocError as e:
            return PreflightCheck(name="catalog", available=False, message=e.message)

        return PreflightCheck(
            name="catalog",
            available=True,
            path=descriptor.describe(),
            message="Catalog reachable",
        )

    def check_model(self, input_path: Path) -> PreflightCheck:
        """Check that the input model exists and parses."""
        if not input_path.is_file():
            return PreflightCheck(
                name="model",
                available=False,
                path=str(input_path),
                message="Input file does not exist",
            )

        try:
            model = EdmxModel.load(input_path)
        except EftdocError as e:
            return PreflightCheck(
                name="model", available=False, path=str(input_path), message=e.message
            )

        return PreflightCheck(
            name="model",
            available=True,
            path=str(input_path),
            message=f"{len(model.entities())} entity types",
        )

    def check_templates(self, input_path: Path) -> list[PreflightCheck]:
        """Report which companion templates exist (optional)."""
        checks: list[PreflightCheck] = []
        for kind in (TemplateKind.CONTEXT, TemplateKind.ENTITY):
            path = companion_path(input_path, kind)
            name = f"template{kind.value}"
            if path is None:
                checks.append(
                    PreflightCheck(
                        name=name,
                        available=False,
                        required=False,
                        message="Input is not an .edmx file",
                    )
                )
                continue
            checks.append(
                PreflightCheck(
                    name=name,
                    available=path.is_file(),
                    required=False,
                    path=str(path),
                    message="Companion template" if path.is_file() else "File not found",
                )
            )
        return checks

    def check_all(
        self,
        catalog: CatalogConfig,
        connection_string: str | None = None,
        input_path: Path | None = None,
        skip_catalog: bool = False,
    ) -> PreflightResult:
        """Run all checks.

        Args:
            catalog: Catalog configuration
            connection_string: Per-run override of the configured connection string
            input_path: Model to validate (model/template checks skipped if None)
            skip_catalog: Do not attempt to connect

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()
        connection_string = connection_string or catalog.connection_string

        result.add_check(self.check_package("lxml", "XML model processing"))
        result.add_check(self.check_package("sqlalchemy", "Catalog access"))

        uses_odbc = connection_string is None or "://" not in connection_string
        if uses_odbc:
            result.add_check(self.check_package("pyodbc", "SQL Server ODBC bridge"))
            result.add_check(self.check_odbc_driver(catalog.driver))

        conn_check = self.check_connection_string(connection_string)
        result.add_check(conn_check)

        if conn_check.available and not skip_catalog:
            result.add_check(self.check_catalog(catalog, connection_string))

        if input_path is not None:
            result.add_check(self.check_model(input_path))
            for check in self.check_templates(input_path):
                result.add_check(check)

        return result
