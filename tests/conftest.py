"""Shared pytest fixtures for eftdoc tests.

Fixtures are organized by category:
- Model fixtures: inline and on-disk EDMX documents
- Metadata fixtures: in-memory metadata sources
- Configuration fixtures: config dictionaries
- Logging fixtures: reset the eftdoc logger between tests
"""

import logging
from pathlib import Path
from typing import Any

import pytest

from eftdoc.utils.logging import ROOT_LOGGER
from tests.fixtures import copy_sales_model
from tests.fixtures.sources import FakeMetadataSource

CSDL_NS = "http://schemas.microsoft.com/ado/2009/11/edm"

# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def customer_edmx() -> str:
    """Minimal model: one Customer entity with a single Id property."""
    return f'''<?xml version="1.0" encoding="utf-8"?>
<Schema Namespace="SalesModel" xmlns="{CSDL_NS}">
  <EntityType Name="Customer">
    <Key>
      <PropertyRef Name="Id" />
    </Key>
    <Property Name="Id" Type="Int32" Nullable="false" />
  </EntityType>
</Schema>
'''


@pytest.fixture
def documented_edmx() -> str:
    """Model whose nodes already carry Documentation from an earlier run."""
    return f'''<?xml version="1.0" encoding="utf-8"?>
<Schema Namespace="SalesModel" xmlns="{CSDL_NS}">
  <EntityType Name="Customer">
    <Documentation>
      <Summary>Old customer text</Summary>
    </Documentation>
    <Key>
      <PropertyRef Name="Id" />
    </Key>
    <Property Name="Id" Type="Int32" Nullable="false">
      <Documentation>
        <Summary>Old id text</Summary>
      </Documentation>
    </Property>
    <Property Name="Email" Type="String" />
  </EntityType>
  <EntityType Name="Order">
    <Property Name="Id" Type="Int32" Nullable="false" />
  </EntityType>
</Schema>
'''


@pytest.fixture
def model_file(tmp_path: Path, customer_edmx: str) -> Path:
    """Write the minimal Customer model to a temporary .edmx file."""
    path = tmp_path / "Customer.edmx"
    path.write_text(customer_edmx, encoding="utf-8")
    return path


@pytest.fixture
def sales_model(tmp_path: Path) -> Path:
    """Copy the Sales model and both companion templates to a temp dir."""
    return copy_sales_model(tmp_path)


# =============================================================================
# Metadata Fixtures
# =============================================================================


@pytest.fixture
def customer_source() -> FakeMetadataSource:
    """Source documenting the Customer table but not its Id column."""
    return FakeMetadataSource(tables={"Customer": "Customer record"})


@pytest.fixture
def sales_source() -> FakeMetadataSource:
    """Source with descriptions for the Sales model."""
    return FakeMetadataSource(
        tables={
            "Customer": "People and companies that place orders",
            "Order": "A purchase placed by a customer",
        },
        columns={
            ("Customer", "Id"): "Surrogate key",
            ("Order", "PlacedAt"): "When the order was submitted (UTC)",
        },
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid eftdoc configuration."""
    return {
        "catalog": {
            "connection_string": "Server=db01;Initial Catalog=Sales;Integrated Security=true",
        }
    }


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete eftdoc configuration with all options."""
    return {
        "catalog": {
            "connection_string": "Server=db01;Initial Catalog=Sales;User ID=doc;Password=pw",
            "driver": "ODBC Driver 17 for SQL Server",
            "schema": "sales",
            "property_name": "Description",
        },
        "templates": {
            "enabled": False,
            "marker_set": "ef6",
        },
    }


# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_eftdoc_logger():
    """Drop handlers the CLI attached so later tests do not log to closed streams."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
