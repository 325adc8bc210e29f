"""Test fixtures for eftdoc.

Sample Models:
- models/Sales.edmx: EF6 model with SSDL and CSDL sections (Customer, Order)
- models/Sales.Context.tt / models/Sales.tt: unpatched EF6 T4 companions
"""

import shutil
from pathlib import Path

FIXTURES_DIR = Path(__file__).parent

MODELS_DIR = FIXTURES_DIR / "models"

SALES_MODEL = MODELS_DIR / "Sales.edmx"
SALES_CONTEXT_TEMPLATE = MODELS_DIR / "Sales.Context.tt"
SALES_ENTITY_TEMPLATE = MODELS_DIR / "Sales.tt"


def copy_sales_model(target_dir: Path, with_templates: bool = True) -> Path:
    """Copy the Sales model (and optionally its templates) into ``target_dir``.

    Returns:
        Path of the copied .edmx file
    """
    shutil.copy(SALES_MODEL, target_dir / SALES_MODEL.name)
    if with_templates:
        shutil.copy(SALES_CONTEXT_TEMPLATE, target_dir / SALES_CONTEXT_TEMPLATE.name)
        shutil.copy(SALES_ENTITY_TEMPLATE, target_dir / SALES_ENTITY_TEMPLATE.name)
    return target_dir / SALES_MODEL.name
