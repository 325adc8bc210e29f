"""eftdoc data models.

- EdmxModel: the loaded EDMX document
- MergeResult / EntityReport: documentation merge outcome
- PatchResult / TemplatePatchOutcome: companion template outcome
"""

from eftdoc.models.edmx import EdmxModel
from eftdoc.models.results import (
    EntityReport,
    MergeResult,
    PatchResult,
    TemplatePatchOutcome,
)

__all__ = [
    "EdmxModel",
    "EntityReport",
    "MergeResult",
    "PatchResult",
    "TemplatePatchOutcome",
]
