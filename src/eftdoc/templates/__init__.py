"""T4 companion template patching.

Literal marker substitution only: the marker table maps exact generator
expressions to wrapped expressions that emit a documentation comment.
"""

from eftdoc.templates.markers import (
    MARKER_SETS,
    MarkerRule,
    MarkerSet,
    TemplateKind,
    get_marker_set,
    patch_text,
)
from eftdoc.templates.patcher import TemplatePatcher, companion_path

__all__ = [
    "MARKER_SETS",
    "MarkerRule",
    "MarkerSet",
    "TemplateKind",
    "TemplatePatcher",
    "companion_path",
    "get_marker_set",
    "patch_text",
]
