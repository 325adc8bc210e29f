"""Documentation merge pass.

Walks every EntityType of the model in document order, then each of its
Property nodes, and replaces their Documentation child with the text the
MetadataSource reports. Existing Documentation is always removed first, so
the pass is idempotent and always reflects the current catalog state.

The model is only mutated in memory here; saving is the caller's job and
happens once, after the whole pass succeeded.
"""

import logging

from lxml import etree

from eftdoc.catalog.base import MetadataSource
from eftdoc.errors import StructuralError
from eftdoc.models.edmx import (
    DOCUMENTATION,
    SUMMARY,
    EdmxModel,
    children_by_local_name,
    local_name,
    qualified,
)
from eftdoc.models.results import EntityReport, MergeResult

logger = logging.getLogger(__name__)


def apply_documentation(node: etree._Element, text: str | None) -> tuple[bool, int]:
    """Replace the Documentation child of ``node``.

    All existing Documentation children are removed. If ``text`` is
    non-empty a new ``Documentation/Summary`` holding ``text`` verbatim is
    inserted as the first child.

    Returns:
        Tuple of (documentation written, number of nodes removed)

    Raises:
        StructuralError: If ``text`` holds characters XML cannot represent
    """
    existing = children_by_local_name(node, DOCUMENTATION)
    for child in existing:
        node.remove(child)

    if not text:
        return False, len(existing)

    documentation = etree.Element(qualified(node, DOCUMENTATION))
    summary = etree.SubElement(documentation, qualified(node, SUMMARY))
    try:
        summary.text = text
    except ValueError as e:
        raise StructuralError(
            f"Documentation for '{node.get('Name')}' is not valid XML text: {e}",
            node_type=local_name(node),
            line=node.sourceline,
        ) from e

    node.insert(0, documentation)
    return True, len(existing)


def _require_name(node: etree._Element, ordinal: int) -> str:
    name = node.get("Name")
    if not name:
        raise StructuralError(
            "Missing Name attribute",
            node_type=local_name(node),
            ordinal=ordinal,
            line=node.sourceline,
        )
    return name


class DocumentMerger:
    """Merges catalog descriptions into an EDMX model.

    Usage:
        with source:
            result = DocumentMerger(source).merge(model)
    """

    def __init__(self, source: MetadataSource) -> None:
        """Initialize the merger.

        Args:
            source: Open metadata source used for every lookup
        """
        self.source = source

    def merge(self, model: EdmxModel) -> MergeResult:
        """Run the entity/property pass over ``model``.

        Raises:
            StructuralError: If an entity or property has no Name
            ConnectivityError: If a metadata lookup fails
        """
        result = MergeResult()
        entities = model.entities()
        total = len(entities)

        for index, entity in enumerate(entities, start=1):
            table_name = _require_name(entity, index)
            properties = model.properties(entity)

            logger.info(
                "Analyzing table %d of %d: %s (%d properties)",
                index,
                total,
                table_name,
                len(properties),
            )

            report = EntityReport(name=table_name, property_count=len(properties))

            written, removed = apply_documentation(
                entity, self.source.get_table_documentation(table_name)
            )
            report.documented = written
            result.removed += removed

            for position, prop in enumerate(properties, start=1):
                column_name = _require_name(prop, position)
                documentation = self.source.get_column_documentation(table_name, column_name)
                written, removed = apply_documentation(prop, documentation)
                if written:
                    report.documented_properties += 1
                result.removed += removed
                logger.debug(
                    "  %s.%s: %s",
                    table_name,
                    column_name,
                    "documented" if written else "no description",
                )

            result.entities.append(report)

        logger.info(
            "Documented %d of %d tables and %d of %d columns",
            result.documented_entities,
            result.entity_count,
            result.documented_properties,
            result.property_count,
        )
        return result
