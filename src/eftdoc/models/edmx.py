"""EDMX model document.

Thin wrapper over an lxml tree. Elements are matched by local name so the
EDMX/CSDL/SSDL namespace prefixes in use are irrelevant. Blank text is
dropped on load and the tree is pretty-printed on save, which makes a
load/save cycle with identical content byte-identical.
"""

from collections.abc import Iterator
from pathlib import Path

from lxml import etree

from eftdoc.errors import StructuralError

ENTITY_TYPE = "EntityType"
PROPERTY = "Property"
DOCUMENTATION = "Documentation"
SUMMARY = "Summary"


def local_name(element: etree._Element) -> str | None:
    """Local part of an element tag, or None for comments and PIs."""
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def iter_by_local_name(element: etree._Element, name: str) -> Iterator[etree._Element]:
    """Descendants of ``element`` with local name ``name``, in document order."""
    for node in element.iterdescendants():
        if local_name(node) == name:
            yield node


def children_by_local_name(element: etree._Element, name: str) -> list[etree._Element]:
    """Direct children of ``element`` with local name ``name``."""
    return [child for child in element if local_name(child) == name]


def qualified(element: etree._Element, name: str) -> str:
    """Tag for a new child of ``element`` in the element's own namespace."""
    namespace = etree.QName(element).namespace
    return f"{{{namespace}}}{name}" if namespace else name


def _parser() -> etree.XMLParser:
    return etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)


class EdmxModel:
    """Loaded EDMX document.

    Usage:
        model = EdmxModel.load(Path("Model.edmx"))
        for entity in model.entities():
            ...
        model.save(Path("Model.edmx"))
    """

    def __init__(self, tree: etree._ElementTree, path: Path | None = None) -> None:
        root = tree.getroot()
        if root is None:
            raise StructuralError(f"Model has no root element: {path}")
        self.tree = tree
        self.path = path

    @property
    def root(self) -> etree._Element:
        return self.tree.getroot()

    @classmethod
    def load(cls, path: Path) -> "EdmxModel":
        """Parse a model file.

        Raises:
            StructuralError: If the file is not well-formed XML or has no root
        """
        try:
            tree = etree.parse(str(path), _parser())
        except etree.XMLSyntaxError as e:
            raise StructuralError(f"Cannot parse model {path}: {e}") from e
        return cls(tree, path)

    @classmethod
    def from_string(cls, text: str | bytes) -> "EdmxModel":
        """Parse a model from an in-memory document."""
        if isinstance(text, str):
            text = text.encode("utf-8")
        try:
            root = etree.fromstring(text, _parser())
        except etree.XMLSyntaxError as e:
            raise StructuralError(f"Cannot parse model: {e}") from e
        return cls(root.getroottree())

    def entities(self) -> list[etree._Element]:
        """All EntityType elements in document order."""
        return list(iter_by_local_name(self.root, ENTITY_TYPE))

    @staticmethod
    def properties(entity: etree._Element) -> list[etree._Element]:
        """Property elements of an entity in document order."""
        return list(iter_by_local_name(entity, PROPERTY))

    def to_bytes(self) -> bytes:
        """Serialize the document as pretty-printed UTF-8 with a declaration."""
        return etree.tostring(
            self.tree,
            xml_declaration=True,
            encoding="utf-8",
            pretty_print=True,
        )

    def save(self, path: Path) -> Path:
        """Write the document to ``path``, replacing any existing file.

        The document is serialized before the existing file is removed.

        Returns:
            Path written
        """
        data = self.to_bytes()

        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            path.unlink()
        path.write_bytes(data)

        return path
