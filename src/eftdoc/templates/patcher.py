"""Companion template patcher.

Locates ``<model>.Context.tt`` and ``<model>.tt`` next to an EDMX model and
wraps the generator expressions listed in the marker table so the generated
code carries each member's documentation summary.

Missing companions are not an error: they are skipped and logged. A companion
that cannot be read, decoded or written is logged as a warning and left
unchanged; the model saved before patching is kept.
"""

import codecs
import logging
from pathlib import Path

from eftdoc.models.results import PatchResult, TemplatePatchOutcome
from eftdoc.templates.markers import MarkerSet, TemplateKind, get_marker_set, patch_text

logger = logging.getLogger(__name__)

MODEL_SUFFIX = ".edmx"


def companion_path(model_path: Path, kind: TemplateKind) -> Path | None:
    """Derive a companion template path from the model path.

    The trailing ``.edmx`` (any case) is replaced by the kind's suffix.

    Returns:
        Companion path, or None when the model file is not an ``.edmx``
    """
    name = model_path.name
    if not name.lower().endswith(MODEL_SUFFIX):
        return None
    return model_path.with_name(name[: -len(MODEL_SUFFIX)] + kind.value)


# UTF-32 LE is listed before UTF-16 LE: its BOM starts with the UTF-16 LE one
_BOMS = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


def _decode(raw: bytes) -> tuple[str, str, bytes]:
    """Decode template bytes.

    A byte order mark selects the encoding; text without one must be UTF-8.

    Returns:
        (text, encoding, bom) where ``bom`` is empty when none was present

    Raises:
        UnicodeDecodeError: If the bytes are not valid in the detected encoding
    """
    for bom, encoding in _BOMS:
        if raw.startswith(bom):
            return raw[len(bom):].decode(encoding), encoding, bom
    return raw.decode("utf-8"), "utf-8", b""


def _encode(text: str, encoding: str, bom: bytes) -> bytes:
    return bom + text.encode(encoding)


def _describe(error: Exception) -> str:
    if isinstance(error, UnicodeDecodeError):
        return f"cannot decode as {error.encoding} ({error.reason} at byte {error.start})"
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error)


class TemplatePatcher:
    """Patches the two T4 companions of an EDMX model.

    Usage:
        patcher = TemplatePatcher()
        result = patcher.patch(Path("Model.edmx"))
    """

    def __init__(self, marker_set: MarkerSet | None = None) -> None:
        """Initialize the patcher.

        Args:
            marker_set: Marker table to apply (defaults to ``ef6``)
        """
        self.marker_set = marker_set or get_marker_set()

    def patch(self, model_path: Path) -> PatchResult:
        """Patch every existing companion template of ``model_path``.

        Args:
            model_path: Path of the EDMX model (the input, not the output)

        Returns:
            PatchResult with one outcome per companion kind
        """
        result = PatchResult()

        for kind in (TemplateKind.CONTEXT, TemplateKind.ENTITY):
            path = companion_path(model_path, kind)
            if path is None:
                logger.info("No companion templates for non-.edmx model: %s", model_path)
                break
            result.outcomes.append(self.patch_file(path, kind))

        if result.all_present and not result.failed:
            logger.info("Re-run the T4 \"Custom Tool\" to regenerate the summaries")
            for outcome in result.outcomes:
                logger.info("  %s", outcome.path.name)

        return result

    def patch_file(self, path: Path, kind: TemplateKind) -> TemplatePatchOutcome:
        """Apply the marker rules for ``kind`` to one template file.

        The file is rewritten only if it exists and the text changed.
        Encoding (BOM) and line endings are preserved. A template that cannot
        be read, decoded or written is left as it was and reported through
        the outcome's ``error``.
        """
        if not path.is_file():
            logger.info("Template not found, skipping: %s", path)
            return TemplatePatchOutcome(path=path, kind=kind, existed=False)

        try:
            text, encoding, bom = _decode(path.read_bytes())
        except (OSError, UnicodeDecodeError) as e:
            return self._failed(path, kind, e)

        patched, replaced = patch_text(text, self.marker_set.for_kind(kind))

        written = patched != text
        if written:
            try:
                path.write_bytes(_encode(patched, encoding, bom))
            except OSError as e:
                return self._failed(path, kind, e)
            logger.info("Added documentation markers to %s (%d replaced)", path, replaced)
        else:
            logger.info("No unpatched markers in %s", path)

        return TemplatePatchOutcome(
            path=path,
            kind=kind,
            existed=True,
            replacements=replaced,
            written=written,
        )

    def _failed(self, path: Path, kind: TemplateKind, error: Exception) -> TemplatePatchOutcome:
        message = _describe(error)
        logger.warning("Could not patch %s: %s", path, message)
        return TemplatePatchOutcome(path=path, kind=kind, existed=True, error=message)
