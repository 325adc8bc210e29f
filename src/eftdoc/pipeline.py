"""Documentation pipeline orchestrator.

Sequence for one run:
1. Load the model (structural errors surface before the catalog is touched)
2. Open the metadata source, merge, close the source (on every exit path)
3. Save the model once, only after the whole merge succeeded
4. Patch the companion templates (keyed by the input path only)

Any fatal error in steps 1-3 propagates to the caller with the output file
untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from eftdoc.catalog.base import MetadataSource
from eftdoc.config import EftdocConfig
from eftdoc.merger import DocumentMerger
from eftdoc.models import EdmxModel, MergeResult, PatchResult
from eftdoc.templates import TemplatePatcher, get_marker_set

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    """Options for controlling pipeline execution.

    Attributes:
        output_path: Where to write the model (defaults to the input path)
        skip_templates: Do not patch the companion templates
        dry_run: Merge in memory only; write nothing
    """

    output_path: Path | None = None
    skip_templates: bool = False
    dry_run: bool = False


@dataclass
class PipelineResult:
    """Outcome of a complete run.

    Attributes:
        input_path: Model that was read
        output_path: Model that was written (None on dry run)
        merge: Merge pass outcome
        patch: Template patch outcome (None when skipped)
    """

    input_path: Path
    output_path: Path | None
    merge: MergeResult
    patch: PatchResult | None = None


class DocumentationPipeline:
    """Runs load -> merge -> save -> patch for one EDMX model.

    The metadata source is created through ``source_factory`` and scoped to
    the merge step, so its connection is released before anything is
    written.
    """

    def __init__(
        self,
        source_factory: Callable[[], MetadataSource],
        config: EftdocConfig | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            source_factory: Builds the (unopened) metadata source for the run
            config: eftdoc configuration (uses defaults if None)
        """
        self.config = config or EftdocConfig()
        self._source_factory = source_factory

    def run(self, input_path: Path, options: PipelineOptions | None = None) -> PipelineResult:
        """Execute the full pipeline.

        Raises:
            ConfigurationError: If the metadata source cannot be configured
            StructuralError: If the model cannot be loaded or resolved
            ConnectivityError: If the catalog is unreachable or a lookup fails
        """
        options = options or PipelineOptions()
        output_path = options.output_path or input_path

        source = self._source_factory()

        logger.info("Loading model: %s", input_path)
        model = EdmxModel.load(input_path)

        logger.info("Reading descriptions from %s", source.describe())
        with source:
            merge_result = DocumentMerger(source).merge(model)

        result = PipelineResult(
            input_path=input_path,
            output_path=None,
            merge=merge_result,
        )

        if options.dry_run:
            logger.info("Dry run: model not written, templates not patched")
            return result

        model.save(output_path)
        result.output_path = output_path
        logger.info("Writing result to %s", output_path)

        if options.skip_templates or not self.config.templates.enabled:
            logger.info("Skipping companion templates")
        else:
            result.patch = self.patch_templates(input_path)

        return result

    def patch_templates(self, input_path: Path) -> PatchResult:
        """Patch the companion templates of ``input_path``."""
        patcher = TemplatePatcher(get_marker_set(self.config.templates.marker_set))
        return patcher.patch(input_path)
