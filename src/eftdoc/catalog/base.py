"""Abstract metadata source.

A MetadataSource answers "what is the description of this table / column?"
for the merge pass. Implementations own whatever connection they need and
release it in ``close()``; use them as context managers so the release
happens on every exit path:

    with source:
        merger.merge(model)
"""

from abc import ABC, abstractmethod
from types import TracebackType


class MetadataSource(ABC):
    """Lookup interface over a catalog's table/column descriptions."""

    name = "metadata"

    def open(self) -> None:
        """Acquire the underlying connection (no-op by default)."""

    def close(self) -> None:
        """Release the underlying connection (no-op by default)."""

    def __enter__(self) -> "MetadataSource":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @abstractmethod
    def get_table_documentation(self, table_name: str) -> str | None:
        """Return the description recorded for a table.

        Returns:
            Description text, or None when nothing (or an empty string) is recorded

        Raises:
            ConnectivityError: If the lookup cannot be performed
        """

    @abstractmethod
    def get_column_documentation(self, table_name: str, column_name: str) -> str | None:
        """Return the description recorded for a column of a table.

        Returns:
            Description text, or None when nothing (or an empty string) is recorded

        Raises:
            ConnectivityError: If the lookup cannot be performed
        """

    def describe(self) -> str:
        """Human-readable identification for log messages."""
        return self.name


def normalize_documentation(value: object) -> str | None:
    """Map a raw catalog value to documentation text.

    NULL and empty strings mean "no documentation". Other values are
    returned verbatim as text.
    """
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None
