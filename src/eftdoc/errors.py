"""Fatal error taxonomy.

Every fatal condition raised by eftdoc derives from EftdocError. The CLI is
the single top-level handler: it logs the error kind and message and exits
with ``exit_code``. Nothing is retried.

- ConfigurationError: bad or missing connection descriptor / config values
- StructuralError: model cannot be loaded or a node cannot be resolved
- ConnectivityError: catalog unreachable or a metadata query failed
"""


class EftdocError(Exception):
    """Base class for all fatal eftdoc errors."""

    kind = "fatal"
    exit_code = 1

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(EftdocError):
    """Raised before any file or catalog activity when configuration is unusable."""

    kind = "configuration"

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class StructuralError(EftdocError):
    """Raised when the model has no root or a node lacks identifying data.

    Attributes:
        node_type: Local element name of the offending node (if any)
        ordinal: 1-based position of the node among its siblings of that type
        line: Source line of the node in the model file
    """

    kind = "structural"

    def __init__(
        self,
        message: str,
        node_type: str | None = None,
        ordinal: int | None = None,
        line: int | None = None,
    ) -> None:
        self.node_type = node_type
        self.ordinal = ordinal
        self.line = line

        context = []
        if node_type:
            context.append(node_type if ordinal is None else f"{node_type} #{ordinal}")
        if line:
            context.append(f"line {line}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ConnectivityError(EftdocError):
    """Raised when the metadata source is unreachable or a query fails.

    The underlying driver exception is chained (``raise ... from``) so the
    original error stays visible in verbose output.
    """

    kind = "connectivity"
