"""Versioned marker table for T4 companion templates.

Each MarkerRule names one exact expression emitted by the Entity Framework
T4 generators and the member whose Documentation should precede it. The
replacement expression is rendered from a Jinja2 template, so the table
can be inspected and tested without touching the filesystem.

Patching is literal substring replacement. Once a marker has been wrapped
it no longer appears verbatim, so a second pass is a no-op; a marker that
reappears unwrapped is wrapped again.
"""

from dataclasses import dataclass
from enum import Enum
from functools import cached_property

from jinja2 import Environment, StrictUndefined


class TemplateKind(Enum):
    """Companion template kinds, keyed by the suffix replacing ``.edmx``."""

    CONTEXT = ".Context.tt"
    ENTITY = ".tt"


# Renders to a single line; it lands inside one T4 expression block.
_WRAPPER_SOURCE = (
    '<#="/// <summary>" + Environment.NewLine + {{ pad }}"/// " + '
    '(({{ member }}.Documentation != null) ? {{ member }}.Documentation.Summary : "") + '
    'Environment.NewLine + {{ pad }}"/// </summary>" + Environment.NewLine + '
    "{{ pad }}{{ expression }}#>"
)

_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=False)
_wrapper = _env.from_string(_WRAPPER_SOURCE)


@dataclass(frozen=True)
class MarkerRule:
    """One marker -> replacement mapping.

    Attributes:
        kind: Template the marker lives in
        expression: Generator call inside the ``<#= ... #>`` block
        member: T4 expression of the documented EDM member
        indent: Spaces emitted before each generated comment line
    """

    kind: TemplateKind
    expression: str
    member: str
    indent: int = 0

    @property
    def marker(self) -> str:
        """Exact text searched for in the template."""
        return f"<#={self.expression}#>"

    @cached_property
    def replacement(self) -> str:
        """Wrapped expression that prefixes a documentation comment."""
        pad = f'"{" " * self.indent}" + ' if self.indent else ""
        return _wrapper.render(pad=pad, member=self.member, expression=self.expression)


@dataclass(frozen=True)
class MarkerSet:
    """A versioned collection of marker rules."""

    name: str
    rules: tuple[MarkerRule, ...]

    def for_kind(self, kind: TemplateKind) -> tuple[MarkerRule, ...]:
        """Rules that apply to one companion template kind."""
        return tuple(rule for rule in self.rules if rule.kind is kind)


# Entity Framework 6 DbContext generator (EF6.x T4 templates)
EF6 = MarkerSet(
    name="ef6",
    rules=(
        MarkerRule(
            kind=TemplateKind.CONTEXT,
            expression="codeStringGenerator.DbSet(entitySet)",
            member="entitySet.ElementType",
            indent=4,
        ),
        MarkerRule(
            kind=TemplateKind.ENTITY,
            expression="codeStringGenerator.EntityClassOpening(entity)",
            member="entity",
        ),
        MarkerRule(
            kind=TemplateKind.ENTITY,
            expression="codeStringGenerator.Property(edmProperty)",
            member="edmProperty",
            indent=4,
        ),
        MarkerRule(
            kind=TemplateKind.ENTITY,
            expression="codeStringGenerator.Property(complexProperty)",
            member="complexProperty",
            indent=4,
        ),
    ),
)

MARKER_SETS: dict[str, MarkerSet] = {EF6.name: EF6}


def get_marker_set(name: str = "ef6") -> MarkerSet:
    """Look up a marker set by name.

    Raises:
        KeyError: If no marker set has that name
    """
    return MARKER_SETS[name]


def patch_text(text: str, rules: tuple[MarkerRule, ...]) -> tuple[str, int]:
    """Apply marker rules to template text.

    Args:
        text: Full template content
        rules: Rules to apply, in order

    Returns:
        Tuple of (patched text, number of marker occurrences replaced)
    """
    replaced = 0
    for rule in rules:
        count = text.count(rule.marker)
        if count:
            text = text.replace(rule.marker, rule.replacement)
            replaced += count
    return text, replaced
