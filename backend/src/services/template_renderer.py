"""
Placeholder parsing and description rendering.

Templates are free text with ``{{ name }}`` placeholders. Nothing in this module
touches the database, the clock or the network: the same inputs always render
the same description, so the live preview and the push pipeline agree on
exactly what gets published.
"""
import re
from collections.abc import Mapping, Sequence
from typing import Protocol
from uuid import UUID

# A name wrapped in double braces. Braces inside the name are not allowed, so
# "{{a {{b}}" resolves to the well-formed "{{b}}" and an unterminated "{{a" is
# plain text.
PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

# Variables the system fills in itself; they are never seeded as user variables
SYSTEM_VARIABLES: tuple[str, ...] = ("video-id",)


class TemplateLike(Protocol):
    """Anything with template text; ``id`` is optional and enables scoped values."""

    content: str


def is_system_variable(name: str) -> bool:
    """Check whether a variable is provided by the system."""
    return name in SYSTEM_VARIABLES


def parse_variables(text: str | None) -> list[str]:
    """
    Extract the distinct placeholder names referenced by a template.

    Names are trimmed and case-sensitive, and returned in first-occurrence order.
    Empty or malformed markers are ignored; this function never raises.

    Args:
        text: Template content. ``None`` and ``""`` yield an empty list.

    Returns:
        Unique variable names without braces.
    """
    if not text:
        return []

    names: list[str] = []
    seen: set[str] = set()
    for match in PLACEHOLDER_PATTERN.finditer(text):
        name = match.group(1).strip()
        if name and name not in seen:
            seen.add(name)
            names.append(name)
    return names


def parse_user_variables(text: str | None) -> list[str]:
    """Extract placeholder names that users fill in (system variables excluded)."""
    return [name for name in parse_variables(text) if not is_system_variable(name)]


def _template_id(template: TemplateLike) -> str | None:
    template_id = getattr(template, "id", None)
    return str(template_id) if template_id is not None else None


def _lookup(
    name: str,
    values: Mapping[str, str],
    scoped: Mapping[str, str] | None,
) -> str | None:
    if scoped is not None and name in scoped:
        return scoped[name]
    return values.get(name)


def replace_variables(
    content: str,
    values: Mapping[str, str],
    scoped_values: Mapping[str, str] | None = None,
) -> str:
    """
    Substitute placeholders in a single piece of text.

    ``scoped_values`` take precedence over ``values``. Placeholders without a
    value are kept verbatim so unresolved markers stay visible.
    """
    def _substitute(match: re.Match[str]) -> str:
        value = _lookup(match.group(1).strip(), values, scoped_values)
        return match.group(0) if value is None else value

    return PLACEHOLDER_PATTERN.sub(_substitute, content)


def render_description(
    templates: Sequence[TemplateLike],
    values: Mapping[str, str],
    separator: str = "\n\n",
    template_values: Mapping[UUID | str, Mapping[str, str]] | None = None,
) -> str:
    """
    Build the final description from ordered templates.

    Each template is rendered on its own and the rendered segments are joined
    with ``separator`` (an empty separator concatenates them).

    Args:
        templates: Templates in container order.
        values: Variable values by name, shared by all templates.
        separator: Text inserted between rendered segments.
        template_values: Optional values per template id. A template's own
            values win over ``values`` for that template only, which keeps two
            templates using the same placeholder name independent.

    Returns:
        The rendered description; ``""`` when ``templates`` is empty.
    """
    scoped_by_template = {
        str(template_id): scoped
        for template_id, scoped in (template_values or {}).items()
    }
    segments = []
    for template in templates:
        template_id = _template_id(template)
        scoped = scoped_by_template.get(template_id) if template_id else None
        segments.append(replace_variables(template.content or "", values, scoped))
    return separator.join(segments)


def find_missing_variables(
    templates: Sequence[TemplateLike],
    values: Mapping[str, str],
    template_values: Mapping[UUID | str, Mapping[str, str]] | None = None,
) -> list[str]:
    """
    List placeholder names that have no value, or only a blank one.

    Names are reported once, in the order they first appear across templates.
    """
    scoped_by_template = {
        str(template_id): scoped
        for template_id, scoped in (template_values or {}).items()
    }
    missing: list[str] = []
    for template in templates:
        template_id = _template_id(template)
        scoped = scoped_by_template.get(template_id) if template_id else None
        for name in parse_variables(template.content):
            value = _lookup(name, values, scoped)
            if (value is None or not value.strip()) and name not in missing:
                missing.append(name)
    return missing
