"""
Placeholder substitution.

Two flavours are used by the handlers: `{{name}}` for text shown to people
(node descriptions, email subject and body) and `{key}` for integration URL
templates. Both are plain textual replacement; unknown placeholders are left
as they are and nothing is URL-encoded.
"""

from typing import Any, Mapping


def format_value(value: Any) -> str:
    """String form of a variable as it appears in rendered text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_text(template: str, variables: Mapping[str, Any]) -> str:
    """Replace every {{name}} with the matching variable."""
    rendered = template
    for key, value in variables.items():
        rendered = rendered.replace("{{" + key + "}}", format_value(value))
    return rendered


def render_url(template: str, values: Mapping[str, Any]) -> str:
    """Replace every {key} in a URL template with the matching value."""
    url = template
    for key, value in values.items():
        url = url.replace("{" + key + "}", format_value(value))
    return url
