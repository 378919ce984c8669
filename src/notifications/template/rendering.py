"""Template rendering: `{{variable}}` substitution.

Pure functions, no domain access. A placeholder is two braces around a
word (letters, digits, underscore). Placeholders without a value are left
in the text as they are.
"""

import re
from dataclasses import dataclass, field

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class VariableCheck:
    is_valid: bool
    missing_variables: list[str] = field(default_factory=list)


def render_message(template: str, variables: dict) -> str:
    def substitute(match):
        name = match.group(1)
        if name in variables and variables[name] is not None:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER.sub(substitute, template or "")


def get_required_variables(template: str) -> list[str]:
    """Distinct placeholder names, in order of first appearance."""
    seen = []
    for name in PLACEHOLDER.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return seen


def validate_variables(template: str, variables: dict) -> VariableCheck:
    provided = {k for k, v in (variables or {}).items() if v is not None}
    missing = [name for name in get_required_variables(template) if name not in provided]
    return VariableCheck(is_valid=not missing, missing_variables=missing)


def preview(template: str, variables: dict) -> dict:
    """Render for display, reporting missing variables instead of failing."""
    check = validate_variables(template, variables)
    if not check.is_valid:
        return {"success": False, "missing_variables": check.missing_variables}
    return {"success": True, "rendered_message": render_message(template, variables)}
