"""
Handlebars-style substitution for email templates.

Supports `{{name}}` placeholders and `{{#if name}}...{{else}}...{{/if}}`
blocks (the `{{else}}` branch is optional). Blocks nest and are resolved
from the innermost outwards.
"""
import json
import math
import re
from typing import Any, Mapping

MAX_CONDITIONAL_PASSES = 10

# A block whose body holds no other {{#if}} or {{/if}}, i.e. an innermost one
_INNERMOST_IF = re.compile(
    r"\{\{#if\s+(\w+)\}\}((?:(?!\{\{#if\s|\{\{/if\}\}).)*?)\{\{/if\}\}",
    re.DOTALL,
)
_STRAY_TAGS = re.compile(r"\{\{#if\s+\w+\}\}|\{\{/if\}\}|\{\{else\}\}")
_ELSE = "{{else}}"


def stringify(value: Any) -> str:
    """String form used when a variable is substituted into a template."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def is_truthy(value: Any) -> bool:
    """None, "", False and 0 are falsy. Empty lists and dicts count as set."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return True


def _resolve_block(match: re.Match, variables: Mapping[str, Any]) -> str:
    name, body = match.group(1), match.group(2)
    truthy_branch, has_else, falsy_branch = body.partition(_ELSE)
    if is_truthy(variables.get(name)):
        return truthy_branch
    return falsy_branch if has_else else ""


def render_template(template: str, variables: Mapping[str, Any]) -> str:
    """
    Substitute variables and resolve conditionals.

    Unknown placeholders are left in place. Unbalanced conditional tags are
    stripped after at most MAX_CONDITIONAL_PASSES resolution passes, so the
    function never raises or loops on malformed input.
    """
    result = template
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", stringify(value))

    for _ in range(MAX_CONDITIONAL_PASSES):
        resolved = _INNERMOST_IF.sub(lambda m: _resolve_block(m, variables), result)
        if resolved == result:
            break
        result = resolved

    return _STRAY_TAGS.sub("", result)
