"""
Value substitution for node parameters.

Parameter values are entered as plain text in the sidebar.  Before they are
spliced into generated JavaScript they are rewritten into an expression:

    "$player"               → player                 (variable in scope)
    "Welcome ${player.name}" → `Welcome ${player.name}` (template literal)
    "hello"                 → "hello"                (string literal)
    20 / true               → 20 / true              (literal form)
"""

import json
from typing import Any, Iterable


REFERENCE_SIGIL = '$'
INTERPOLATION_MARKER = '${'
TEMPLATE_DELIMITER = '`'


def js_literal(value: Any) -> str:
    """Render a non-string parameter in its JavaScript literal form."""
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return json.dumps(str(value), ensure_ascii=False)


def quote(value: str) -> str:
    """Double-quoted JavaScript string literal with standard escaping."""
    return json.dumps(value, ensure_ascii=False)


def is_available_reference(name: str, available: Iterable[str]) -> bool:
    """A name matches an available variable exactly or as its dotted prefix."""
    prefix = name + '.'
    return any(var == name or var.startswith(prefix) for var in available)


def substitute(value: Any, available: Iterable[str]) -> str:
    """Rewrite a raw parameter value into a JavaScript expression fragment."""
    if not isinstance(value, str):
        return js_literal(value)

    available = list(available)

    if value.startswith(REFERENCE_SIGIL) and not value.startswith(INTERPOLATION_MARKER):
        name = value[len(REFERENCE_SIGIL):]
        if name and is_available_reference(name, available):
            return name

    if INTERPOLATION_MARKER in value:
        return f"{TEMPLATE_DELIMITER}{value}{TEMPLATE_DELIMITER}"

    return quote(value)
