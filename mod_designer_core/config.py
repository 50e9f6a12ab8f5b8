"""
Designer settings: environment-driven configuration.

Every setting is resolved the same way: environment variable (``.env`` or
shell) first, then a hard-coded default.  Catalog paths left unset fall back
to the catalogs packaged under ``mod_designer_core/data``.
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_MOD_NAME = 'designer-mod'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def resolve_setting(env_var: str, default: str) -> str:
    """Two-tier resolution: env → default."""
    env_val = os.environ.get(env_var, '').strip()
    if env_val:
        return env_val
    return default


def _resolve_bool(env_var: str, default: bool) -> bool:
    value = resolve_setting(env_var, '')
    if not value:
        return default
    return value.lower() in _TRUE_VALUES


def _resolve_int(env_var: str, default: int) -> int:
    value = resolve_setting(env_var, '')
    try:
        return int(value) if value else default
    except ValueError:
        return default


@dataclass
class DesignerSettings:
    """Effective configuration for a designer session."""
    default_mod_name: str = DEFAULT_MOD_NAME
    indent_size: int = 2
    dedupe_shared_descendants: bool = False
    reject_cycles: bool = False
    node_catalog_path: Optional[str] = None
    variable_catalog_path: Optional[str] = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'DesignerSettings':
        """Build settings from ``MOD_DESIGNER_*`` environment variables."""
        return cls(
            default_mod_name=resolve_setting('MOD_DESIGNER_MOD_NAME', DEFAULT_MOD_NAME),
            indent_size=max(1, _resolve_int('MOD_DESIGNER_INDENT_SIZE', 2)),
            dedupe_shared_descendants=_resolve_bool('MOD_DESIGNER_DEDUPE', False),
            reject_cycles=_resolve_bool('MOD_DESIGNER_REJECT_CYCLES', False),
            node_catalog_path=resolve_setting('MOD_DESIGNER_NODE_CATALOG', '') or None,
            variable_catalog_path=resolve_setting('MOD_DESIGNER_VARIABLE_CATALOG', '') or None,
            log_level=resolve_setting('MOD_DESIGNER_LOG_LEVEL', 'INFO').upper(),
        )
