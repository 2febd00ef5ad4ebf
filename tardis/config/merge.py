"""Leaf-level merge of raw configuration trees.

Trees are merged in precedence order, lowest first:
local-default, local-profile, remote-default, remote-profile, environment.
Nested mappings are merged key by key so an overlay can change a single
nested field without repeating its siblings. Lists and scalars are leaves.
"""

from collections.abc import Iterable
from copy import deepcopy
from typing import Any

import structlog

from tardis.errors import FormatError

logger = structlog.get_logger(__name__)

WORKSPACE_KEY = "cs"
WORKSPACE_MODULES_KEY = "csm"
FRAMEWORK_KEY = "fw"
DEFAULT_MODULE = ""


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    For nested dictionaries, values are merged recursively.
    For other values, override replaces base. Neither input is modified.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base)

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def merge_trees(trees: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Fold an ordered sequence of trees into one, last wins per leaf."""
    merged: dict[str, Any] = {}
    for tree in trees:
        merged = deep_merge(merged, tree)
    return merged


def split_tree(tree: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a merged tree into workspace sections and the framework branch.

    ``cs`` becomes the default module ('' key), each entry of ``csm`` becomes
    a named module. A missing ``fw`` branch yields {}.

    Returns:
        (workspace, framework_tree)

    Raises:
        FormatError: If ``csm`` or ``fw`` is present but not a mapping
    """
    workspace: dict[str, Any] = {}

    if WORKSPACE_KEY in tree:
        workspace[DEFAULT_MODULE] = deepcopy(tree[WORKSPACE_KEY])
    else:
        logger.info("config_section_missing", section=WORKSPACE_KEY)

    modules = tree.get(WORKSPACE_MODULES_KEY)
    if modules is None:
        logger.info("config_section_missing", section=WORKSPACE_MODULES_KEY)
    elif not isinstance(modules, dict):
        raise FormatError(
            f"[Tardis.Config] [{WORKSPACE_MODULES_KEY}] must be a mapping of module name to "
            f"configuration, got {type(modules).__name__}"
        )
    else:
        for name, section in modules.items():
            workspace[str(name)] = deepcopy(section)

    framework = tree.get(FRAMEWORK_KEY)
    if framework is None:
        logger.info("config_section_missing", section=FRAMEWORK_KEY)
        framework = {}
    elif not isinstance(framework, dict):
        raise FormatError(
            f"[Tardis.Config] [{FRAMEWORK_KEY}] must be a mapping, got {type(framework).__name__}"
        )

    return workspace, deepcopy(framework)
