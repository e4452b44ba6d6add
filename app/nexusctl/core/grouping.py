"""Grouping of components by a filename key.

Rules can split component names on a separator so that, for example,
"build_101.zip" and "build_102.zip" share the group "build" and are
counted together against the minimum file floor.
"""

from collections.abc import Iterable

from nexusctl.core.config import ConfigError
from nexusctl.models.component import Component

UNGROUPED = "ungrouped"


class GroupingError(ConfigError):
    """Raised when a component name does not contain the group separator."""

    def __init__(self, component: Component, separator: str) -> None:
        self.component = component
        self.separator = separator
        super().__init__(f"No split found for '{component.name}' using separator '{separator}'")


def group_components(
    components: Iterable[Component], separator: str
) -> dict[str, list[Component]]:
    """Partition components by the name prefix before a separator.

    Args:
        components: Components to partition.
        separator: Split string. Empty puts everything into one "ungrouped" group.

    Returns:
        Mapping of group key to components, input order preserved per group.

    Raises:
        GroupingError: If a component name does not contain the separator.
    """
    if not separator:
        return {UNGROUPED: list(components)}

    groups: dict[str, list[Component]] = {}
    for component in components:
        key, found, _ = component.name.partition(separator)
        if not found:
            raise GroupingError(component, separator)
        groups.setdefault(key, []).append(component)
    return groups
