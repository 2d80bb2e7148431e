"""Stack dependency ordering"""

from typing import Callable, Dict, Iterable, List

from stacksmith.exceptions import CircularDependencyError


def dependency_order(
    stack_names: Iterable[str], dependency_lookup: Callable[[str], List[str]]
) -> List[str]:
    """
    Order stacks so every stack comes after the stacks it depends on.

    Uses Kahn's algorithm over the requested set only: dependencies on
    stacks outside the set are ignored. Ready stacks are taken in
    alphabetical order so the result does not depend on input order.

    Args:
        stack_names: Stacks to order (duplicates are ignored)
        dependency_lookup: Returns the dependency names of a stack

    Returns:
        Stack names in deployment order

    Raises:
        CircularDependencyError: If the requested stacks contain a cycle
    """
    names = sorted(set(stack_names))
    requested = set(names)

    in_degree: Dict[str, int] = {name: 0 for name in names}
    dependents: Dict[str, List[str]] = {name: [] for name in names}

    for name in names:
        for dep in set(dependency_lookup(name)):
            if dep in requested:
                dependents[dep].append(name)
                in_degree[name] += 1

    queue = sorted(name for name, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        current = queue.pop(0)
        order.append(current)

        for dependent in sorted(dependents[current]):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)
                queue.sort()

    if len(order) != len(names):
        raise CircularDependencyError(name for name in names if name not in order)

    return order


def deletion_order(deployment_order: List[str]) -> List[str]:
    """Deletion order: the exact reverse of the deployment order."""
    return list(reversed(deployment_order))
