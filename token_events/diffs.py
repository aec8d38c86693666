"""
Bigmap Diff Index - Search over the storage mutations attached to an operation.

One operation may touch several bigmaps; every handler goes through
`find_diff`/`filter_diffs` so the predicate lives in one place.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from token_events.models import BigmapDiff


ActionSpec = Union[str, Iterable[str]]
DiffLike = Union[BigmapDiff, Mapping[str, Any]]


def _as_diff(diff: DiffLike) -> BigmapDiff:
    if isinstance(diff, BigmapDiff):
        return diff
    return BigmapDiff.from_dict(diff)


def _action_name(action: Any) -> Any:
    return action.value if isinstance(action, Enum) else action


def _action_set(action: ActionSpec) -> frozenset:
    if isinstance(action, str):
        return frozenset((_action_name(action),))
    return frozenset(_action_name(item) for item in action)


def is_matching_diff(
    diff: DiffLike,
    bigmap_id: Optional[int],
    path: str,
    action: ActionSpec,
    key: Optional[Any] = None,
) -> bool:
    """
    Check one diff against the lookup predicate.
    
    bigmap_id=None means any bigmap, key=None means any key. Keys are
    compared exactly as the indexer reports them, no coercion.
    """
    entry = _as_diff(diff)
    return (
        (bigmap_id is None or entry.bigmap == bigmap_id)
        and entry.path == path
        and entry.action in _action_set(action)
        and (key is None or entry.key == key)
    )


def find_diff(
    diffs: Optional[Iterable[DiffLike]],
    bigmap_id: Optional[int],
    path: str,
    action: ActionSpec,
    key: Optional[Any] = None,
) -> Optional[BigmapDiff]:
    """First matching diff in storage order, or None."""
    for diff in diffs or ():
        if is_matching_diff(diff, bigmap_id, path, action, key):
            return _as_diff(diff)
    return None


def filter_diffs(
    diffs: Optional[Iterable[DiffLike]],
    bigmap_id: Optional[int],
    path: str,
    action: ActionSpec,
    key: Optional[Any] = None,
) -> list[BigmapDiff]:
    """All matching diffs in storage order."""
    return [
        _as_diff(diff)
        for diff in diffs or ()
        if is_matching_diff(diff, bigmap_id, path, action, key)
    ]
