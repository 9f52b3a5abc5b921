"""
Detects image change triggers whose last triggered image id was reset.
"""
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..core.enums import TriggerMatchMode
from ..core.models import BuildConfig, ImageChangeTriggerStatus, ObjectReference


TargetKey = Tuple[str, str, str, int]


def image_change_trigger_cleared(
    old: Optional[BuildConfig],
    current: Optional[BuildConfig],
    match_by: Union[TriggerMatchMode, str] = TriggerMatchMode.POSITION
) -> bool:
    """
    Check whether any image change trigger went from a populated
    last_triggered_image_id in old to an empty one in current.

    Entries are paired by index by default; entries past the end of the
    shorter list have no partner and are ignored. With match_by="target"
    entries are paired by the image they track instead.

    Args:
        old: Previous snapshot, may be None
        current: Current snapshot, may be None
        match_by: "position" or "target"

    Returns:
        True on the first cleared pair, False otherwise or if either side is None
    """
    if old is None or current is None:
        return False

    for old_status, current_status in _paired_statuses(old, current, TriggerMatchMode(match_by)):
        if old_status.last_triggered_image_id and not current_status.last_triggered_image_id:
            return True

    return False


def _paired_statuses(
    old: BuildConfig,
    current: BuildConfig,
    match_by: TriggerMatchMode
) -> Iterator[Tuple[ImageChangeTriggerStatus, ImageChangeTriggerStatus]]:
    old_statuses = old.status.image_change_triggers
    current_statuses = current.status.image_change_triggers

    if match_by == TriggerMatchMode.POSITION:
        yield from zip(old_statuses, current_statuses)
        return

    current_by_key = _index_by_target(current, current_statuses)
    for key, old_status in _index_by_target(old, old_statuses).items():
        current_status = current_by_key.get(key)
        if current_status is not None:
            yield old_status, current_status


def _index_by_target(
    build_config: BuildConfig,
    statuses: List[ImageChangeTriggerStatus]
) -> Dict[TargetKey, ImageChangeTriggerStatus]:
    """
    Key statuses by (kind, namespace, name, occurrence).

    A status without from_ref tracks the strategy's input image. The
    occurrence counter keeps triggers sharing a target apart, in list order.
    """
    indexed: Dict[TargetKey, ImageChangeTriggerStatus] = {}
    seen: Dict[Tuple[str, str, str], int] = {}

    for status in statuses:
        target = _trigger_target(build_config, status.from_ref)
        occurrence = seen.get(target, 0)
        seen[target] = occurrence + 1
        indexed[target + (occurrence,)] = status

    return indexed


def _trigger_target(
    build_config: BuildConfig,
    from_ref: Optional[ObjectReference]
) -> Tuple[str, str, str]:
    ref = from_ref if from_ref is not None else build_config.spec.strategy.from_ref
    if ref is None:
        return ("", "", "")
    return (ref.kind, ref.namespace or build_config.namespace, ref.name)
