"""
Rebuilds the image change trigger status of a build configuration from its spec.
"""
import copy
import logging
from typing import List, Optional

from ..core.models import BuildConfig, ImageChangeTriggerStatus


logger = logging.getLogger(__name__)


def reconcile_image_change_triggers(build_config: Optional[BuildConfig]) -> Optional[BuildConfig]:
    """
    Return a copy of build_config whose status.image_change_triggers mirrors
    the ImageChange entries of spec.triggers.

    The status list is rebuilt from scratch on every call. Position is the
    correlation key: the i-th ImageChange trigger in spec.triggers produces the
    i-th status entry. paused, from_ref and last_triggered_image_id are copied
    from the declared trigger; nothing is derived from the previous status.

    Args:
        build_config: Build configuration snapshot, never mutated

    Returns:
        Reconciled copy, or None when build_config is None
    """
    if build_config is None:
        return None

    updated = build_config.copy()
    statuses: List[ImageChangeTriggerStatus] = []

    for trigger in updated.spec.image_change_triggers():
        from_ref = None
        if trigger.from_ref is not None and trigger.from_ref.name:
            from_ref = copy.deepcopy(trigger.from_ref)

        statuses.append(ImageChangeTriggerStatus(
            from_ref=from_ref,
            paused=trigger.paused,
            last_triggered_image_id=trigger.last_triggered_image_id
        ))

    old_count = len(build_config.status.image_change_triggers)
    if old_count != len(statuses):
        logger.debug(
            f"Image change triggers for {build_config.key}: "
            f"{old_count} -> {len(statuses)}"
        )

    updated.status.image_change_triggers = statuses
    return updated


def image_change_trigger_statuses_equal(
    a: List[ImageChangeTriggerStatus],
    b: List[ImageChangeTriggerStatus]
) -> bool:
    """True if both status lists carry the same entries in the same order"""
    return list(a) == list(b)
