"""
Build config controller: trigger status reconciliation and config change builds.
"""

from .interfaces import (
    BuildConfigLister,
    BuildLister,
    BuildConfigUpdater,
    BuildInstantiator
)
from .trigger_reconciler import (
    reconcile_image_change_triggers,
    image_change_trigger_statuses_equal
)
from .trigger_cleared import image_change_trigger_cleared
from .work_queue import RateLimitedQueue
from .buildconfig_controller import BuildConfigController, split_key

__all__ = [
    'BuildConfigLister',
    'BuildLister',
    'BuildConfigUpdater',
    'BuildInstantiator',
    'reconcile_image_change_triggers',
    'image_change_trigger_statuses_equal',
    'image_change_trigger_cleared',
    'RateLimitedQueue',
    'BuildConfigController',
    'split_key',
]
