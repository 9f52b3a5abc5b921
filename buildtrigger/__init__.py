"""
Build Trigger - trigger reconciliation and build instantiation for build configurations

Main modules:
- core: Build configuration models, enums and errors
- controller: Trigger reconciler, trigger-cleared detector, work queue and controller
- store: In-memory and Redis build configuration stores
- client: Build instantiation gateways
- config: Global configuration and manifest loading
- cli: Command-line interface
"""

from .core.models import (
    BuildConfig,
    BuildConfigSpec,
    BuildConfigStatus,
    BuildTriggerPolicy,
    ImageChangeTrigger,
    ImageChangeTriggerStatus,
    ObjectReference,
    Build,
    BuildRequest
)
from .core.enums import BuildTriggerType
from .core.errors import (
    BuildTriggerError,
    ConflictError,
    NotFoundError,
    InstantiationError,
    ConfigurationError
)
from .controller import (
    BuildConfigController,
    reconcile_image_change_triggers,
    image_change_trigger_cleared
)

__version__ = "1.0.0"
__all__ = [
    'BuildConfig',
    'BuildConfigSpec',
    'BuildConfigStatus',
    'BuildTriggerPolicy',
    'ImageChangeTrigger',
    'ImageChangeTriggerStatus',
    'ObjectReference',
    'Build',
    'BuildRequest',
    'BuildTriggerType',
    'BuildTriggerError',
    'ConflictError',
    'NotFoundError',
    'InstantiationError',
    'ConfigurationError',
    'BuildConfigController',
    'reconcile_image_change_triggers',
    'image_change_trigger_cleared',
]
