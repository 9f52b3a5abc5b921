"""
Exceptions raised by build trigger reconciliation and its gateways.
"""
from typing import Optional


class BuildTriggerError(Exception):
    """Base class for all buildtrigger errors"""


class ConflictError(BuildTriggerError):
    """A write was rejected because the stored object has a newer resource version"""

    def __init__(self, key: str, expected: Optional[str] = None, actual: Optional[str] = None):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Conflict updating {key}: resource version {expected!r} is stale "
            f"(current {actual!r})"
        )


class NotFoundError(BuildTriggerError):
    """The requested object does not exist in the store"""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found")


class InstantiationError(BuildTriggerError):
    """The execution engine refused or failed to create a build"""

    def __init__(self, config_name: str, message: str, status_code: Optional[int] = None):
        self.config_name = config_name
        self.status_code = status_code
        super().__init__(f"Failed to instantiate build for {config_name}: {message}")


class ConfigurationError(BuildTriggerError):
    """A manifest or global configuration is malformed"""
