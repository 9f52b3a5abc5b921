"""
Collaborator interfaces consumed by the build config controller.

Concrete storage, transport and build execution live behind these classes;
the controller only ever talks to them through the methods below.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..core.models import BuildConfig, Build, BuildRequest


class BuildConfigLister(ABC):
    """Read access to build configurations"""

    @abstractmethod
    async def get(self, namespace: str, name: str) -> BuildConfig:
        """
        Get the current copy of a build configuration.

        Raises:
            NotFoundError: If no such build configuration exists
        """
        pass

    @abstractmethod
    async def list(self, namespace: Optional[str] = None) -> List[BuildConfig]:
        """List build configurations, optionally restricted to one namespace"""
        pass


class BuildLister(ABC):
    """Read access to build runs"""

    @abstractmethod
    async def list(self, namespace: str, label_selector: Dict[str, str]) -> List[Build]:
        """List builds in a namespace whose labels match every selector entry"""
        pass


class BuildConfigUpdater(ABC):
    """Write access to build configuration status"""

    @abstractmethod
    async def update_trigger_status(self, build_config: BuildConfig) -> BuildConfig:
        """
        Persist status.image_change_triggers of a build configuration.

        The write is checked against build_config.resource_version.

        Returns:
            The stored object with its new resource version

        Raises:
            ConflictError: If the stored object has a newer resource version
            NotFoundError: If the build configuration no longer exists
        """
        pass


class BuildInstantiator(ABC):
    """Gateway to the build execution engine"""

    @abstractmethod
    async def instantiate(self, request: BuildRequest) -> Build:
        """Ask the execution engine to create one build run from a configuration"""
        pass
