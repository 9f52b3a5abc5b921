"""
Configuration loading: global controller settings and BuildConfig manifests.
"""

from .global_config_loader import GlobalConfig, load_global_config
from .buildconfig_loader import BuildConfigLoader
from .controller_factory import ControllerBundle, create_controller_from_global

__all__ = [
    'GlobalConfig',
    'load_global_config',
    'BuildConfigLoader',
    'ControllerBundle',
    'create_controller_from_global',
]
