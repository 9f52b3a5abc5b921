"""
Build instantiation gateways.
"""

from .local_instantiator import LocalBuildInstantiator
from .http_instantiator import HttpBuildInstantiator

__all__ = [
    'LocalBuildInstantiator',
    'HttpBuildInstantiator',
]
