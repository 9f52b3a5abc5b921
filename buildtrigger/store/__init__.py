from .base import BaseBuildStore, StoreBuildLister, BuildConfigEventHandler
from .memory_store import InMemoryBuildStore
from .redis_store import RedisBuildConfigStore

def get_build_store(store_type: str, config: dict) -> BaseBuildStore:
    """
    Factory function to create build store instances.
    
    Args:
        store_type: Type of store ('memory', 'redis')
        config: Configuration dict with store-specific settings
        
    Returns:
        Build store instance
        
    Example config:
        {
            'url': 'redis://localhost:6379',
            'key_prefix': 'buildtrigger:'
        }
    """
    store_type = store_type.lower()
    
    if store_type == 'memory':
        return InMemoryBuildStore()
    elif store_type == 'redis':
        return RedisBuildConfigStore(
            url=config.get('url', 'redis://localhost:6379'),
            key_prefix=config.get('key_prefix', 'buildtrigger:'),
            max_connections=config.get('max_connections', 10)
        )
    else:
        raise ValueError(f"Unsupported store type: {store_type}. Supported: 'memory', 'redis'")

__all__ = [
    'BaseBuildStore',
    'StoreBuildLister',
    'BuildConfigEventHandler',
    'InMemoryBuildStore',
    'RedisBuildConfigStore',
    'get_build_store',
]
