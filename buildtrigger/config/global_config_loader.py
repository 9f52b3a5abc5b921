import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field

from ..core.errors import ConfigurationError


@dataclass
class ControllerConfig:
    """Controller loop configuration"""
    workers: int = 1
    max_retries: int = 15
    base_delay: float = 0.005  # First retry delay in seconds, doubled per failure
    max_delay: float = 1000.0


@dataclass
class StoreConfig:
    """Build config store configuration"""
    type: str = "memory"  # 'memory' or 'redis'
    url: str = "redis://localhost:6379"
    key_prefix: str = "buildtrigger:"
    max_connections: int = 10


@dataclass
class InstantiatorConfig:
    """Build instantiation gateway configuration"""
    type: str = "local"  # 'local' or 'http'
    base_url: Optional[str] = None
    timeout: float = 5.0
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class GlobalConfig:
    """Global configuration for the build config controller"""
    controller: ControllerConfig
    store: StoreConfig
    instantiator: InstantiatorConfig
    logging: LoggingConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlobalConfig':
        """Create GlobalConfig from dictionary"""
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Global configuration must be a mapping, got {type(data).__name__}"
            )

        try:
            config = cls(
                controller=ControllerConfig(**data.get('controller', {})),
                store=StoreConfig(**data.get('store', {})),
                instantiator=InstantiatorConfig(**data.get('instantiator', {})),
                logging=LoggingConfig(**data.get('logging', {}))
            )
            config.validate()
        except TypeError as e:
            raise ConfigurationError(f"Invalid global configuration: {e}")

        return config

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'GlobalConfig':
        """Load GlobalConfig from YAML file"""
        path = Path(yaml_path)
        if not path.exists():
            # Return default config if file doesn't exist
            return cls.default()

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}")

        return cls.from_dict(data or {})

    @classmethod
    def default(cls) -> 'GlobalConfig':
        """Return default configuration"""
        return cls(
            controller=ControllerConfig(),
            store=StoreConfig(),
            instantiator=InstantiatorConfig(),
            logging=LoggingConfig()
        )

    def validate(self):
        if self.controller.workers < 1:
            raise ConfigurationError("controller.workers must be at least 1")
        if self.controller.max_retries < 0:
            raise ConfigurationError("controller.max_retries must not be negative")
        if self.store.type not in ('memory', 'redis'):
            raise ConfigurationError(f"Unsupported store type: {self.store.type}")
        if self.instantiator.type not in ('local', 'http'):
            raise ConfigurationError(f"Unsupported instantiator type: {self.instantiator.type}")
        if self.instantiator.type == 'http' and not self.instantiator.base_url:
            raise ConfigurationError("instantiator.base_url is required for the http instantiator")


def load_global_config(config_path: Optional[str] = None) -> GlobalConfig:
    """
    Load global configuration from YAML file.
    If no path provided, looks for buildtrigger.yaml in standard locations.
    """
    if config_path:
        return GlobalConfig.from_yaml(config_path)

    search_paths = [
        Path("./buildtrigger.yaml"),
        Path("./config/buildtrigger.yaml"),
        Path("/etc/buildtrigger/buildtrigger.yaml"),
    ]

    for path in search_paths:
        if path.exists():
            return GlobalConfig.from_yaml(str(path))

    return GlobalConfig.default()
