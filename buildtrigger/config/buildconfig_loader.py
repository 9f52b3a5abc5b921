"""
Loads build configuration manifests from YAML.
"""
import logging
from pathlib import Path
from typing import List, Union

import yaml

from ..core.errors import ConfigurationError
from ..core.models import BuildConfig


logger = logging.getLogger(__name__)


class BuildConfigLoader:
    """Reads and writes BuildConfig manifests"""

    @staticmethod
    def load_from_yaml(path: Union[str, Path]) -> List[BuildConfig]:
        """
        Load every BuildConfig document from a YAML file.

        Empty documents are skipped; documents of another kind are ignored.

        Raises:
            ConfigurationError: If the file is missing, unparsable or a
                BuildConfig document is malformed
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Manifest not found: {path}")

        try:
            with open(path, 'r') as f:
                documents = list(yaml.safe_load_all(f))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}")

        build_configs = []
        for document in documents:
            if not document:
                continue
            if not isinstance(document, dict):
                raise ConfigurationError(f"{path}: manifest must be a mapping")
            kind = document.get('kind', 'BuildConfig')
            if kind != 'BuildConfig':
                logger.debug(f"Skipping {kind} document in {path}")
                continue
            build_configs.append(BuildConfig.from_dict(document))

        return build_configs

    @staticmethod
    def load_one(path: Union[str, Path]) -> BuildConfig:
        """Load a file that must hold exactly one BuildConfig"""
        build_configs = BuildConfigLoader.load_from_yaml(path)
        if len(build_configs) != 1:
            raise ConfigurationError(
                f"Expected exactly one BuildConfig in {path}, found {len(build_configs)}"
            )
        return build_configs[0]

    @staticmethod
    def load_from_path(path: Union[str, Path]) -> List[BuildConfig]:
        """Load a manifest file, or every *.yaml / *.yml file of a directory"""
        path = Path(path)
        if not path.is_dir():
            return BuildConfigLoader.load_from_yaml(path)

        build_configs = []
        files = sorted(list(path.glob("*.yaml")) + list(path.glob("*.yml")))
        for file_path in files:
            build_configs.extend(BuildConfigLoader.load_from_yaml(file_path))

        logger.info(f"Loaded {len(build_configs)} build config(s) from {path}")
        return build_configs

    @staticmethod
    def dump(build_config: BuildConfig) -> str:
        """Render a BuildConfig manifest as YAML"""
        return yaml.safe_dump(build_config.to_dict(), default_flow_style=False, sort_keys=False)
