from enum import Enum


class BuildTriggerType(str, Enum):
    CONFIG_CHANGE = "ConfigChange"
    IMAGE_CHANGE = "ImageChange"
    GENERIC = "Generic"
    GITHUB = "GitHub"


class BuildStrategyType(str, Enum):
    SOURCE = "Source"
    DOCKER = "Docker"
    CUSTOM = "Custom"


class TriggerMatchMode(str, Enum):
    """How entries of two image change trigger status lists are paired"""
    POSITION = "position"
    TARGET = "target"
