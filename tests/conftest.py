"""Pytest configuration and fixtures for buildtrigger tests."""

import sys
from pathlib import Path
from typing import Dict, List, Optional
import pytest
import logging

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from buildtrigger.core.enums import BuildStrategyType
from buildtrigger.core.models import (
    BuildConfig, BuildConfigSpec, BuildStrategy, BuildTriggerPolicy,
    ImageChangeTriggerStatus, ObjectReference
)
from buildtrigger.store import InMemoryBuildStore

# Configure logging
logging.basicConfig(level=logging.INFO)


def _reference(image_stream_tag: str) -> Optional[ObjectReference]:
    return ObjectReference(name=image_stream_tag) if image_stream_tag else None


@pytest.fixture
def base_build_config():
    """Factory for a build config with a source strategy and no triggers."""
    def make(name: str = "testBuildConfig", namespace: str = "default") -> BuildConfig:
        return BuildConfig(
            name=name,
            namespace=namespace,
            spec=BuildConfigSpec(
                strategy=BuildStrategy(
                    type=BuildStrategyType.SOURCE,
                    from_ref=ObjectReference(name="builderimage:latest")
                )
            )
        )
    return make


@pytest.fixture
def config_change_build_config(base_build_config):
    """Factory for a build config carrying a config change trigger."""
    def make(last_version: int = 0) -> BuildConfig:
        bc = base_build_config()
        bc.spec.triggers.append(BuildTriggerPolicy.config_change())
        bc.status.last_version = last_version
        return bc
    return make


@pytest.fixture
def with_image_change_triggers():
    """
    Append ImageChange spec triggers described by dicts with optional
    'tag', 'last_id' and 'paused' keys.
    """
    def apply(bc: BuildConfig, triggers: List[Dict]) -> BuildConfig:
        for trigger in triggers:
            bc.spec.triggers.append(BuildTriggerPolicy.image_change_on(
                image_stream_tag=trigger.get('tag', ''),
                paused=trigger.get('paused', False),
                last_triggered_image_id=trigger.get('last_id', '')
            ))
        return bc
    return apply


@pytest.fixture
def with_image_change_statuses():
    """Append image change trigger statuses described like with_image_change_triggers."""
    def apply(bc: BuildConfig, triggers: List[Dict]) -> BuildConfig:
        for trigger in triggers:
            bc.status.image_change_triggers.append(ImageChangeTriggerStatus(
                from_ref=_reference(trigger.get('tag', '')),
                paused=trigger.get('paused', False),
                last_triggered_image_id=trigger.get('last_id', '')
            ))
        return bc
    return apply


@pytest.fixture
def memory_store() -> InMemoryBuildStore:
    """Create an empty in-memory build store."""
    return InMemoryBuildStore()
