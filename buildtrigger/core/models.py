"""
Models for the build configuration domain.

Dictionaries produced by ``to_dict`` and consumed by ``from_dict`` use the
camelCase keys of the manifest format (``lastTriggeredImageID``, ``from`` ...).
"""
import copy
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

from .enums import BuildTriggerType, BuildStrategyType
from .errors import ConfigurationError


IMAGE_STREAM_TAG_KIND = "ImageStreamTag"
BUILD_CONFIG_LABEL = "buildconfig"


def _mapping(data: Any, field_name: str) -> Dict[str, Any]:
    """Return data as a mapping; None is an empty mapping"""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{field_name} must be a mapping, got {type(data).__name__}"
        )
    return data


@dataclass
class ObjectReference:
    """Reference to another object, usually an image stream tag"""
    name: str
    kind: str = IMAGE_STREAM_TAG_KIND
    namespace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'kind': self.kind, 'name': self.name}
        if self.namespace:
            result['namespace'] = self.namespace
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['ObjectReference']:
        """Build a reference; absent data or an empty name yields None"""
        data = _mapping(data, "from")
        if not data.get('name'):
            return None
        return cls(
            name=data['name'],
            kind=data.get('kind') or IMAGE_STREAM_TAG_KIND,
            namespace=data.get('namespace')
        )


@dataclass
class ImageChangeTrigger:
    """Payload of an ImageChange trigger policy"""
    from_ref: Optional[ObjectReference] = None
    paused: bool = False
    last_triggered_image_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.from_ref is not None:
            result['from'] = self.from_ref.to_dict()
        if self.paused:
            result['paused'] = True
        if self.last_triggered_image_id:
            result['lastTriggeredImageID'] = self.last_triggered_image_id
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ImageChangeTrigger':
        data = _mapping(data, "imageChange")
        return cls(
            from_ref=ObjectReference.from_dict(data.get('from')),
            paused=bool(data.get('paused', False)),
            last_triggered_image_id=data.get('lastTriggeredImageID') or ""
        )


@dataclass
class BuildTriggerPolicy:
    """One entry of spec.triggers"""
    type: BuildTriggerType
    image_change: Optional[ImageChangeTrigger] = None

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, BuildTriggerType):
            self.type = BuildTriggerType(self.type)
        if self.type == BuildTriggerType.IMAGE_CHANGE and self.image_change is None:
            self.image_change = ImageChangeTrigger()

    @classmethod
    def config_change(cls) -> 'BuildTriggerPolicy':
        return cls(type=BuildTriggerType.CONFIG_CHANGE)

    @classmethod
    def image_change_on(
        cls,
        image_stream_tag: Optional[str] = None,
        paused: bool = False,
        last_triggered_image_id: str = ""
    ) -> 'BuildTriggerPolicy':
        """Create an ImageChange trigger; no tag means the strategy's input image"""
        from_ref = ObjectReference(name=image_stream_tag) if image_stream_tag else None
        return cls(
            type=BuildTriggerType.IMAGE_CHANGE,
            image_change=ImageChangeTrigger(
                from_ref=from_ref,
                paused=paused,
                last_triggered_image_id=last_triggered_image_id
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'type': self.type.value}
        if self.type == BuildTriggerType.IMAGE_CHANGE:
            result['imageChange'] = self.image_change.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildTriggerPolicy':
        if not isinstance(data, dict):
            raise ConfigurationError(f"Trigger entry must be a mapping, got {data!r}")
        raw_type = data.get('type')
        try:
            trigger_type = BuildTriggerType(raw_type)
        except ValueError:
            raise ConfigurationError(f"Unknown trigger type: {raw_type!r}")

        image_change = None
        if trigger_type == BuildTriggerType.IMAGE_CHANGE:
            image_change = ImageChangeTrigger.from_dict(data.get('imageChange'))
        return cls(type=trigger_type, image_change=image_change)


@dataclass
class BuildStrategy:
    """Build strategy; only the input image matters for trigger tracking"""
    type: BuildStrategyType = BuildStrategyType.SOURCE
    from_ref: Optional[ObjectReference] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'type': self.type.value}
        if self.from_ref is not None:
            result['from'] = self.from_ref.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BuildStrategy':
        data = _mapping(data, "strategy")
        try:
            strategy_type = BuildStrategyType(data.get('type', BuildStrategyType.SOURCE.value))
        except ValueError:
            raise ConfigurationError(f"Unknown strategy type: {data.get('type')!r}")
        return cls(type=strategy_type, from_ref=ObjectReference.from_dict(data.get('from')))


@dataclass
class ImageChangeTriggerStatus:
    """Tracked state of one ImageChange trigger"""
    from_ref: Optional[ObjectReference] = None
    paused: bool = False
    last_triggered_image_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.from_ref is not None:
            result['from'] = self.from_ref.to_dict()
        if self.paused:
            result['paused'] = True
        if self.last_triggered_image_id:
            result['lastTriggeredImageID'] = self.last_triggered_image_id
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ImageChangeTriggerStatus':
        if data is not None and not isinstance(data, dict):
            raise ConfigurationError(
                f"imageChangeTriggers entry must be a mapping, got {data!r}"
            )
        data = data or {}
        return cls(
            from_ref=ObjectReference.from_dict(data.get('from')),
            paused=bool(data.get('paused', False)),
            last_triggered_image_id=data.get('lastTriggeredImageID') or ""
        )


@dataclass
class BuildConfigSpec:
    triggers: List[BuildTriggerPolicy] = field(default_factory=list)
    strategy: BuildStrategy = field(default_factory=BuildStrategy)

    def has_trigger(self, trigger_type: BuildTriggerType) -> bool:
        return any(trigger.type == trigger_type for trigger in self.triggers)

    def image_change_triggers(self) -> List[ImageChangeTrigger]:
        """ImageChange payloads in spec order"""
        return [
            trigger.image_change
            for trigger in self.triggers
            if trigger.type == BuildTriggerType.IMAGE_CHANGE
        ]


@dataclass
class BuildConfigStatus:
    last_version: int = 0
    image_change_triggers: List[ImageChangeTriggerStatus] = field(default_factory=list)


@dataclass
class BuildConfig:
    """A build configuration: identity, declared triggers and tracked status"""
    name: str
    namespace: str = "default"
    spec: BuildConfigSpec = field(default_factory=BuildConfigSpec)
    status: BuildConfigStatus = field(default_factory=BuildConfigStatus)
    resource_version: str = ""
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Work queue key, ``namespace/name``"""
        return f"{self.namespace}/{self.name}"

    def copy(self) -> 'BuildConfig':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {'name': self.name, 'namespace': self.namespace}
        if self.resource_version:
            metadata['resourceVersion'] = self.resource_version
        if self.labels:
            metadata['labels'] = dict(self.labels)
        return {
            'kind': 'BuildConfig',
            'metadata': metadata,
            'spec': {
                'triggers': [trigger.to_dict() for trigger in self.spec.triggers],
                'strategy': self.spec.strategy.to_dict(),
            },
            'status': {
                'lastVersion': self.status.last_version,
                'imageChangeTriggers': [
                    ict.to_dict() for ict in self.status.image_change_triggers
                ],
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildConfig':
        if not isinstance(data, dict):
            raise ConfigurationError("BuildConfig manifest must be a mapping")

        metadata = _mapping(data.get('metadata'), "metadata")
        name = metadata.get('name')
        if not name:
            raise ConfigurationError("BuildConfig manifest is missing metadata.name")

        spec_data = _mapping(data.get('spec'), f"BuildConfig {name}: spec")
        status_data = _mapping(data.get('status'), f"BuildConfig {name}: status")

        try:
            last_version = int(status_data.get('lastVersion', 0) or 0)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"BuildConfig {name}: status.lastVersion must be an integer"
            )

        triggers = spec_data.get('triggers') or []
        statuses = status_data.get('imageChangeTriggers') or []
        if not isinstance(triggers, list) or not isinstance(statuses, list):
            raise ConfigurationError(
                f"BuildConfig {name}: spec.triggers and status.imageChangeTriggers must be lists"
            )

        return cls(
            name=name,
            namespace=metadata.get('namespace') or "default",
            resource_version=str(metadata.get('resourceVersion') or ""),
            labels=dict(_mapping(metadata.get('labels'), "metadata.labels")),
            spec=BuildConfigSpec(
                triggers=[
                    BuildTriggerPolicy.from_dict(trigger)
                    for trigger in triggers
                ],
                strategy=BuildStrategy.from_dict(spec_data.get('strategy')),
            ),
            status=BuildConfigStatus(
                last_version=last_version,
                image_change_triggers=[
                    ImageChangeTriggerStatus.from_dict(ict)
                    for ict in statuses
                ],
            ),
        )


@dataclass
class BuildRequest:
    """Request to materialize one build run from a build configuration"""
    name: str
    namespace: str = "default"
    triggered_by: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': 'BuildRequest',
            'metadata': {'name': self.name, 'namespace': self.namespace},
            'triggeredBy': [{'message': cause} for cause in self.triggered_by],
        }


@dataclass
class Build:
    """A build run created by the execution engine"""
    name: str
    namespace: str
    config_name: str
    number: int
    labels: Dict[str, str] = field(default_factory=dict)
    triggered_by: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': 'Build',
            'metadata': {
                'name': self.name,
                'namespace': self.namespace,
                'labels': dict(self.labels),
            },
            'spec': {'triggeredBy': [{'message': cause} for cause in self.triggered_by]},
            'configName': self.config_name,
            'number': self.number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Build':
        metadata = data.get('metadata') or {}
        labels = dict(metadata.get('labels') or {})
        triggered_by = [
            cause.get('message', '')
            for cause in (data.get('spec') or {}).get('triggeredBy') or []
        ]
        return cls(
            name=metadata.get('name', ''),
            namespace=metadata.get('namespace') or "default",
            config_name=data.get('configName') or labels.get(BUILD_CONFIG_LABEL, ''),
            number=int(data.get('number', 0) or 0),
            labels=labels,
            triggered_by=triggered_by,
        )

    def matches(self, label_selector: Dict[str, str]) -> bool:
        """Equality-based label selector match"""
        return all(self.labels.get(k) == v for k, v in label_selector.items())
