"""Test cases for manifest (de)serialization of build configuration models."""

import pytest
from buildtrigger.core.enums import BuildTriggerType, BuildStrategyType
from buildtrigger.core.errors import ConfigurationError
from buildtrigger.core.models import (
    BuildConfig, BuildTriggerPolicy, Build, BuildRequest, ObjectReference
)


@pytest.fixture
def manifest():
    return {
        'kind': 'BuildConfig',
        'metadata': {'name': 'frontend', 'namespace': 'web', 'resourceVersion': '12'},
        'spec': {
            'strategy': {
                'type': 'Docker',
                'from': {'kind': 'ImageStreamTag', 'name': 'nodejs:18'},
            },
            'triggers': [
                {'type': 'ConfigChange'},
                {'type': 'ImageChange', 'imageChange': {}},
                {
                    'type': 'ImageChange',
                    'imageChange': {
                        'from': {'kind': 'ImageStreamTag', 'name': 'base:latest'},
                        'paused': True,
                        'lastTriggeredImageID': 'sha256:abc',
                    },
                },
            ],
        },
        'status': {
            'lastVersion': 4,
            'imageChangeTriggers': [
                {'lastTriggeredImageID': 'sha256:def'},
            ],
        },
    }


class TestBuildConfigFromDict:
    """Test parsing of BuildConfig manifests"""

    def test_parses_manifest(self, manifest):
        bc = BuildConfig.from_dict(manifest)

        assert bc.key == "web/frontend"
        assert bc.resource_version == "12"
        assert bc.spec.strategy.type == BuildStrategyType.DOCKER
        assert bc.spec.strategy.from_ref.name == "nodejs:18"
        assert [t.type for t in bc.spec.triggers] == [
            BuildTriggerType.CONFIG_CHANGE,
            BuildTriggerType.IMAGE_CHANGE,
            BuildTriggerType.IMAGE_CHANGE,
        ]
        assert bc.spec.triggers[1].image_change.from_ref is None
        assert bc.spec.triggers[2].image_change.paused is True
        assert bc.spec.triggers[2].image_change.last_triggered_image_id == "sha256:abc"
        assert bc.status.last_version == 4
        assert bc.status.image_change_triggers[0].from_ref is None
        assert bc.status.image_change_triggers[0].last_triggered_image_id == "sha256:def"

    def test_to_dict_preserves_content(self, manifest):
        bc = BuildConfig.from_dict(manifest)

        assert BuildConfig.from_dict(bc.to_dict()) == bc

    def test_defaults(self):
        bc = BuildConfig.from_dict({'metadata': {'name': 'app'}})

        assert bc.namespace == "default"
        assert bc.spec.triggers == []
        assert bc.status.last_version == 0

    def test_empty_from_name_is_none(self):
        bc = BuildConfig.from_dict({
            'metadata': {'name': 'app'},
            'spec': {'triggers': [{'type': 'ImageChange', 'imageChange': {'from': {'name': ''}}}]},
        })

        assert bc.spec.triggers[0].image_change.from_ref is None

    @pytest.mark.parametrize("data", [
        {'spec': {}},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': [{'type': 'Cron'}]}},
        {'metadata': {'name': 'app'}, 'status': {'lastVersion': 'many'}},
        {'metadata': {'name': 'app'}, 'spec': {'strategy': {'type': 'Pipeline'}}},
        ['not', 'a', 'mapping'],
        {'metadata': 'app'},
        {'metadata': {'name': 'app'}, 'spec': ['triggers']},
        {'metadata': {'name': 'app'}, 'status': 'done'},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': [None]}},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': ['ImageChange']}},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': {'type': 'ConfigChange'}}},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': [{'type': 'ImageChange', 'imageChange': 'x'}]}},
        {'metadata': {'name': 'app'}, 'spec': {'triggers': [
            {'type': 'ImageChange', 'imageChange': {'from': 'nodejs:18'}}
        ]}},
        {'metadata': {'name': 'app'}, 'status': {'imageChangeTriggers': ['sha256:abc']}},
    ])
    def test_malformed(self, data):
        with pytest.raises(ConfigurationError):
            BuildConfig.from_dict(data)


class TestTriggerPolicy:
    """Test trigger helpers"""

    def test_image_change_without_payload_gets_default(self):
        trigger = BuildTriggerPolicy(type="ImageChange")

        assert trigger.type == BuildTriggerType.IMAGE_CHANGE
        assert trigger.image_change is not None
        assert trigger.image_change.last_triggered_image_id == ""

    def test_image_change_on(self):
        trigger = BuildTriggerPolicy.image_change_on("test:latest", last_triggered_image_id="abc")

        assert trigger.image_change.from_ref == ObjectReference(name="test:latest")
        assert trigger.to_dict() == {
            'type': 'ImageChange',
            'imageChange': {
                'from': {'kind': 'ImageStreamTag', 'name': 'test:latest'},
                'lastTriggeredImageID': 'abc',
            },
        }

    def test_has_trigger(self, config_change_build_config, base_build_config):
        assert config_change_build_config().spec.has_trigger(BuildTriggerType.CONFIG_CHANGE)
        assert not base_build_config().spec.has_trigger(BuildTriggerType.CONFIG_CHANGE)


class TestBuild:
    """Test build and build request documents"""

    def test_build_from_dict(self):
        build = Build.from_dict({
            'metadata': {'name': 'app-3', 'namespace': 'ns', 'labels': {'buildconfig': 'app'}},
            'spec': {'triggeredBy': [{'message': 'Build configuration change'}]},
            'number': 3,
        })

        assert build.config_name == 'app'
        assert build.number == 3
        assert build.triggered_by == ['Build configuration change']
        assert build.matches({'buildconfig': 'app'})
        assert not build.matches({'buildconfig': 'other'})

    def test_build_request_to_dict(self):
        request = BuildRequest(name='app', namespace='ns', triggered_by=['Build configuration change'])

        assert request.to_dict() == {
            'kind': 'BuildRequest',
            'metadata': {'name': 'app', 'namespace': 'ns'},
            'triggeredBy': [{'message': 'Build configuration change'}],
        }
