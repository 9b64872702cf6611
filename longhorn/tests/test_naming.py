import re

import pytest
from unittest import mock

from longhorn.deployment import naming
from longhorn.deployment.naming import IdentityKind
from longhorn.deployment.options import InstanceManagerType
from longhorn.exceptions import UnknownKindError
from longhorn.utils import get_string_checksum

IMAGE = 'longhornio/longhorn-engine:v1.1.0'


@pytest.mark.parametrize("func,prefix",
[
    (naming.get_engine_image_checksum_name, 'ei-'),
    (naming.get_instance_manager_image_checksum_name, 'imi-'),
    (naming.get_share_manager_image_checksum_name, 'smi-'),
])
def test_checksum_names(func, prefix):
    name = func(IMAGE)
    assert name == prefix + get_string_checksum(IMAGE)[:8]
    assert func(IMAGE) == name
    assert func('  ' + IMAGE + '\n') == name
    assert func(IMAGE + '-other') != name
    assert naming.is_valid_object_name(name)


@pytest.mark.parametrize("kind", [
    IdentityKind.engine_image,
    IdentityKind.instance_manager_image,
    IdentityKind.share_manager_image,
])
def test_derive_identity_checksum_kinds(kind):
    name = naming.derive_identity(kind, IMAGE)
    assert naming.derive_identity(kind.value, IMAGE) == name
    assert naming.is_valid_identity(kind, name)


def test_checksum_prefixes_are_disjoint():
    names = {naming.derive_identity(kind, IMAGE) for kind in (
        IdentityKind.engine_image,
        IdentityKind.instance_manager_image,
        IdentityKind.share_manager_image)}
    assert len(names) == 3


def test_checksum_name_length():
    assert naming.checksum_name('x-', IMAGE, length=12) == 'x-' + get_string_checksum(IMAGE)[:12]


def test_checksum_collision_probability():
    assert naming.checksum_collision_probability(0) == 0.0
    assert naming.checksum_collision_probability(2) == pytest.approx(1 / naming.CHECKSUM_NAME_SPACE)
    assert naming.checksum_collision_probability(100000) > 0.5
    assert naming.checksum_collision_probability(1000, length=16) < \
        naming.checksum_collision_probability(1000)


@pytest.mark.parametrize("name,valid",
[
    ('ei-0123abcd', True),
    ('ei-ABCDEF01', True),
    ('ei-0123abc', False),
    ('ei-0123abcde', False),
    ('ei-0123abcg', False),
    ('imi-0123abcd', False),
    ('xei-0123abcd', False),
])
def test_validate_engine_image_checksum_name(name, valid):
    assert naming.validate_engine_image_checksum_name(name) == valid


def test_derive_identity_random_kinds():
    with mock.patch('longhorn.deployment.naming.random_id', return_value='1a2b3c4d'):
        assert naming.derive_identity(IdentityKind.engine_manager) == \
            'instance-manager-e-1a2b3c4d'
        assert naming.derive_identity('replica-manager') == 'instance-manager-r-1a2b3c4d'
    assert naming.is_valid_identity(IdentityKind.engine_manager, 'instance-manager-e-1a2b3c4d')
    assert not naming.is_valid_identity(IdentityKind.engine_manager,
                                        'instance-manager-r-1a2b3c4d')


def test_derive_identity_unknown_kind():
    with pytest.raises(UnknownKindError):
        naming.derive_identity('volume', IMAGE)
    with pytest.raises(UnknownKindError):
        naming.is_valid_identity('volume', 'ei-0123abcd')


def test_random_names():
    with mock.patch('longhorn.deployment.naming.random_id', return_value='1a2b3c4d'):
        assert naming.generate_engine_name_for_volume('vol') == 'vol-e-1a2b3c4d'
        assert naming.generate_replica_name_for_volume('vol') == 'vol-r-1a2b3c4d'
        assert naming.get_instance_manager_name(InstanceManagerType.engine) == \
            'instance-manager-e-1a2b3c4d'
        assert naming.get_instance_manager_name('replica') == 'instance-manager-r-1a2b3c4d'


def test_random_names_differ():
    assert naming.generate_engine_name_for_volume('vol') != \
        naming.generate_engine_name_for_volume('vol')


def test_instance_manager_unknown_type():
    with pytest.raises(UnknownKindError):
        naming.get_instance_manager_name('share')
    assert naming.get_instance_manager_prefix('share') == ''
    assert naming.get_instance_manager_prefix(InstanceManagerType.engine) == \
        'instance-manager-e-'
    assert naming.get_instance_manager_prefix('replica') == 'instance-manager-r-'


def test_cron_job_name():
    assert naming.get_cron_job_name_for_volume_and_job('vol', 'snap') == 'vol-snap-c'


@pytest.mark.parametrize("name", ['pvc-1234', 'a', 'share-manager-x', ''])
def test_share_manager_pod_name_round_trip(name):
    pod_name = naming.get_share_manager_pod_name_from_share_manager_name(name)
    assert pod_name == 'share-manager-' + name
    assert naming.get_share_manager_name_from_share_manager_pod_name(pod_name) == name


@pytest.mark.parametrize("name", ['ei-0123abcd', 'engine-image-x'])
def test_engine_image_daemon_set_name_round_trip(name):
    ds_name = naming.get_daemon_set_name_from_engine_image_name(name)
    assert ds_name == 'engine-image-' + name
    assert naming.get_engine_image_name_from_daemon_set_name(ds_name) == name


@pytest.mark.parametrize("name,valid",
[
    ('ei-0123abcd', True),
    ('a' * 63, True),
    ('a' * 64, False),
    ('Upper', False),
    ('-dash', False),
    ('dash-', False),
    ('under_score', False),
    ('', False),
])
def test_is_valid_object_name(name, valid):
    assert naming.is_valid_object_name(name) == valid


def test_image_paths():
    assert naming.get_image_canonical_name(IMAGE) == 'longhornio-longhorn-engine-v1.1.0'
    assert naming.get_engine_binary_directory_on_host_for_image(IMAGE) == \
        '/var/lib/longhorn/engine-binaries/longhornio-longhorn-engine-v1.1.0'
    assert naming.get_engine_binary_directory_for_engine_manager_container(IMAGE) == \
        '/engine-binaries/longhornio-longhorn-engine-v1.1.0'
    assert naming.get_engine_binary_directory_for_replica_manager_container(IMAGE) == \
        '/host/var/lib/longhorn/engine-binaries/longhornio-longhorn-engine-v1.1.0'


def test_image_paths_are_clean():
    assert naming.get_engine_binary_directory_on_host_for_image('') == \
        '/var/lib/longhorn/engine-binaries'
    assert naming.get_engine_binary_directory_for_engine_manager_container('') == \
        '/engine-binaries'
    assert naming.get_engine_binary_directory_for_replica_manager_container('') == \
        '/host/var/lib/longhorn/engine-binaries'


def test_engine_binary_exist_on_host_for_image(tmp_path):
    with mock.patch('longhorn.deployment.constants.ENGINE_BINARY_DIRECTORY_ON_HOST',
                    str(tmp_path)):
        assert not naming.engine_binary_exist_on_host_for_image(IMAGE)
        d = tmp_path / naming.get_image_canonical_name(IMAGE)
        d.mkdir()
        (d / 'longhorn').mkdir()
        assert not naming.engine_binary_exist_on_host_for_image(IMAGE)
        (d / 'longhorn').rmdir()
        (d / 'longhorn').write_text('')
        assert naming.engine_binary_exist_on_host_for_image(IMAGE)


def test_backing_image_names():
    name = naming.get_backing_image_manager_name(IMAGE, 'abcdef-0123')
    assert re.match(r'^backing-image-manager-[0-9a-f]{4}-abcd$', name)
    assert naming.get_backing_image_directory_name('bi', 'uuid') == 'bi-uuid'
    assert naming.get_backing_image_manager_directory_on_host('/mnt/a') == \
        '/mnt/a/backing-images'
    assert naming.get_backing_image_directory_on_host('/mnt/a/', 'bi', 'uuid') == \
        '/mnt/a/backing-images/bi-uuid'
    assert naming.get_backing_image_path_for_replica_manager_container('/mnt/a', 'bi', 'uuid') == \
        '/host/mnt/a/backing-images/bi-uuid/backing'


def test_replica_paths():
    assert naming.get_replica_data_path('/mnt/a', 'vol-1234') == '/mnt/a/replicas/vol-1234'
    assert naming.get_replica_data_path('/mnt/a/', '/vol-1234') == '/mnt/a/replicas/vol-1234'
    assert naming.get_replica_mounted_data_path('/mnt/a/replicas/vol-1234') == \
        '/host/mnt/a/replicas/vol-1234'
    assert naming.get_replica_mounted_data_path('/host/mnt/a') == '/host/mnt/a'


@pytest.mark.parametrize("ip,expected",
[
    ('10.0.0.1', '10.0.0.1:9500'),
    ('fd00::1', '[fd00::1]:9500'),
])
def test_api_server_address(ip, expected):
    assert naming.get_api_server_address_from_ip(ip) == expected


def test_default_manager_url():
    assert naming.get_default_manager_url() == 'http://longhorn-backend:9500/v1'
