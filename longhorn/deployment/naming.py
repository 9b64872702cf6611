"""
Names of managed resources.

Two schemes are used:

- checksum names, ``prefix + sha512(seed)[:8]``, for resources derived
  from a container image. They are short, legal object names and
  deterministic, at the price of a non-zero collision probability (see
  :func:`checksum_collision_probability`).
- random names, ``prefix + random_id()``, for resources that merely need
  to be unique. Uniqueness is left to the random token.
"""
import enum
import ipaddress
import math
import os
import re
from typing import Dict, Union

from longhorn.deployment import constants
from longhorn.deployment.options import InstanceManagerType
from longhorn.exceptions import UnknownKindError
from longhorn.utils import REPLICA_DIRECTORY, get_string_checksum, random_id

IMAGE_CHECKSUM_NAME_LENGTH = constants.IMAGE_CHECKSUM_NAME_LENGTH

#: Number of distinct checksum names for the default length, about 4.3e9.
CHECKSUM_NAME_SPACE = 16 ** IMAGE_CHECKSUM_NAME_LENGTH

ENGINE_SUFFIX = '-e'
REPLICA_SUFFIX = '-r'
RECURRING_SUFFIX = '-c'

ENGINE_IMAGE_PREFIX = 'ei-'
INSTANCE_MANAGER_IMAGE_PREFIX = 'imi-'
SHARE_MANAGER_IMAGE_PREFIX = 'smi-'

SHARE_MANAGER_PREFIX = constants.LABEL_SHARE_MANAGER + '-'
INSTANCE_MANAGER_PREFIX = 'instance-manager-'
ENGINE_MANAGER_PREFIX = INSTANCE_MANAGER_PREFIX + 'e-'
REPLICA_MANAGER_PREFIX = INSTANCE_MANAGER_PREFIX + 'r-'
ENGINE_IMAGE_DAEMON_SET_PREFIX = 'engine-image-'
BACKING_IMAGE_MANAGER_PREFIX = 'backing-image-manager-'

_object_name_re = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')


class IdentityKind(str, enum.Enum):
    engine_image = 'engine-image'
    instance_manager_image = 'instance-manager-image'
    share_manager_image = 'share-manager-image'
    engine_manager = 'engine-manager'
    replica_manager = 'replica-manager'


_checksum_prefixes: Dict[IdentityKind, str] = {
    IdentityKind.engine_image: ENGINE_IMAGE_PREFIX,
    IdentityKind.instance_manager_image: INSTANCE_MANAGER_IMAGE_PREFIX,
    IdentityKind.share_manager_image: SHARE_MANAGER_IMAGE_PREFIX,
}

_random_prefixes: Dict[IdentityKind, str] = {
    IdentityKind.engine_manager: ENGINE_MANAGER_PREFIX,
    IdentityKind.replica_manager: REPLICA_MANAGER_PREFIX,
}


def _identity_kind(kind: Union[str, IdentityKind]) -> IdentityKind:
    try:
        return IdentityKind(kind)
    except ValueError as e:
        raise UnknownKindError(f'cannot generate name for unknown resource kind {kind}') from e


def checksum_name(prefix: str, seed: str, length: int = IMAGE_CHECKSUM_NAME_LENGTH) -> str:
    return prefix + get_string_checksum(seed.strip())[:length]


def checksum_collision_probability(count: int,
                                   length: int = IMAGE_CHECKSUM_NAME_LENGTH) -> float:
    """
    Birthday bound for `count` distinct seeds sharing one prefix.

    >>> checksum_collision_probability(1)
    0.0
    >>> round(checksum_collision_probability(10000), 4)
    0.0116
    """
    if count < 2:
        return 0.0
    space = 16 ** length
    return -math.expm1(-count * (count - 1) / (2 * space))


def get_engine_image_checksum_name(image: str) -> str:
    return checksum_name(ENGINE_IMAGE_PREFIX, image)


def get_instance_manager_image_checksum_name(image: str) -> str:
    return checksum_name(INSTANCE_MANAGER_IMAGE_PREFIX, image)


def get_share_manager_image_checksum_name(image: str) -> str:
    return checksum_name(SHARE_MANAGER_IMAGE_PREFIX, image)


def is_valid_identity(kind: Union[str, IdentityKind], name: str,
                      length: int = IMAGE_CHECKSUM_NAME_LENGTH) -> bool:
    """
    Check the shape of a name only. Whether a checksum name belongs to
    any real image cannot be told from the name.
    """
    k = _identity_kind(kind)
    if k in _checksum_prefixes:
        pattern = '^{}[a-fA-F0-9]{{{}}}$'.format(re.escape(_checksum_prefixes[k]), length)
    else:
        pattern = '^{}[a-z0-9-]+$'.format(re.escape(_random_prefixes[k]))
    return re.match(pattern, name) is not None


def validate_engine_image_checksum_name(name: str) -> bool:
    return is_valid_identity(IdentityKind.engine_image, name)


def derive_identity(kind: Union[str, IdentityKind], seed: str = '') -> str:
    """
    :param kind: an :class:`IdentityKind`
    :param seed: the image for checksum kinds, ignored for random kinds
    """
    k = _identity_kind(kind)
    if k in _checksum_prefixes:
        return checksum_name(_checksum_prefixes[k], seed)
    return _random_prefixes[k] + random_id()


def generate_engine_name_for_volume(volume_name: str) -> str:
    return volume_name + ENGINE_SUFFIX + '-' + random_id()


def generate_replica_name_for_volume(volume_name: str) -> str:
    return volume_name + REPLICA_SUFFIX + '-' + random_id()


def get_cron_job_name_for_volume_and_job(volume_name: str, job: str) -> str:
    return volume_name + '-' + job + RECURRING_SUFFIX


def get_instance_manager_name(im_type: Union[str, InstanceManagerType]) -> str:
    if im_type == InstanceManagerType.engine:
        return ENGINE_MANAGER_PREFIX + random_id()
    if im_type == InstanceManagerType.replica:
        return REPLICA_MANAGER_PREFIX + random_id()
    raise UnknownKindError(f'cannot generate name for unknown instance manager type {im_type}')


def get_instance_manager_prefix(im_type: Union[str, InstanceManagerType]) -> str:
    if im_type == InstanceManagerType.engine:
        return ENGINE_MANAGER_PREFIX
    if im_type == InstanceManagerType.replica:
        return REPLICA_MANAGER_PREFIX
    return ''


def _trim_prefix(s: str, prefix: str) -> str:
    if s.startswith(prefix):
        return s[len(prefix):]
    return s


def get_share_manager_pod_name_from_share_manager_name(sm_name: str) -> str:
    return SHARE_MANAGER_PREFIX + sm_name


def get_share_manager_name_from_share_manager_pod_name(pod_name: str) -> str:
    return _trim_prefix(pod_name, SHARE_MANAGER_PREFIX)


def get_daemon_set_name_from_engine_image_name(engine_image_name: str) -> str:
    return ENGINE_IMAGE_DAEMON_SET_PREFIX + engine_image_name


def get_engine_image_name_from_daemon_set_name(ds_name: str) -> str:
    return _trim_prefix(ds_name, ENGINE_IMAGE_DAEMON_SET_PREFIX)


def is_valid_object_name(name: str) -> bool:
    return len(name) <= constants.MAX_OBJECT_NAME_LENGTH and \
        _object_name_re.match(name) is not None


def get_image_canonical_name(image: str) -> str:
    return image.replace(':', '-').replace('/', '-')


def get_engine_binary_directory_on_host_for_image(image: str) -> str:
    return os.path.normpath(constants.ENGINE_BINARY_DIRECTORY_ON_HOST + '/' +
                            get_image_canonical_name(image))


def get_engine_binary_directory_for_engine_manager_container(image: str) -> str:
    return os.path.normpath(constants.ENGINE_BINARY_DIRECTORY_IN_CONTAINER + '/' +
                            get_image_canonical_name(image))


def get_engine_binary_directory_for_replica_manager_container(image: str) -> str:
    return os.path.normpath(constants.REPLICA_HOST_PREFIX + '/' +
                            get_engine_binary_directory_on_host_for_image(image))


def engine_binary_exist_on_host_for_image(image: str) -> bool:
    return os.path.isfile(os.path.join(get_engine_binary_directory_on_host_for_image(image),
                                       constants.ENGINE_BINARY_NAME))


def get_backing_image_manager_name(image: str, disk_uuid: str) -> str:
    return f'{BACKING_IMAGE_MANAGER_PREFIX}{get_string_checksum(image)[:4]}-{disk_uuid[:4]}'


def get_backing_image_directory_name(backing_image_name: str, backing_image_uuid: str) -> str:
    return f'{backing_image_name}-{backing_image_uuid}'


def get_backing_image_manager_directory_on_host(disk_path: str) -> str:
    return os.path.normpath(disk_path + constants.BACKING_IMAGES_MANAGER_DIRECTORY)


def get_backing_image_directory_on_host(disk_path: str,
                                        backing_image_name: str,
                                        backing_image_uuid: str) -> str:
    return os.path.join(get_backing_image_manager_directory_on_host(disk_path),
                        get_backing_image_directory_name(backing_image_name, backing_image_uuid))


def get_backing_image_path_for_replica_manager_container(disk_path: str,
                                                         backing_image_name: str,
                                                         backing_image_uuid: str) -> str:
    return os.path.normpath(
        constants.REPLICA_HOST_PREFIX + '/' +
        get_backing_image_directory_on_host(disk_path, backing_image_name, backing_image_uuid) +
        '/' + constants.BACKING_IMAGE_FILE_NAME)


def get_replica_data_path(disk_path: str, data_directory_name: str) -> str:
    # os.path.join would drop disk_path in front of an absolute name
    return os.path.normpath(disk_path + '/' + REPLICA_DIRECTORY + '/' + data_directory_name)


def get_replica_mounted_data_path(data_path: str) -> str:
    if not data_path.startswith(constants.REPLICA_HOST_PREFIX):
        return os.path.normpath(constants.REPLICA_HOST_PREFIX + '/' + data_path)
    return data_path


def get_api_server_address_from_ip(ip: str) -> str:
    try:
        if ipaddress.ip_address(ip).version == 6:
            return f'[{ip}]:{constants.DEFAULT_API_PORT}'
    except ValueError:
        pass
    return f'{ip}:{constants.DEFAULT_API_PORT}'


def get_default_manager_url() -> str:
    return f'http://{constants.DEFAULT_MANAGER_SERVICE}:{constants.DEFAULT_API_PORT}/v1'
