"""
Disk configuration of a node.

Disks are given by the operator as a JSON annotation on the cluster
node, e.g.::

    [{"path": "/mnt/disk1", "allowScheduling": false},
     {"path": "/mnt/disk2", "allowScheduling": false,
      "storageReserved": 1024, "tags": ["ssd", "fast"]}]

and node tags as a flat JSON list, e.g. ``["worker1", "enabled"]``.
Validation is all or nothing: the first invalid entry raises and no
partial result is returned.
"""
import json
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Mapping, Optional, Protocol, cast

import yaml

from longhorn.deployment import constants
from longhorn.exceptions import (
    DuplicateDiskError,
    DuplicateFilesystemError,
    DuplicateNameError,
    InvalidDiskError,
    InvalidReservationError,
    ParseError,
)
from longhorn.utils import (
    DiskInfo,
    create_disk_path_replica_subdirectory,
    get_disk_info,
    validate_tags,
)

log = logging.getLogger(__name__)


class DiskOperations(Protocol):
    """Protocol class representing the host filesystem operations disk
    validation performs.
    """

    def get_disk_info(self, path: str) -> DiskInfo: ...

    def create_replica_directory(self, path: str) -> None: ...


class HostDiskOperations(object):
    def get_disk_info(self, path: str) -> DiskInfo:
        return get_disk_info(path)

    def create_replica_directory(self, path: str) -> None:
        create_disk_path_replica_subdirectory(path)


class DiskSpec(object):
    """
    A disk of a node, as found in the disk annotation.
    """

    _fields = {
        # json name: (attribute, type)
        'path': ('path', str),
        'name': ('name', str),
        'allowScheduling': ('allow_scheduling', bool),
        'evictionRequested': ('eviction_requested', bool),
        'storageReserved': ('storage_reserved', int),
        'tags': ('tags', list),
    }

    def __init__(self,
                 path: str = '',
                 name: str = '',
                 allow_scheduling: bool = False,
                 eviction_requested: bool = False,
                 storage_reserved: int = 0,
                 tags: Optional[List[str]] = None,
                 ) -> None:
        #: mount point of the disk on the node
        self.path = path

        #: unique within the node, defaults to ``default-disk-<fsid>``
        self.name = name

        self.allow_scheduling = allow_scheduling
        self.eviction_requested = eviction_requested

        #: bytes not to be used for replicas
        self.storage_reserved = storage_reserved

        self.tags = tags or []  # type: List[str]

    @classmethod
    def from_json(cls, disk_spec: Any) -> 'DiskSpec':
        if not isinstance(disk_spec, dict):
            raise ParseError(f'disk must be a JSON object, got {json.dumps(disk_spec)}')
        args: Dict[str, Any] = {}
        for key, value in disk_spec.items():
            if key not in cls._fields or value is None:
                # unknown fields are ignored, same as the cluster does
                continue
            attr, typ = cls._fields[key]
            # bool is an int subclass, but not a valid storageReserved
            if not isinstance(value, typ) or (typ is int and isinstance(value, bool)):
                raise ParseError(
                    f'disk field "{key}" must be of type {typ.__name__}, got {value!r}')
            if key == 'tags' and any(not isinstance(t, str) for t in value):
                raise ParseError(f'disk tags ({value}) must be a list of strings')
            args[attr] = value
        return cls(**args)

    def to_json(self) -> 'OrderedDict[str, Any]':
        ret: OrderedDict[str, Any] = OrderedDict()
        ret['path'] = self.path
        if self.name:
            ret['name'] = self.name
        ret['allowScheduling'] = self.allow_scheduling
        ret['evictionRequested'] = self.eviction_requested
        ret['storageReserved'] = self.storage_reserved
        ret['tags'] = list(self.tags)
        return ret

    def __repr__(self) -> str:
        y = yaml.dump(cast(dict, self), default_flow_style=False)
        return f"{self.__class__.__name__}.from_json(yaml.safe_load('''{y}'''))"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DiskSpec):
            return NotImplemented
        return self.__dict__ == other.__dict__

    @staticmethod
    def yaml_representer(dumper: 'yaml.SafeDumper', data: 'DiskSpec') -> Any:
        return dumper.represent_dict(cast(Mapping, data.to_json().items()))


yaml.add_representer(DiskSpec, DiskSpec.yaml_representer)


def unmarshal_to_disks(annotation: str) -> List[DiskSpec]:
    try:
        raw = json.loads(annotation)
    except (TypeError, ValueError) as e:
        raise ParseError(f'failed to unmarshal the default disks annotation: {e}') from e
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ParseError(
            f'failed to unmarshal the default disks annotation: expected a JSON array, '
            f'got {annotation!r}')
    return [DiskSpec.from_json(d) for d in raw]


def unmarshal_to_node_tags(annotation: str) -> List[str]:
    try:
        raw = json.loads(annotation)
    except (TypeError, ValueError) as e:
        raise ParseError(f'failed to unmarshal the node tag annotation: {e}') from e
    if raw is None:
        return []
    if not isinstance(raw, list) or any(not isinstance(t, str) for t in raw):
        raise ParseError(
            f'failed to unmarshal the node tag annotation: expected a JSON array of strings, '
            f'got {annotation!r}')
    return raw


def validate_disks(annotation: str,
                   fs: Optional[DiskOperations] = None) -> Dict[str, DiskSpec]:
    """
    Parse a disk annotation into validated disks keyed by disk name.

    :param annotation: JSON array of disks
    :param fs: filesystem operations, the host filesystem by default
    :raises: :exc:`~longhorn.exceptions.SpecValidationError` subclasses
        for invalid input, and whatever `fs` raises when a disk cannot
        be queried.
    """
    fs = fs or HostDiskOperations()
    disks = unmarshal_to_disks(annotation)

    # syntactic checks first, no disk gets queried for an invalid annotation
    seen_paths = set()
    for disk in disks:
        if not disk.path:
            raise InvalidDiskError(f'invalid disk {disk.to_json()}: path is required')
        if disk.path in seen_paths:
            raise DuplicateDiskError(f'duplicate disk path {disk.path}')
        seen_paths.add(disk.path)

    valid_disks: Dict[str, DiskSpec] = {}
    exist_fsid: Dict[str, str] = {}
    for disk in disks:
        disk_info = fs.get_disk_info(disk.path)

        if not disk.name:
            disk.name = constants.DEFAULT_DISK_PREFIX + disk_info.fsid

        if disk_info.fsid in exist_fsid:
            raise DuplicateFilesystemError(
                f'the disk {disk.path} is the same file system with '
                f'{exist_fsid[disk_info.fsid]}, fsid {disk_info.fsid}')
        exist_fsid[disk_info.fsid] = disk.path

        if disk.storage_reserved < 0 or disk.storage_reserved > disk_info.storage_maximum:
            raise InvalidReservationError(
                f'the storageReserved setting of disk {disk.path} is not valid, should be '
                f'positive and no more than storageMaximum {disk_info.storage_maximum}')

        disk.tags = validate_tags(disk.tags)

        if disk.name in valid_disks:
            raise DuplicateNameError(f'the disk name {disk.name} has duplicated')
        valid_disks[disk.name] = disk
        log.debug(f'Validated disk {disk.name} at {disk.path}')

    return valid_disks


def validate_node_tags(annotation: str) -> List[str]:
    return validate_tags(unmarshal_to_node_tags(annotation))


def default_disk(path: str, fs: Optional[DiskOperations] = None) -> Dict[str, DiskSpec]:
    """
    The disk a node gets when it is set up without a disk annotation.
    30% of the disk is reserved.
    """
    fs = fs or HostDiskOperations()
    fs.create_replica_directory(path)
    disk_info = fs.get_disk_info(path)
    name = constants.DEFAULT_DISK_PREFIX + disk_info.fsid
    disk = DiskSpec(
        path=disk_info.path,
        name=name,
        allow_scheduling=True,
        eviction_requested=False,
        storage_reserved=(disk_info.storage_maximum *
                          constants.DEFAULT_DISK_STORAGE_RESERVED_PERCENTAGE // 100),
    )
    log.info(f'Created default disk {name} at {disk.path}')
    return {name: disk}


def default_disks_for_node(labels: Mapping[str, str],
                           annotations: Mapping[str, str],
                           default_data_path: str,
                           fs: Optional[DiskOperations] = None
                           ) -> Optional[Dict[str, DiskSpec]]:
    """
    Disks of a newly added node, as requested by its
    ``node.longhorn.io/create-default-disk`` label:

    - ``true``: a single default disk at `default_data_path`
    - ``config``: the disks of the ``node.longhorn.io/default-disks-config``
      annotation

    :return: ``None`` if no disks are requested.
    """
    value = labels.get(constants.NODE_CREATE_DEFAULT_DISK_LABEL_KEY)
    if value is None:
        return None
    value = value.lower()
    if value == constants.NODE_CREATE_DEFAULT_DISK_LABEL_VALUE_TRUE:
        return default_disk(default_data_path, fs)
    if value == constants.NODE_CREATE_DEFAULT_DISK_LABEL_VALUE_CONFIG:
        annotation = annotations.get(constants.KUBE_NODE_DEFAULT_DISK_CONFIG_ANNOTATION_KEY)
        if annotation is None:
            log.info('Node requests disks from config, but has no '
                     f'{constants.KUBE_NODE_DEFAULT_DISK_CONFIG_ANNOTATION_KEY} annotation')
            return None
        return validate_disks(annotation, fs)
    log.info(f'Ignoring unknown value {value!r} of label '
             f'{constants.NODE_CREATE_DEFAULT_DISK_LABEL_KEY}')
    return None


def default_node_tags_for_node(annotations: Mapping[str, str]) -> Optional[List[str]]:
    annotation = annotations.get(constants.KUBE_NODE_DEFAULT_NODE_TAG_CONFIG_ANNOTATION_KEY)
    if annotation is None:
        return None
    return validate_node_tags(annotation)
