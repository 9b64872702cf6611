import enum
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple, Union

from longhorn.deployment import constants
from longhorn.deployment.naming import (
    get_image_canonical_name,
    get_instance_manager_image_checksum_name,
    get_share_manager_image_checksum_name,
)
from longhorn.deployment.options import InstanceManagerType, RecurringJob, RecurringJobType
from longhorn.exceptions import InvalidOptionError, UnknownKindError


class LabelConfig(NamedTuple):
    """
    Identity of the control plane in label keys and values. Passed to
    every label function so it can differ per caller.
    """
    key_prefix: str = constants.LABEL_KEY_PREFIX
    control_plane_name: str = constants.CONTROL_PLANE_NAME

    def key(self, name: str) -> str:
        return f'{self.key_prefix}/{name}'

    def component_key(self) -> str:
        return self.key(constants.LABEL_COMPONENT)

    def base_labels(self) -> Dict[str, str]:
        return {self.key(constants.LABEL_MANAGED_BY): self.control_plane_name}


DEFAULT_LABEL_CONFIG = LabelConfig()


class ResourceKind(str, enum.Enum):
    engine_image = 'engine-image'
    instance_manager = 'instance-manager'
    share_manager = 'share-manager'
    backing_image = 'backing-image'
    backing_image_manager = 'backing-image-manager'
    backing_image_data_source = 'backing-image-data-source'
    recurring_job = 'recurring-job'


def _manager_type(manager_type: Union[str, InstanceManagerType]) -> str:
    try:
        return InstanceManagerType(manager_type).value
    except ValueError as e:
        raise InvalidOptionError(f'invalid instance manager type {manager_type}') from e


def _job_task(job: RecurringJob) -> str:
    task = getattr(job, 'task', None)
    try:
        return RecurringJobType(task).value
    except ValueError as e:
        raise InvalidOptionError(f'invalid recurring job task {task}') from e


def get_base_labels_for_system_managed_component(
        config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    return config.base_labels()


def get_engine_image_labels(engine_image_name: str,
                            config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_ENGINE_IMAGE
    labels[config.key(constants.LABEL_ENGINE_IMAGE)] = engine_image_name
    return labels


def get_ei_daemon_set_label_selector(engine_image_name: str,
                                     config: LabelConfig = DEFAULT_LABEL_CONFIG
                                     ) -> Dict[str, str]:
    """Labels for the engine image daemonset's ``spec.selector.matchLabels``"""
    return {
        config.component_key(): constants.LABEL_ENGINE_IMAGE,
        config.key(constants.LABEL_ENGINE_IMAGE): engine_image_name,
    }


def get_engine_image_component_label(
        config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    return {config.component_key(): constants.LABEL_ENGINE_IMAGE}


def get_instance_manager_labels(node: str,
                                instance_manager_image: str,
                                manager_type: Union[str, InstanceManagerType],
                                config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_INSTANCE_MANAGER
    labels[config.key(constants.LABEL_INSTANCE_MANAGER_TYPE)] = _manager_type(manager_type)
    if node:
        labels[config.key(constants.LABEL_NODE)] = node
    if instance_manager_image:
        labels[config.key(constants.LABEL_INSTANCE_MANAGER_IMAGE)] = \
            get_instance_manager_image_checksum_name(
                get_image_canonical_name(instance_manager_image))
    return labels


def get_instance_manager_component_label(
        config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    return {config.component_key(): constants.LABEL_INSTANCE_MANAGER}


def get_share_manager_component_label(
        config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    return {config.component_key(): constants.LABEL_SHARE_MANAGER}


def get_share_manager_instance_label(name: str,
                                     config: LabelConfig = DEFAULT_LABEL_CONFIG
                                     ) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.key(constants.LABEL_SHARE_MANAGER)] = name
    return labels


def get_share_manager_labels(name: str,
                             image: str,
                             config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_SHARE_MANAGER
    if name:
        labels[config.key(constants.LABEL_SHARE_MANAGER)] = name
    if image:
        labels[config.key(constants.LABEL_SHARE_MANAGER_IMAGE)] = \
            get_share_manager_image_checksum_name(get_image_canonical_name(image))
    return labels


def get_cron_job_labels(volume_name: str,
                        job: RecurringJob,
                        config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    labels = config.base_labels()
    labels[constants.LABEL_VOLUME] = volume_name
    labels[config.key(constants.LABEL_CRON_JOB_TASK)] = _job_task(job)
    return labels


def get_cron_job_pod_labels(volume_name: str,
                            job: RecurringJob,
                            config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    return {
        constants.LABEL_VOLUME: volume_name,
        config.key(constants.LABEL_CRON_JOB_TASK): _job_task(job),
    }


def get_backing_image_labels(config: LabelConfig = DEFAULT_LABEL_CONFIG) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_BACKING_IMAGE
    return labels


def get_backing_image_manager_labels(node_id: str,
                                     disk_uuid: str,
                                     config: LabelConfig = DEFAULT_LABEL_CONFIG
                                     ) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_BACKING_IMAGE_MANAGER
    if disk_uuid:
        labels[config.key(constants.LABEL_DISK_UUID)] = disk_uuid
    if node_id:
        labels[config.key(constants.LABEL_NODE)] = node_id
    return labels


def get_backing_image_data_source_labels(name: str,
                                         node_id: str,
                                         disk_uuid: str,
                                         config: LabelConfig = DEFAULT_LABEL_CONFIG
                                         ) -> Dict[str, str]:
    labels = config.base_labels()
    labels[config.component_key()] = constants.LABEL_BACKING_IMAGE_DATA_SOURCE
    if name:
        labels[config.key(constants.LABEL_BACKING_IMAGE_DATA_SOURCE)] = name
    if disk_uuid:
        labels[config.key(constants.LABEL_DISK_UUID)] = disk_uuid
    if node_id:
        labels[config.key(constants.LABEL_NODE)] = node_id
    return labels


def get_volume_labels(volume_name: str) -> Dict[str, str]:
    return {constants.LABEL_VOLUME: volume_name}


def get_region_and_zone(labels: Mapping[str, str],
                        is_using_topology_labels: bool) -> Tuple[str, str]:
    if is_using_topology_labels:
        return (labels.get(constants.TOPOLOGY_REGION_LABEL_KEY, ''),
                labels.get(constants.TOPOLOGY_ZONE_LABEL_KEY, ''))
    return (labels.get(constants.FAILURE_DOMAIN_REGION_LABEL_KEY, ''),
            labels.get(constants.FAILURE_DOMAIN_ZONE_LABEL_KEY, ''))


def labels_to_string(labels: Mapping[str, str]) -> str:
    """
    >>> labels_to_string({'b': '2', 'a': '1'})
    'a=1,b=2'
    """
    return ','.join(f'{k}={v}' for k, v in sorted(labels.items()))


def _required(kind: ResourceKind, attrs: Mapping[str, Any], name: str) -> Any:
    value = attrs.get(name)
    if value is None or value == '':
        raise InvalidOptionError(f'labels of {kind.value} require `{name}`')
    return value


def _instance_manager_selector(attrs: Mapping[str, Any],
                               config: LabelConfig) -> Dict[str, str]:
    # the image label changes on upgrade and must not be part of a selector
    labels = get_instance_manager_component_label(config)
    manager_type = attrs.get('manager_type')
    if manager_type:
        labels[config.key(constants.LABEL_INSTANCE_MANAGER_TYPE)] = \
            _manager_type(manager_type)
    if attrs.get('node'):
        labels[config.key(constants.LABEL_NODE)] = attrs['node']
    return labels


def _share_manager_selector(attrs: Mapping[str, Any], config: LabelConfig) -> Dict[str, str]:
    labels = get_share_manager_component_label(config)
    if attrs.get('name'):
        labels[config.key(constants.LABEL_SHARE_MANAGER)] = attrs['name']
    return labels


def _backing_image_manager_selector(attrs: Mapping[str, Any],
                                    config: LabelConfig) -> Dict[str, str]:
    labels = get_backing_image_manager_labels(
        attrs.get('node_id', ''), attrs.get('disk_uuid', ''), config)
    del labels[config.key(constants.LABEL_MANAGED_BY)]
    return labels


def _backing_image_data_source_selector(attrs: Mapping[str, Any],
                                        config: LabelConfig) -> Dict[str, str]:
    labels = {config.component_key(): constants.LABEL_BACKING_IMAGE_DATA_SOURCE}
    if attrs.get('name'):
        labels[config.key(constants.LABEL_BACKING_IMAGE_DATA_SOURCE)] = attrs['name']
    return labels


_LabelFunc = Callable[[Mapping[str, Any], LabelConfig], Dict[str, str]]

_label_funcs: Dict[ResourceKind, _LabelFunc] = {
    ResourceKind.engine_image: lambda a, c: get_engine_image_labels(
        _required(ResourceKind.engine_image, a, 'name'), c),
    ResourceKind.instance_manager: lambda a, c: get_instance_manager_labels(
        a.get('node', ''), a.get('image', ''),
        _required(ResourceKind.instance_manager, a, 'manager_type'), c),
    ResourceKind.share_manager: lambda a, c: get_share_manager_labels(
        a.get('name', ''), a.get('image', ''), c),
    ResourceKind.backing_image: lambda a, c: get_backing_image_labels(c),
    ResourceKind.backing_image_manager: lambda a, c: get_backing_image_manager_labels(
        a.get('node_id', ''), a.get('disk_uuid', ''), c),
    ResourceKind.backing_image_data_source: lambda a, c: get_backing_image_data_source_labels(
        a.get('name', ''), a.get('node_id', ''), a.get('disk_uuid', ''), c),
    ResourceKind.recurring_job: lambda a, c: get_cron_job_labels(
        _required(ResourceKind.recurring_job, a, 'volume_name'),
        _required(ResourceKind.recurring_job, a, 'job'), c),
}

_selector_funcs: Dict[ResourceKind, _LabelFunc] = {
    ResourceKind.engine_image: lambda a, c: get_ei_daemon_set_label_selector(
        _required(ResourceKind.engine_image, a, 'name'), c),
    ResourceKind.instance_manager: _instance_manager_selector,
    ResourceKind.share_manager: _share_manager_selector,
    ResourceKind.backing_image: lambda a, c: {
        c.component_key(): constants.LABEL_BACKING_IMAGE},
    ResourceKind.backing_image_manager: _backing_image_manager_selector,
    ResourceKind.backing_image_data_source: _backing_image_data_source_selector,
    ResourceKind.recurring_job: lambda a, c: get_cron_job_pod_labels(
        _required(ResourceKind.recurring_job, a, 'volume_name'),
        _required(ResourceKind.recurring_job, a, 'job'), c),
}


def _resource_kind(kind: Union[str, ResourceKind]) -> ResourceKind:
    try:
        return ResourceKind(kind)
    except ValueError as e:
        raise UnknownKindError(f'cannot derive labels for unknown resource kind {kind}') from e


def derive_labels(kind: Union[str, ResourceKind],
                  config: Optional[LabelConfig] = None,
                  **attrs: Any) -> Dict[str, str]:
    """
    Full label set of a managed resource.

    Attributes per kind: ``name`` (engine image, share manager, backing
    image data source), ``image`` (instance manager, share manager),
    ``node`` and ``manager_type`` (instance manager), ``node_id`` and
    ``disk_uuid`` (backing image manager and data source),
    ``volume_name`` and ``job`` (recurring job). Empty attributes are
    left out of the result.
    """
    k = _resource_kind(kind)
    return _label_funcs[k](attrs, config or DEFAULT_LABEL_CONFIG)


def derive_selector(kind: Union[str, ResourceKind],
                    config: Optional[LabelConfig] = None,
                    **attrs: Any) -> Dict[str, str]:
    """
    Labels a controller matches its instances with. A subset of
    :func:`derive_labels` without the ``managed-by`` label and without
    image checksum labels.
    """
    k = _resource_kind(kind)
    return _selector_funcs[k](attrs, config or DEFAULT_LABEL_CONFIG)
