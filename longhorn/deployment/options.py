import enum
import re
from collections import OrderedDict
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union, cast

import yaml

from longhorn.deployment import constants
from longhorn.exceptions import InvalidOptionError, InvalidTagError
from longhorn.utils import validate_tags


class InstanceManagerType(str, enum.Enum):
    engine = 'engine'
    replica = 'replica'

    def to_json(self) -> str:
        return self.value


class AccessMode(str, enum.Enum):
    rwo = 'rwo'
    rwx = 'rwx'

    def to_json(self) -> str:
        return self.value


class DataLocality(str, enum.Enum):
    disabled = 'disabled'
    best_effort = 'best-effort'

    def to_json(self) -> str:
        return self.value


class ReplicaAutoBalance(str, enum.Enum):
    ignored = 'ignored'
    disabled = 'disabled'
    least_effort = 'least-effort'
    best_effort = 'best-effort'

    def to_json(self) -> str:
        return self.value


class RecurringJobType(str, enum.Enum):
    snapshot = 'snapshot'
    backup = 'backup'


class RecurringJob(NamedTuple):
    name: str
    task: RecurringJobType
    cron: str = ''
    retain: int = 0
    labels: Optional[Dict[str, str]] = None


_int_re = re.compile(r'[+-]?[0-9]+')


def _parse_int(value: str) -> Optional[int]:
    if not isinstance(value, str) or not _int_re.fullmatch(value):
        return None
    return int(value)


def validate_replica_count(count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidOptionError(f'replica count {count!r} is not an integer')
    if count < constants.MIN_REPLICA_COUNT or count > constants.MAX_REPLICA_COUNT:
        raise InvalidOptionError(
            f'replica count value must between {constants.MIN_REPLICA_COUNT} '
            f'to {constants.MAX_REPLICA_COUNT}')


def validate_replica_auto_balance(option: Union[str, ReplicaAutoBalance]) -> None:
    if option not in (ReplicaAutoBalance.ignored,
                      ReplicaAutoBalance.disabled,
                      ReplicaAutoBalance.least_effort,
                      ReplicaAutoBalance.best_effort):
        raise InvalidOptionError(f'invalid replica auto-balance option: {option}')


def validate_data_locality(mode: Union[str, DataLocality]) -> None:
    if mode != DataLocality.disabled and mode != DataLocality.best_effort:
        raise InvalidOptionError(f'invalid data locality mode: {mode}')


def validate_access_mode(mode: Union[str, AccessMode]) -> None:
    if mode != AccessMode.rwx and mode != AccessMode.rwo:
        raise InvalidOptionError(f'invalid access mode: {mode}')


def validate_cpu_reservation_values(engine_manager_cpu_str: str,
                                    replica_manager_cpu_str: str) -> None:
    """
    Both values are percentages of a node's CPU, given as strings the
    way they are stored in settings.
    """
    engine_manager_cpu = _parse_int(engine_manager_cpu_str)
    if engine_manager_cpu is None:
        raise InvalidOptionError(
            f'guaranteed/requested engine manager CPU value {engine_manager_cpu_str!r} '
            'is not int')
    replica_manager_cpu = _parse_int(replica_manager_cpu_str)
    if replica_manager_cpu is None:
        raise InvalidOptionError(
            f'guaranteed/requested replica manager CPU value {replica_manager_cpu_str!r} '
            'is not int')
    total = engine_manager_cpu + replica_manager_cpu
    if total < 0 or total > constants.MAX_INSTANCE_MANAGER_CPU_RESERVATION:
        raise InvalidOptionError(
            f'the requested engine manager CPU and replica manager CPU are '
            f'{engine_manager_cpu}% and {replica_manager_cpu}% of a node total CPU, '
            f'respectively. The sum should not be smaller than 0% or greater than '
            f'{constants.MAX_INSTANCE_MANAGER_CPU_RESERVATION}%')


def _split_selector(option: str, value: Any) -> List[str]:
    if isinstance(value, list):
        tags = value
    elif isinstance(value, str):
        tags = [t.strip() for t in value.split(',') if t.strip()]
    else:
        raise InvalidOptionError(f'{option} ({value!r}) must be a comma separated string')
    try:
        return validate_tags(tags)
    except InvalidTagError as e:
        raise InvalidOptionError(f'invalid {option}: {e}') from e


class VolumeOptions(object):
    """
    Volume parameters as given in a storage class, e.g.:

    .. code:: yaml

        numberOfReplicas: "3"
        staleReplicaTimeout: "2880"
        diskSelector: "ssd,fast"
        dataLocality: best-effort
    """

    _supported_options = [
        constants.OPTION_NUMBER_OF_REPLICAS,
        constants.OPTION_STALE_REPLICA_TIMEOUT,
        constants.OPTION_FROM_BACKUP,
        constants.OPTION_BASE_IMAGE,
        constants.OPTION_FRONTEND,
        constants.OPTION_DISK_SELECTOR,
        constants.OPTION_NODE_SELECTOR,
        constants.OPTION_DATA_LOCALITY,
        constants.OPTION_ACCESS_MODE,
        constants.OPTION_REPLICA_AUTO_BALANCE,
    ]

    def __init__(self,
                 number_of_replicas: int = 3,
                 stale_replica_timeout: int = constants.DEFAULT_STALE_REPLICA_TIMEOUT,
                 from_backup: str = '',
                 base_image: str = '',
                 frontend: str = '',
                 disk_selector: Optional[List[str]] = None,
                 node_selector: Optional[List[str]] = None,
                 data_locality: DataLocality = DataLocality.disabled,
                 access_mode: AccessMode = AccessMode.rwo,
                 replica_auto_balance: ReplicaAutoBalance = ReplicaAutoBalance.ignored,
                 ) -> None:
        self.number_of_replicas = number_of_replicas

        #: minutes before a failed replica is cleaned up
        self.stale_replica_timeout = stale_replica_timeout

        #: backup URL to restore the volume from
        self.from_backup = from_backup

        self.base_image = base_image
        self.frontend = frontend

        #: disk tags a replica disk must carry
        self.disk_selector = disk_selector or []

        #: node tags a replica node must carry
        self.node_selector = node_selector or []

        self.data_locality = data_locality
        self.access_mode = access_mode
        self.replica_auto_balance = replica_auto_balance

    @classmethod
    def from_json(cls, params: Mapping[str, Any]) -> 'VolumeOptions':
        if not isinstance(params, Mapping):
            raise InvalidOptionError(f'volume options must be a mapping, got {params!r}')
        for k in params.keys():
            if k not in cls._supported_options:
                raise InvalidOptionError(f'volume option `{k}` is not supported')

        args: Dict[str, Any] = {}
        if constants.OPTION_NUMBER_OF_REPLICAS in params:
            n = _parse_int(str(params[constants.OPTION_NUMBER_OF_REPLICAS]))
            if n is None:
                raise InvalidOptionError(
                    f'invalid {constants.OPTION_NUMBER_OF_REPLICAS}: '
                    f'{params[constants.OPTION_NUMBER_OF_REPLICAS]!r}')
            args['number_of_replicas'] = n
        if constants.OPTION_STALE_REPLICA_TIMEOUT in params:
            t = _parse_int(str(params[constants.OPTION_STALE_REPLICA_TIMEOUT]))
            if t is None:
                raise InvalidOptionError(
                    f'invalid {constants.OPTION_STALE_REPLICA_TIMEOUT}: '
                    f'{params[constants.OPTION_STALE_REPLICA_TIMEOUT]!r}')
            args['stale_replica_timeout'] = t
        for option, arg in ((constants.OPTION_FROM_BACKUP, 'from_backup'),
                            (constants.OPTION_BASE_IMAGE, 'base_image'),
                            (constants.OPTION_FRONTEND, 'frontend')):
            if option in params:
                args[arg] = str(params[option])
        if constants.OPTION_DISK_SELECTOR in params:
            args['disk_selector'] = _split_selector(
                constants.OPTION_DISK_SELECTOR, params[constants.OPTION_DISK_SELECTOR])
        if constants.OPTION_NODE_SELECTOR in params:
            args['node_selector'] = _split_selector(
                constants.OPTION_NODE_SELECTOR, params[constants.OPTION_NODE_SELECTOR])

        try:
            if constants.OPTION_DATA_LOCALITY in params:
                args['data_locality'] = DataLocality(params[constants.OPTION_DATA_LOCALITY])
            if constants.OPTION_ACCESS_MODE in params:
                args['access_mode'] = AccessMode(params[constants.OPTION_ACCESS_MODE])
            if constants.OPTION_REPLICA_AUTO_BALANCE in params:
                args['replica_auto_balance'] = ReplicaAutoBalance(
                    params[constants.OPTION_REPLICA_AUTO_BALANCE])
        except ValueError as e:
            raise InvalidOptionError(str(e)) from e

        _cls = cls(**args)
        _cls.validate()
        return _cls

    def to_json(self) -> 'OrderedDict[str, str]':
        ret: OrderedDict[str, str] = OrderedDict()
        ret[constants.OPTION_NUMBER_OF_REPLICAS] = str(self.number_of_replicas)
        ret[constants.OPTION_STALE_REPLICA_TIMEOUT] = str(self.stale_replica_timeout)
        if self.from_backup:
            ret[constants.OPTION_FROM_BACKUP] = self.from_backup
        if self.base_image:
            ret[constants.OPTION_BASE_IMAGE] = self.base_image
        if self.frontend:
            ret[constants.OPTION_FRONTEND] = self.frontend
        if self.disk_selector:
            ret[constants.OPTION_DISK_SELECTOR] = ','.join(self.disk_selector)
        if self.node_selector:
            ret[constants.OPTION_NODE_SELECTOR] = ','.join(self.node_selector)
        ret[constants.OPTION_DATA_LOCALITY] = DataLocality(self.data_locality).to_json()
        ret[constants.OPTION_ACCESS_MODE] = AccessMode(self.access_mode).to_json()
        ret[constants.OPTION_REPLICA_AUTO_BALANCE] = \
            ReplicaAutoBalance(self.replica_auto_balance).to_json()
        return ret

    def validate(self) -> None:
        validate_replica_count(self.number_of_replicas)
        if self.stale_replica_timeout < 0:
            raise InvalidOptionError(
                f'{constants.OPTION_STALE_REPLICA_TIMEOUT} must not be negative, '
                f'got {self.stale_replica_timeout}')
        validate_data_locality(self.data_locality)
        validate_access_mode(self.access_mode)
        validate_replica_auto_balance(self.replica_auto_balance)

    def __repr__(self) -> str:
        y = yaml.dump(cast(dict, self), default_flow_style=False)
        return f"{self.__class__.__name__}.from_json(yaml.safe_load('''{y}'''))"

    def __eq__(self, other: Any) -> bool:
        return (self.__class__ == other.__class__
                and
                self.__dict__ == other.__dict__)

    @staticmethod
    def yaml_representer(dumper: 'yaml.SafeDumper', data: 'VolumeOptions') -> Any:
        return dumper.represent_dict(cast(Mapping, data.to_json().items()))


yaml.add_representer(VolumeOptions, VolumeOptions.yaml_representer)
