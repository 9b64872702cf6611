# Shared constant values for every longhorn component that names, labels
# or configures managed resources (manager, webhooks, CSI plugin, etc)


# Manager endpoint
DEFAULT_API_PORT = 9500
DEFAULT_MANAGER_SERVICE = 'longhorn-backend'
CONTROL_PLANE_NAME = 'longhorn-manager'


# Host and container directories
ENGINE_BINARY_DIRECTORY_IN_CONTAINER = '/engine-binaries/'
ENGINE_BINARY_DIRECTORY_ON_HOST = '/var/lib/longhorn/engine-binaries/'
REPLICA_HOST_PREFIX = '/host'
ENGINE_BINARY_NAME = 'longhorn'
BACKING_IMAGES_MANAGER_DIRECTORY = '/backing-images/'
BACKING_IMAGE_FILE_NAME = 'backing'


# Node labels and annotations set by the operator
NODE_CREATE_DEFAULT_DISK_LABEL_KEY = 'node.longhorn.io/create-default-disk'
NODE_CREATE_DEFAULT_DISK_LABEL_VALUE_TRUE = 'true'
NODE_CREATE_DEFAULT_DISK_LABEL_VALUE_CONFIG = 'config'
KUBE_NODE_DEFAULT_DISK_CONFIG_ANNOTATION_KEY = 'node.longhorn.io/default-disks-config'
KUBE_NODE_DEFAULT_NODE_TAG_CONFIG_ANNOTATION_KEY = 'node.longhorn.io/default-node-tags'


# Label names, prefixed with the configured key prefix unless noted
LABEL_KEY_PREFIX = 'longhorn.io'
LABEL_COMPONENT = 'component'
LABEL_MANAGED_BY = 'managed-by'
LABEL_ENGINE_IMAGE = 'engine-image'
LABEL_INSTANCE_MANAGER = 'instance-manager'
LABEL_INSTANCE_MANAGER_TYPE = 'instance-manager-type'
LABEL_INSTANCE_MANAGER_IMAGE = 'instance-manager-image'
LABEL_NODE = 'node'
LABEL_DISK_UUID = 'disk-uuid'
LABEL_SHARE_MANAGER = 'share-manager'
LABEL_SHARE_MANAGER_IMAGE = 'share-manager-image'
LABEL_BACKING_IMAGE = 'backing-image'
LABEL_BACKING_IMAGE_MANAGER = 'backing-image-manager'
LABEL_BACKING_IMAGE_DATA_SOURCE = 'backing-image-data-source'
LABEL_CRON_JOB_TASK = 'job-task'
# not prefixed
LABEL_VOLUME = 'longhornvolume'


# Topology labels of cluster nodes
FAILURE_DOMAIN_REGION_LABEL_KEY = 'failure-domain.beta.kubernetes.io/region'
FAILURE_DOMAIN_ZONE_LABEL_KEY = 'failure-domain.beta.kubernetes.io/zone'
TOPOLOGY_REGION_LABEL_KEY = 'topology.kubernetes.io/region'
TOPOLOGY_ZONE_LABEL_KEY = 'topology.kubernetes.io/zone'


# Disks
DEFAULT_DISK_PREFIX = 'default-disk-'
# share of a default disk kept free of replicas
DEFAULT_DISK_STORAGE_RESERVED_PERCENTAGE = 30


# Volume options, as found in storage class parameters
OPTION_FROM_BACKUP = 'fromBackup'
OPTION_NUMBER_OF_REPLICAS = 'numberOfReplicas'
OPTION_STALE_REPLICA_TIMEOUT = 'staleReplicaTimeout'
OPTION_BASE_IMAGE = 'baseImage'
OPTION_FRONTEND = 'frontend'
OPTION_DISK_SELECTOR = 'diskSelector'
OPTION_NODE_SELECTOR = 'nodeSelector'
OPTION_DATA_LOCALITY = 'dataLocality'
OPTION_ACCESS_MODE = 'accessMode'
OPTION_REPLICA_AUTO_BALANCE = 'replicaAutoBalance'

# in minutes, 48h
DEFAULT_STALE_REPLICA_TIMEOUT = 2880

MIN_REPLICA_COUNT = 1
MAX_REPLICA_COUNT = 20

# percentage of a node's CPU
MAX_INSTANCE_MANAGER_CPU_RESERVATION = 40


# Object names
MAX_OBJECT_NAME_LENGTH = 63
IMAGE_CHECKSUM_NAME_LENGTH = 8
# Budget for the job part of a recurring job name:
# 63 (object name) - 40 (volume name) - 2 (recurring suffix)
# - 11 (cron job pod suffix) - 2 (dash and buffer)
MAXIMUM_JOB_NAME_SIZE = 8
