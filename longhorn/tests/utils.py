from longhorn.exceptions import UnderlyingFilesystemError
from longhorn.utils import DiskInfo

try:
    from typing import Dict, List, Tuple
except ImportError:
    pass  # for type checking


class FakeDiskOperations(object):
    """
    Disk operations over a fixed table of path -> (fsid, storage maximum).
    """

    def __init__(self, disks):
        # type: (Dict[str, Tuple[str, int]]) -> None
        self.disks = disks
        self.queried = []  # type: List[str]
        self.created = []  # type: List[str]

    def get_disk_info(self, path):
        # type: (str) -> DiskInfo
        self.queried.append(path)
        if path not in self.disks:
            raise UnderlyingFilesystemError(f'cannot get disk info of directory {path}')
        fsid, maximum = self.disks[path]
        return DiskInfo(fsid=fsid, path=path,
                        storage_maximum=maximum, storage_available=maximum)

    def create_replica_directory(self, path):
        # type: (str) -> None
        self.created.append(path)


def _mk_fs(**disks):
    # type: (Tuple[str, int]) -> FakeDiskOperations
    return FakeDiskOperations({'/mnt/' + k: v for k, v in disks.items()})
