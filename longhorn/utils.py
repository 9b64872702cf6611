import hashlib
import logging
import os
import re
import uuid

from typing import Iterable, List, NamedTuple

from longhorn.exceptions import InvalidTagError, UnderlyingFilesystemError

log = logging.getLogger(__name__)

REPLICA_DIRECTORY = 'replicas'

QUALIFIED_NAME_MAX_LENGTH = 63
DNS1123_SUBDOMAIN_MAX_LENGTH = 253

_qualified_name_re = re.compile(r'^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$')
_dns1123_subdomain_re = re.compile(
    r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$')


class DiskInfo(NamedTuple):
    fsid: str
    path: str
    storage_maximum: int
    storage_available: int


def get_string_checksum(data: str) -> str:
    """
    Return the hex encoded SHA-512 digest of `data`.

    >>> get_string_checksum('')[:8]
    'cf83e135'
    """
    return hashlib.sha512(data.encode('utf-8')).hexdigest()


def random_id() -> str:
    """Return a short random token, the first 8 characters of a UUID4."""
    return str(uuid.uuid4())[:8]


def get_disk_info(directory: str) -> DiskInfo:
    """
    Query the filesystem backing `directory`.

    :param directory: A directory on the host.
    :return: The fsid (hex), the directory itself and the total and free
        space in bytes.
    :raises: :exc:`~longhorn.exceptions.UnderlyingFilesystemError` if the
        filesystem cannot be queried.
    """
    try:
        st = os.statvfs(directory)
    except OSError as e:
        log.error(f'Failed to get disk info of {directory}: {e}')
        raise UnderlyingFilesystemError(
            f'cannot get disk info of directory {directory}: {e.strerror}',
            -e.errno if e.errno else None) from e

    info = DiskInfo(
        fsid=format(st.f_fsid, 'x'),
        path=directory,
        storage_maximum=st.f_blocks * st.f_frsize,
        storage_available=st.f_bfree * st.f_frsize,
    )
    log.debug(f'Disk info of {directory}: {info}')
    return info


def create_disk_path_replica_subdirectory(disk_path: str) -> None:
    try:
        os.makedirs(os.path.join(disk_path, REPLICA_DIRECTORY), exist_ok=True)
    except OSError as e:
        log.error(f'Failed to create replica directory on {disk_path}: {e}')
        raise UnderlyingFilesystemError(
            f'cannot create replica directory on {disk_path}: {e.strerror}',
            -e.errno if e.errno else None) from e


def qualified_name_errors(value: str) -> List[str]:
    """
    Check `value` the way the cluster checks label keys: an optional
    DNS subdomain prefix followed by '/' and a name of at most 63
    characters.

    >>> qualified_name_errors('example.com/ssd')
    []
    >>> len(qualified_name_errors('-ssd'))
    1
    """
    errs: List[str] = []
    parts = value.split('/')
    if len(parts) == 1:
        name = parts[0]
    elif len(parts) == 2:
        prefix, name = parts
        if not prefix:
            errs.append('prefix part must be non-empty')
        elif len(prefix) > DNS1123_SUBDOMAIN_MAX_LENGTH:
            errs.append(f'prefix part must be no more than '
                        f'{DNS1123_SUBDOMAIN_MAX_LENGTH} characters')
        elif not _dns1123_subdomain_re.match(prefix):
            errs.append('prefix part must be a lowercase RFC 1123 subdomain')
    else:
        return ["a qualified name must consist of alphanumeric characters, '-', '_' or '.', "
                "with an optional DNS subdomain prefix and '/'"]

    if not name:
        errs.append('name part must be non-empty')
    elif len(name) > QUALIFIED_NAME_MAX_LENGTH:
        errs.append(f'name part must be no more than {QUALIFIED_NAME_MAX_LENGTH} characters')
    elif not _qualified_name_re.match(name):
        errs.append("name part must consist of alphanumeric characters, '-', '_' or '.', "
                    "and must start and end with an alphanumeric character")
    return errs


def validate_tags(input_tags: Iterable[str]) -> List[str]:
    """
    Normalize a list of disk or node tags.

    Duplicates are dropped and the result is sorted.

    :raises: :exc:`~longhorn.exceptions.InvalidTagError` for the first tag
        that is not a qualified name.
    """
    found = set()
    for tag in input_tags:
        if not isinstance(tag, str):
            raise InvalidTagError(f'tag {tag!r} must be a string')
        if tag in found:
            continue
        errs = qualified_name_errors(tag)
        if errs:
            raise InvalidTagError(
                f'at least one error encountered while validating tag "{tag}": '
                f'{"; ".join(errs)}')
        found.add(tag)
    return sorted(found)
