import enum
import errno as _errno
from typing import Optional


class ErrorKind(enum.Enum):
    """ coarse classification carried by every `Error` """
    NOT_FOUND = 'not-found'
    ALREADY_EXISTS = 'already-exists'
    INVALID = 'invalid'
    UNKNOWN = 'unknown'


class Error(Exception):
    """ `Error` class, derived from `Exception` """
    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, errno: Optional[int] = None) -> None:
        super(Exception, self).__init__(message)
        self.errno = errno

    def __str__(self) -> str:
        msg = super(Exception, self).__str__()
        if self.errno is None:
            return msg
        return '[errno {0}] {1}'.format(self.errno, msg)


class SpecValidationError(Error):
    """
    Raised for any input that cannot be turned into a valid spec. The
    subclasses below tell the individual failures apart.
    """
    kind = ErrorKind.INVALID

    def __init__(self,
                 msg: str,
                 errno: int = -_errno.EINVAL):
        super(SpecValidationError, self).__init__(msg, errno)


class ParseError(SpecValidationError):
    """ malformed JSON or a JSON document of the wrong shape """
    pass


class InvalidDiskError(SpecValidationError):
    """ a disk entry is missing a required field """
    pass


class DuplicateDiskError(SpecValidationError):
    """ the same disk path is configured twice """
    pass


class DuplicateFilesystemError(SpecValidationError):
    """ two disk paths are backed by the same filesystem """
    pass


class DuplicateNameError(SpecValidationError):
    """ two disks resolve to the same name """
    pass


class InvalidReservationError(SpecValidationError):
    """ storageReserved is outside of [0, storageMaximum] """
    pass


class InvalidTagError(SpecValidationError):
    """ a disk or node tag is not a qualified name """
    pass


class InvalidOptionError(SpecValidationError):
    """ a scalar configuration value is not legal """
    pass


class UnknownKindError(SpecValidationError):
    """ a name or label set was requested for an unknown resource kind """
    pass


class UnderlyingFilesystemError(Error):
    """ the filesystem metadata of a disk path could not be read """
    pass


class NotFoundError(Error):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, name: str) -> None:
        super(NotFoundError, self).__init__(f'cannot find {name}', -_errno.ENOENT)
        self.name = name


class AlreadyExistsError(Error):
    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, name: str) -> None:
        super(AlreadyExistsError, self).__init__(f'{name} already exists', -_errno.EEXIST)
        self.name = name


def _error_kind(err: BaseException) -> ErrorKind:
    kind = getattr(err, 'kind', None)
    if isinstance(kind, ErrorKind):
        return kind
    return ErrorKind.UNKNOWN


def error_is_not_found(err: BaseException) -> bool:
    return _error_kind(err) is ErrorKind.NOT_FOUND


def error_already_exists(err: BaseException) -> bool:
    return _error_kind(err) is ErrorKind.ALREADY_EXISTS
