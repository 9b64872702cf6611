import errno

import pytest

from longhorn.exceptions import (
    AlreadyExistsError,
    DuplicateDiskError,
    Error,
    ErrorKind,
    InvalidOptionError,
    NotFoundError,
    SpecValidationError,
    UnderlyingFilesystemError,
    error_already_exists,
    error_is_not_found,
)


def test_error_str():
    assert str(Error('boom')) == 'boom'
    assert str(Error('boom', 5)) == '[errno 5] boom'
    assert str(SpecValidationError('bad')) == f'[errno {-errno.EINVAL}] bad'


def test_not_found():
    e = NotFoundError('volume vol-1')
    assert str(e).endswith('cannot find volume vol-1')
    assert e.name == 'volume vol-1'
    assert e.kind is ErrorKind.NOT_FOUND
    assert error_is_not_found(e)
    assert not error_already_exists(e)


def test_already_exists():
    e = AlreadyExistsError('disk default-disk-1')
    assert str(e).endswith('disk default-disk-1 already exists')
    assert error_already_exists(e)
    assert not error_is_not_found(e)


@pytest.mark.parametrize("err",
[
    # classification does not look at the message
    Error('cannot find volume'),
    InvalidOptionError('volume already exists'),
    ValueError('cannot find volume'),
    DuplicateDiskError('duplicate disk path /mnt/a'),
    UnderlyingFilesystemError('no such file'),
])
def test_classification_is_structural(err):
    assert not error_is_not_found(err)
    assert not error_already_exists(err)


def test_validation_errors_are_invalid():
    assert DuplicateDiskError('x').kind is ErrorKind.INVALID
    assert DuplicateDiskError('x').errno == -errno.EINVAL
    assert UnderlyingFilesystemError('x').kind is ErrorKind.UNKNOWN
