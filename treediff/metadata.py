# Copyright Red Hat
#
# treediff/metadata.py - Filesystem tree differ entry metadata
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system entry metadata.

Reads the comparison-relevant attributes of a single file system entry
into one of three immutable metadata types: ``FileMetadata``,
``DirMetadata`` or ``SymlinkMetadata``. Symbolic links are never
followed.
"""
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum
import logging
import errno
import stat
import os

from treediff import (
    TREEDIFF_SUBSYSTEM_COMPARE,
    TreeDiffIOError,
    TreeDiffSecurityLabelError,
)

from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_COMPARE}, **kwargs)


#: errno values meaning "attribute not set" (ENOATTR is the BSD spelling).
_NO_XATTR_ERRNOS = tuple(
    getattr(errno, name) for name in ("ENODATA", "ENOATTR") if hasattr(errno, name)
)


class EntryKind(Enum):
    """
    Enum for the kinds of file system entry that are compared.
    """

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FileMetadata:
    """
    Metadata for a regular file, or any other non-directory, non-symlink
    entry (devices, sockets and FIFOs are treated as opaque files).
    """

    #: File mode returned by ``lstat()``, including file type bits
    mode: int
    #: File owner
    uid: int
    #: File group
    gid: int
    #: File size in bytes
    size: int
    #: Security label or ``None`` if the entry has no label
    selinux_label: Optional[str] = None

    kind = EntryKind.FILE

    @property
    def is_regular(self) -> bool:
        """
        True if this entry is a regular file whose content may be read.

        :returns: ``True`` for regular files or ``False`` for other
                  (special) file types.
        :rtype: ``bool``
        """
        return stat.S_ISREG(self.mode)


@dataclass(frozen=True)
class DirMetadata:
    """
    Metadata for a directory.
    """

    #: Directory mode returned by ``lstat()``, including file type bits
    mode: int
    #: Directory owner
    uid: int
    #: Directory group
    gid: int
    #: Security label or ``None`` if the entry has no label
    selinux_label: Optional[str] = None

    kind = EntryKind.DIRECTORY


@dataclass(frozen=True)
class SymlinkMetadata:
    """
    Metadata for a symbolic link: only the literal link target is of
    interest.
    """

    #: The unresolved symbolic link target
    target: str

    kind = EntryKind.SYMLINK


Entry = Union[FileMetadata, DirMetadata, SymlinkMetadata]


def read_security_label(path: str, name: str) -> Optional[str]:
    """
    Read the security label extended attribute ``name`` of ``path``
    without following symbolic links.

    :param path: The path to examine.
    :type path: ``str``
    :param name: The extended attribute name, e.g. ``security.selinux``.
    :type name: ``str``
    :returns: The decoded label, or ``None`` if the attribute is not set.
    :rtype: ``Optional[str]``
    :raises: ``TreeDiffSecurityLabelError`` if the attribute cannot be
             read or is not valid UTF-8.
    """
    try:
        value = os.getxattr(path, name, follow_symlinks=False)
    except OSError as err:
        if err.errno in _NO_XATTR_ERRNOS:
            return None
        raise TreeDiffSecurityLabelError(
            f"Failed to read security label '{name}' from '{path}': "
            f"{err.strerror or err}"
        ) from err

    try:
        # Labels are commonly stored with a terminating NUL.
        return value.rstrip(b"\x00").decode("utf-8")
    except UnicodeDecodeError as err:
        raise TreeDiffSecurityLabelError(
            f"Security label '{name}' of '{path}' is not valid UTF-8"
        ) from err


def read_entry(path: str, options: Optional[DiffOptions] = None) -> Entry:
    """
    Read the metadata for the file system entry at ``path``.

    The entry itself is examined: a terminal symbolic link is reported as
    a ``SymlinkMetadata`` carrying its literal target and is not
    resolved.

    :param path: The path to examine.
    :type path: ``str``
    :param options: Options controlling security label handling.
    :type options: ``Optional[DiffOptions]``
    :returns: The metadata for ``path``.
    :rtype: ``Entry``
    :raises: ``TreeDiffIOError`` if the entry does not exist or cannot be
             examined, ``TreeDiffSecurityLabelError`` if its security label
             cannot be read.
    """
    options = options or DiffOptions()

    try:
        path_stat = os.lstat(path)
    except OSError as err:
        raise TreeDiffIOError(
            f"Cannot stat '{path}': {err.strerror or err}"
        ) from err

    if stat.S_ISLNK(path_stat.st_mode):
        try:
            target = os.readlink(path)
        except OSError as err:
            raise TreeDiffIOError(
                f"Cannot read symbolic link '{path}': {err.strerror or err}"
            ) from err
        _log_debug_compare("Read symlink '%s' -> '%s'", path, target)
        return SymlinkMetadata(target)

    label = None
    if not options.ignore_security_labels:
        label = read_security_label(path, options.security_label_xattr)

    if stat.S_ISDIR(path_stat.st_mode):
        entry = DirMetadata(
            mode=path_stat.st_mode,
            uid=path_stat.st_uid,
            gid=path_stat.st_gid,
            selinux_label=label,
        )
    else:
        entry = FileMetadata(
            mode=path_stat.st_mode,
            uid=path_stat.st_uid,
            gid=path_stat.st_gid,
            size=path_stat.st_size,
            selinux_label=label,
        )
    _log_debug_compare("Read %s metadata for '%s': %s", entry.kind.value, path, entry)
    return entry

