# Copyright Red Hat
#
# tests/_util.py - Filesystem tree differ test utilities.
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
import errno
import stat
import os

from treediff.metadata import DirMetadata, FileMetadata, SymlinkMetadata
from treediff.options import DiffOptions


def make_tree(root, entries):
    """
    Populate ``root`` from a mapping of relative path to entry description:

    * ``bytes`` or ``str``: a regular file with that content,
    * ``None``: a directory,
    * ``("symlink", target)``: a symbolic link to ``target``.

    Parent directories are created as needed.
    """
    for rel_path, value in entries.items():
        path = os.path.join(root, rel_path)
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if value is None:
            os.makedirs(path, exist_ok=True)
        elif isinstance(value, tuple) and value[0] == "symlink":
            os.symlink(value[1], path)
        else:
            data = value.encode("utf8") if isinstance(value, str) else value
            with open(path, "wb") as fp:
                fp.write(data)


def security_labels_supported(path):
    """
    Return ``True`` if reading the SELinux label extended attribute works
    (or reports a missing attribute) on the file system holding ``path``.
    """
    try:
        os.getxattr(path, "security.selinux", follow_symlinks=False)
    except OSError as err:
        return err.errno == errno.ENODATA
    return True


def tree_options(path, **kwargs):
    """
    Return ``DiffOptions`` suitable for comparing real trees below
    ``path``: security labels are skipped where the file system cannot
    report them.
    """
    kwargs.setdefault("ignore_security_labels", not security_labels_supported(path))
    return DiffOptions(**kwargs)


def make_file(mode=0o644, uid=1000, gid=1000, size=1024, label=None):
    """Factory for regular file metadata."""
    if not stat.S_IFMT(mode):
        mode |= stat.S_IFREG
    return FileMetadata(mode=mode, uid=uid, gid=gid, size=size, selinux_label=label)


def make_dir(mode=0o755, uid=1000, gid=1000, label=None):
    """Factory for directory metadata."""
    return DirMetadata(
        mode=mode | stat.S_IFDIR, uid=uid, gid=gid, selinux_label=label
    )


def make_symlink(target="/target/path"):
    """Factory for symbolic link metadata."""
    return SymlinkMetadata(target)
