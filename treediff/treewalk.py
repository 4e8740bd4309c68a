# Copyright Red Hat
#
# treediff/treewalk.py - Filesystem tree differ tree walk
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree walking support for treediff.
"""
from typing import Iterable, Iterator, Optional, Tuple
from pathlib import PurePath, PurePosixPath
from fnmatch import fnmatch
from datetime import datetime
import itertools
import logging
import stat
import os

from treediff import (
    TREEDIFF_SUBSYSTEM_WALK,
    TreeDiffIOError,
    TreeDiffPathNormalizationError,
)

from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_walk(msg, *args, **kwargs):
    """A wrapper for walk subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_WALK}, **kwargs)


def _normalize(path: str) -> str:
    """
    Normalize a relative path string.

    Redundant separators and ``.`` components are removed. Absolute
    paths and paths that name the root itself cannot be used as a
    relative path.

    :param path: The relative path to normalize.
    :type path: ``str``
    :returns: The normalized ``/``-separated path.
    :rtype: ``str``
    :raises: ``TreeDiffPathNormalizationError`` for an absolute or empty
             path.
    """
    pure = PurePosixPath(path)
    if pure.is_absolute() or not pure.parts:
        raise TreeDiffPathNormalizationError(f"Not a relative path: '{path}'")
    return pure.as_posix()


def _sort_key(path: str) -> Tuple[str, ...]:
    """Order paths component by component."""
    return PurePosixPath(path).parts


class PathSet:
    """
    An immutable, ordered set of relative paths.

    Iteration always yields paths in lexicographic order of their
    component sequences, so that ``a/b`` sorts before ``a-b``.
    """

    def __init__(self, paths: Iterable[str] = ()):
        """
        Initialise a new ``PathSet`` from an iterable of relative paths.

        :param paths: The relative paths to store.
        :type paths: ``Iterable[str]``
        """
        members = frozenset(_normalize(path) for path in paths)
        self._members = members
        self._paths = tuple(sorted(members, key=_sort_key))

    def __repr__(self) -> str:
        return f"PathSet({list(self._paths)!r})"

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path) -> bool:
        if not isinstance(path, str):
            return False
        try:
            return _normalize(path) in self._members
        except TreeDiffPathNormalizationError:
            return False

    def __eq__(self, other) -> bool:
        if not isinstance(other, PathSet):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)

    def __sub__(self, other: "PathSet") -> "PathSet":
        """
        Return the paths in this set that are not in ``other``.
        """
        if not isinstance(other, PathSet):
            return NotImplemented
        # pylint: disable=protected-access
        return PathSet(path for path in self._paths if path not in other._members)

    def __and__(self, other: "PathSet") -> "PathSet":
        """
        Return the paths present in both this set and ``other``.
        """
        if not isinstance(other, PathSet):
            return NotImplemented
        # pylint: disable=protected-access
        return PathSet(path for path in self._paths if path in other._members)

    def to_list(self):
        """
        Return the paths in this set as an ordered list.

        :returns: The ordered list of relative paths.
        :rtype: ``List[str]``
        """
        return list(self._paths)


def relative_path(path: str, root: str) -> str:
    """
    Express ``path`` relative to ``root``.

    :param path: A path discovered below ``root``.
    :type path: ``str``
    :param root: The tree root.
    :type root: ``str``
    :returns: The normalized relative path.
    :rtype: ``str``
    :raises: ``TreeDiffPathNormalizationError`` if ``path`` is not below
             ``root``.
    """
    try:
        rel = PurePath(path).relative_to(PurePath(root))
    except ValueError as err:
        raise TreeDiffPathNormalizationError(
            f"Path '{path}' is not relative to root '{root}'"
        ) from err
    return _normalize(rel.as_posix())


class TreeWalker:
    """
    Simple file system tree walker for comparisons.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``TreeWalker`` object.

        :param options: Options to control this ``TreeWalker`` instance.
        :type options: ``DiffOptions``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.exclude_patterns: Tuple[str, ...] = tuple(self.options.exclude_patterns)

    def _is_excluded(self, rel_path: str) -> bool:
        return any(fnmatch(rel_path, pat) for pat in self.exclude_patterns)

    def walk_tree(self, root: str) -> PathSet:
        """
        Walk the file system tree below ``root`` and return the relative
        paths of every entry found.

        The root itself is not included. Directories are descended into;
        symbolic links are recorded but never followed. Any error reading
        the root or a directory below it aborts the walk.

        :param root: The root directory of the tree to walk.
        :type root: ``str``
        :returns: The ordered set of relative paths below ``root``.
        :rtype: ``PathSet``
        :raises: ``TreeDiffIOError`` if the root or a directory below it
                 cannot be read, ``TreeDiffPathNormalizationError`` if a
                 discovered path cannot be made relative to ``root``.
        """
        root = os.fspath(root)
        try:
            root_stat = os.stat(root)
        except OSError as err:
            raise TreeDiffIOError(
                f"Cannot access tree root '{root}': {err.strerror or err}"
            ) from err
        if not stat.S_ISDIR(root_stat.st_mode):
            raise TreeDiffIOError(f"Tree root '{root}' is not a directory")

        def _walk_error(err: OSError):
            raise TreeDiffIOError(
                f"Cannot read directory '{err.filename}': {err.strerror or err}"
            ) from err

        _log_info("Gathering paths from %s", root)
        start_time = datetime.now()

        paths = []
        excluded = 0
        for dirpath, dirnames, filenames in os.walk(
            root, onerror=_walk_error, followlinks=False
        ):
            for name in itertools.chain(dirnames, filenames):
                rel_path = relative_path(os.path.join(dirpath, name), root)
                if self._is_excluded(rel_path):
                    _log_debug_walk("Excluding '%s'", rel_path)
                    excluded += 1
                    continue
                _log_debug_walk("Found '%s'", rel_path)
                paths.append(rel_path)

        path_set = PathSet(paths)
        end_time = datetime.now()
        _log_info(
            "Found %d paths in %s in %s (excluded %d)",
            len(path_set),
            root,
            end_time - start_time,
            excluded,
        )
        return path_set


def enumerate_tree(root: str, options: Optional[DiffOptions] = None) -> PathSet:
    """
    Enumerate the tree below ``root`` into a ``PathSet``.

    :param root: The root directory of the tree to walk.
    :type root: ``str``
    :param options: Options controlling path exclusion.
    :type options: ``Optional[DiffOptions]``
    :returns: The ordered set of relative paths below ``root``.
    :rtype: ``PathSet``
    """
    return TreeWalker(options).walk_tree(root)
