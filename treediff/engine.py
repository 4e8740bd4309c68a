# Copyright Red Hat
#
# treediff/engine.py - Filesystem tree differ diff engine
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system diff engine
"""
from typing import Any, ClassVar, Dict, Iterator, List, Optional
from datetime import datetime
import logging
import json
import os

from treediff import TREEDIFF_SUBSYSTEM_ENGINE, TreeDiffError, TreeDiffIOError

from .changes import ChangeDetector, FieldDiff, FieldName, compare_entries
from .difftypes import DiffType
from .metadata import Entry, EntryKind, read_entry
from .options import DiffOptions
from .treewalk import PathSet

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_ENGINE}, **kwargs)


def display_path(path: str) -> str:
    """
    Return a printable form of the relative path ``path``.

    Names that are not valid UTF-8 reach us from ``os.walk()`` with
    surrogate escapes. Their raw bytes are rendered as ``\\xNN`` escapes
    so that every report format can be encoded as UTF-8.

    :param path: A relative path as returned by the tree walk.
    :type path: ``str``
    :returns: The path with undecodable bytes escaped.
    :rtype: ``str``
    """
    return os.fsencode(path).decode("utf-8", "backslashreplace")


class FsDiffRecord:
    """
    Difference record for one relative path present in both trees whose
    entries are not identical.
    """

    def __init__(
        self,
        path: str,
        diff_type: DiffType,
        changes: Optional[List[FieldDiff]] = None,
        old_entry: Optional[Entry] = None,
        new_entry: Optional[Entry] = None,
    ):
        """
        Initialise a new ``FsDiffRecord`` object.

        :param path: The relative path for this diff record.
        :type path: ``str``
        :param diff_type: The diff type for this diff record.
        :type diff_type: ``DiffType``
        :param changes: The differing fields, in reporting order.
        :type changes: ``Optional[List[FieldDiff]]``
        :param old_entry: The original entry for the comparison.
        :param new_entry: The updated entry for the comparison.
        """
        self.path = path
        self.diff_type = diff_type
        self.changes = list(changes or [])
        self.old_entry = old_entry
        self.new_entry = new_entry

    def __str__(self) -> str:
        """
        Return a string representation of this ``FsDiffRecord`` object.

        :returns: A human readable representation of this ``FsDiffRecord``.
        :rtype: ``str``
        """
        nl = "\n"
        changes = (
            ("\n  changes:\n" + nl.join(f"    {chg}" for chg in self.changes))
            if self.changes
            else ""
        )
        return (
            f"Path: {display_path(self.path)}\n"
            f"  diff_type: {self.diff_type.value}"
            f"{changes}"  # no newline (prefixed if set)
        )

    @property
    def content_changed(self) -> bool:
        """
        ``True`` if the content of this path changed.
        """
        return any(chg.field == FieldName.CONTENT for chg in self.changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``FsDiffRecord`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary with ``name`` and ``differences`` keys.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "name": display_path(self.path),
            "differences": [change.to_list() for change in self.changes],
        }

    def get_change_summary(self) -> str:
        """
        Get human-readable change summary
        """
        if self.diff_type == DiffType.TYPE_CHANGED:
            if self.old_entry is None or self.new_entry is None:
                return "Type changed"
            return (
                f"Type changed from {self.old_entry.kind.value} to "
                f"{self.new_entry.kind.value}"
            )
        if not self.changes:
            return "Changed: symlink target" if self._is_symlink() else "Changed"
        return f"Changed: {', '.join(chg.name for chg in self.changes)}"

    def _is_symlink(self) -> bool:
        entry = self.old_entry or self.new_entry
        return entry is not None and entry.kind == EntryKind.SYMLINK


class FsDiffResults:
    """Container for tree diff results with formatting methods."""

    #: Constant for the names of the string diff formats
    DIFF_FORMATS: ClassVar[List[str]] = [
        "json",
        "short",
        "paths",
    ]

    def __init__(
        self,
        added_paths: PathSet,
        deleted_paths: PathSet,
        records: List[FsDiffRecord],
    ):
        self.added_paths = added_paths
        self.deleted_paths = deleted_paths
        self._records = records

    def __repr__(self) -> str:
        """
        Return a machine-readable representation of this instance.

        :returns: ``FsDiffResults`` constructor style string.
        :rtype: ``str``
        """
        return f"FsDiffResults({self.added_paths!r}, {self.deleted_paths!r}, [...])"

    # List-like interface over the difference records
    def __iter__(self) -> Iterator[FsDiffRecord]:
        """
        Implement iter(self).
        """
        return iter(self._records)

    def __len__(self):
        """
        Implement len(self).
        """
        return len(self._records)

    def __getitem__(self, index: int) -> FsDiffRecord:
        """
        Return self[index]

        :param index: The index to return.
        :type index: ``int``
        """
        return self._records[index]

    @property
    def differences(self) -> List[FsDiffRecord]:
        """
        Return the difference records for common paths that changed.

        :returns: Records in path order.
        :rtype: ``List[FsDiffRecord]``
        """
        return list(self._records)

    @property
    def total_changes(self) -> int:
        """
        Return the total number of added, deleted and changed paths.

        :returns: Count of changes.
        :rtype: ``int``
        """
        return len(self.added_paths) + len(self.deleted_paths) + len(self)

    @property
    def is_identical(self) -> bool:
        """
        ``True`` if the compared trees have no differences.
        """
        return self.total_changes == 0

    @property
    def modified(self) -> List[FsDiffRecord]:
        """
        Return modified changes in this ``FsDiffResults`` instance.

        :returns: Changes with ``DiffType.MODIFIED`` type.
        :rtype: ``List[FsDiffRecord]``
        """
        return [r for r in self._records if r.diff_type == DiffType.MODIFIED]

    @property
    def type_changed(self) -> List[FsDiffRecord]:
        """
        Return type_changed changes in this ``FsDiffResults`` instance.

        :returns: Changes with ``DiffType.TYPE_CHANGED`` type.
        :rtype: ``List[FsDiffRecord]``
        """
        return [r for r in self._records if r.diff_type == DiffType.TYPE_CHANGED]

    # Output formats
    def paths(self) -> List[str]:
        """
        Return every path that differs between the trees: deleted, then
        added, then changed, each group in path order.

        :returns: Path list.
        :rtype: ``List[str]``
        """
        paths = (
            self.deleted_paths.to_list()
            + self.added_paths.to_list()
            + [record.path for record in self._records]
        )
        return [display_path(path) for path in paths]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert these results into the report dictionary.

        :returns: A dictionary with ``deleted_files``, ``added_files`` and
                  ``differences`` keys.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "deleted_files": [display_path(path) for path in self.deleted_paths],
            "added_files": [display_path(path) for path in self.added_paths],
            "differences": [record.to_dict() for record in self._records],
        }

    def json(self, pretty: bool = False) -> str:
        """
        Return JSON representation of the report for this instance.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: JSON string description of file system changes.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)

    def short(self) -> str:
        """
        Return brief summary of the changes for this instance.

        :returns: Brief string description of file system changes.
        :rtype: ``str``
        """
        lines = [f"Removed: {display_path(path)}" for path in self.deleted_paths]
        lines.extend(f"Added: {display_path(path)}" for path in self.added_paths)
        for record in self._records:
            descs = ", ".join(chg.description for chg in record.changes)
            lines.append(
                f"{record.get_change_summary()}: {display_path(record.path)}"
                + (f" ({descs})" if descs else "")
            )
        return "\n".join(lines)


class DiffEngine:
    """
    Core class for generating tree comparisons.
    """

    def __init__(self):
        """
        Initialise a new ``DiffEngine`` instance.
        """
        self.change_detector = ChangeDetector()

    def compare_path(
        self,
        path: str,
        root_a: str,
        root_b: str,
        options: DiffOptions,
    ) -> Optional[FsDiffRecord]:
        """
        Compare the entries at relative ``path`` below ``root_a`` and
        ``root_b``.

        :param path: The relative path to compare.
        :type path: ``str``
        :param root_a: The root of the original tree.
        :type root_a: ``str``
        :param root_b: The root of the new tree.
        :type root_b: ``str``
        :param options: Options to apply to the comparison.
        :type options: ``DiffOptions``
        :returns: A record describing the differences, or ``None`` if the
                  entries are identical.
        :rtype: ``Optional[FsDiffRecord]``
        """
        path_a = os.path.join(root_a, path)
        path_b = os.path.join(root_b, path)

        entry_a = read_entry(path_a, options)
        entry_b = read_entry(path_b, options)

        _log_debug_engine(
            "Comparing path '%s' (A:%s // B:%s)", path, entry_a, entry_b
        )

        result = compare_entries(
            entry_a,
            entry_b,
            path_a,
            path_b,
            options=options,
            detector=self.change_detector,
        )
        if result.identical:
            return None

        diff_type = DiffType.TYPE_CHANGED if result.type_changed else DiffType.MODIFIED
        return FsDiffRecord(path, diff_type, result.changes, entry_a, entry_b)

    def compute_diff(
        self,
        root_a: str,
        tree_a: PathSet,
        root_b: str,
        tree_b: PathSet,
        options: Optional[DiffOptions] = None,
    ) -> FsDiffResults:
        """
        Main diff computation logic.

        Any error reading either tree aborts the whole comparison: no
        partial results are returned.

        :param root_a: The root of the original tree.
        :type root_a: ``str``
        :param tree_a: The enumerated paths of the original tree.
        :type tree_a: ``PathSet``
        :param root_b: The root of the new tree.
        :type root_b: ``str``
        :param tree_b: The enumerated paths of the new tree.
        :type tree_b: ``PathSet``
        :param options: Options to apply to the diff generation.
        :type options: ``DiffOptions``
        :returns: An ``FsDiffResults`` instance.
        :rtype: ``FsDiffResults``
        """
        if options is None:
            options = DiffOptions()

        start_time = datetime.now()

        deleted = tree_a - tree_b
        added = tree_b - tree_a
        common = tree_a & tree_b

        _log_debug(
            "Starting compute_diff with %d deleted, %d added, %d common paths",
            len(deleted),
            len(added),
            len(common),
        )

        if options.ignore_permissions:
            _log_debug("Ignoring permission changes")
        if options.ignore_ownership:
            _log_debug("Ignoring ownership changes")
        if options.ignore_security_labels:
            _log_debug("Ignoring security label changes")
        if options.content_only:
            _log_debug("Checking content changes only")

        records: List[FsDiffRecord] = []
        for path in common:
            try:
                record = self.compare_path(path, root_a, root_b, options)
            except TreeDiffError as err:
                _log_error("Failed on %s: %s", path, err)
                raise
            except OSError as err:
                _log_error("Failed on %s: %s", path, err)
                raise TreeDiffIOError(
                    f"Failed to compare '{path}': {err.strerror or err}"
                ) from err
            if record is not None:
                _log_debug_engine("Recorded %s for '%s'", record.diff_type.value, path)
                records.append(record)

        end_time = datetime.now()
        _log_info(
            "Compared %d common paths in %s (%d deleted, %d added, %d changed)",
            len(common),
            end_time - start_time,
            len(deleted),
            len(added),
            len(records),
        )
        return FsDiffResults(added, deleted, records)
