# Copyright Red Hat
#
# treediff/changes.py - Filesystem tree differ change detection
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system entry comparison and field-level change detection.
"""
from typing import List, Optional
from enum import Enum
import logging
import stat

from treediff import TREEDIFF_SUBSYSTEM_COMPARE

from .contentdiff import compare_content
from .metadata import Entry, EntryKind
from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_COMPARE}, **kwargs)


#: Value reported for a content change: file data is never embedded.
CONTENT_DIFFERENT = "different"


class FieldName(Enum):
    """
    Enum of the entry fields that may be reported as different.
    """

    TYPE = "type"
    MODE = "mode"
    UID = "uid"
    GID = "gid"
    SIZE = "size"
    SELINUX_LABEL = "selinux_label"
    CONTENT = "content"


def format_mode(mode: int, full: bool = False) -> str:
    """
    Format a file mode as an octal string.

    Regular files and directories are shown as permission bits only
    (``"644"``); other file types keep their file type bits
    (``"10644"`` for a FIFO) so that a change of special file type is
    visible in the reported value.

    :param mode: A mode value as returned by ``lstat()``.
    :type mode: ``int``
    :param full: Always include the file type bits.
    :type full: ``bool``
    :returns: The octal string form of ``mode``.
    :rtype: ``str``
    """
    if not full and (stat.S_ISREG(mode) or stat.S_ISDIR(mode)):
        return f"{stat.S_IMODE(mode):o}"
    return f"{mode:o}"


def _format_label(label: Optional[str]) -> str:
    return label if label is not None else ""


class FieldDiff:
    """
    Representation of a single differing entry field.
    """

    def __init__(
        self,
        field: FieldName,
        old_value: str,
        new_value: Optional[str] = None,
    ):
        """
        Initialise a new ``FieldDiff`` object.

        :param field: The field that differs.
        :type field: ``FieldName``
        :param old_value: The value in the original tree, as text.
        :type old_value: ``str``
        :param new_value: The value in the new tree, as text.
        :type new_value: ``Optional[str]``
        """
        self.field = field
        self.old_value = old_value
        self.new_value = new_value

    def __eq__(self, other):
        if not isinstance(other, FieldDiff):
            return NotImplemented
        return (self.field, self.old_value, self.new_value) == (
            other.field,
            other.old_value,
            other.new_value,
        )

    def __repr__(self):
        return (
            f"FieldDiff({self.field!r}, {self.old_value!r}, {self.new_value!r})"
        )

    def __str__(self) -> str:
        """
        Return a string representation of this ``FieldDiff`` object.

        :returns: A human readable string representation of this instance.
        :rtype: str
        """
        return self.description

    @property
    def name(self) -> str:
        """
        The reported field name.
        """
        return self.field.value

    @property
    def description(self) -> str:
        """
        A short human readable description of this change.
        """
        if self.field == FieldName.CONTENT:
            return "content changed"
        if self.new_value is None:
            return f"{self.name} changed from '{self.old_value}'"
        return f"{self.name} changed from '{self.old_value}' to '{self.new_value}'"

    def to_list(self) -> List[str]:
        """
        Convert this ``FieldDiff`` into the ``[field_name, original_value]``
        pair used in reports.

        :returns: A two element list.
        :rtype: ``List[str]``
        """
        return [self.name, self.old_value]


class EntryComparison:
    """
    The outcome of comparing the two entries found at one relative path.
    """

    def __init__(
        self,
        identical: bool,
        changes: Optional[List[FieldDiff]] = None,
        type_changed: bool = False,
    ):
        #: ``True`` if no difference was found
        self.identical = identical
        #: The differing fields in reporting order
        self.changes = changes or []
        #: ``True`` if the two entries are of different kinds
        self.type_changed = type_changed

    def __repr__(self):
        return (
            f"EntryComparison({self.identical!r}, {self.changes!r}, "
            f"type_changed={self.type_changed!r})"
        )


class ChangeDetector:
    """
    Class to detect and list field changes between two entries.
    """

    def detect_type_change(self, old_entry: Entry, new_entry: Entry) -> List[FieldDiff]:
        """
        Detect a change of entry kind.

        :param old_entry: The original entry.
        :type old_entry: ``Entry``
        :param new_entry: The updated entry.
        :type new_entry: ``Entry``
        :returns: An empty list, or a single ``FieldName.TYPE`` change.
        :rtype: ``List[FieldDiff]``
        """
        if old_entry.kind == new_entry.kind:
            return []
        _log_debug_compare(
            "Detected type change (%s != %s)",
            old_entry.kind.value,
            new_entry.kind.value,
        )
        return [
            FieldDiff(FieldName.TYPE, old_entry.kind.value, new_entry.kind.value)
        ]

    # pylint: disable=too-many-branches
    def detect_changes(
        self,
        old_entry: Entry,
        new_entry: Entry,
        options: DiffOptions,
    ) -> List[FieldDiff]:
        """
        Detect metadata changes between two entries of the same kind.

        Fields are always examined in the order mode, uid, gid, size
        (files only), selinux_label. Symbolic links have no comparable
        fields and always return an empty list.

        :param old_entry: The original entry.
        :type old_entry: ``Entry``
        :param new_entry: The updated entry.
        :type new_entry: ``Entry``
        :param options: Change detection options.
        :type options: ``DiffOptions``
        :returns: A list of changed fields.
        :rtype: ``List[FieldDiff]``
        """
        if old_entry.kind != new_entry.kind:
            raise ValueError(
                f"Cannot compare fields of {old_entry.kind.value} "
                f"and {new_entry.kind.value}"
            )

        changes = []

        if old_entry.kind == EntryKind.SYMLINK or options.content_only:
            return changes

        if not options.ignore_permissions and old_entry.mode != new_entry.mode:
            _log_debug_compare(
                "Detected mode change (0o%o != 0o%o)", old_entry.mode, new_entry.mode
            )
            # A file type change must show in the original value.
            full = stat.S_IFMT(old_entry.mode) != stat.S_IFMT(new_entry.mode)
            changes.append(
                FieldDiff(
                    FieldName.MODE,
                    format_mode(old_entry.mode, full=full),
                    format_mode(new_entry.mode, full=full),
                )
            )

        if not options.ignore_ownership:
            if old_entry.uid != new_entry.uid:
                _log_debug_compare(
                    "Detected uid change (%d != %d)", old_entry.uid, new_entry.uid
                )
                changes.append(
                    FieldDiff(FieldName.UID, str(old_entry.uid), str(new_entry.uid))
                )
            if old_entry.gid != new_entry.gid:
                _log_debug_compare(
                    "Detected gid change (%d != %d)", old_entry.gid, new_entry.gid
                )
                changes.append(
                    FieldDiff(FieldName.GID, str(old_entry.gid), str(new_entry.gid))
                )

        if old_entry.kind == EntryKind.FILE and old_entry.size != new_entry.size:
            _log_debug_compare(
                "Detected size change (%d != %d)", old_entry.size, new_entry.size
            )
            changes.append(
                FieldDiff(FieldName.SIZE, str(old_entry.size), str(new_entry.size))
            )

        if (
            not options.ignore_security_labels
            and old_entry.selinux_label != new_entry.selinux_label
        ):
            _log_debug_compare(
                "Detected security label change ('%s' != '%s')",
                old_entry.selinux_label,
                new_entry.selinux_label,
            )
            changes.append(
                FieldDiff(
                    FieldName.SELINUX_LABEL,
                    _format_label(old_entry.selinux_label),
                    _format_label(new_entry.selinux_label),
                )
            )

        return changes


def compare_entries(
    old_entry: Entry,
    new_entry: Entry,
    old_path: str,
    new_path: str,
    options: Optional[DiffOptions] = None,
    detector: Optional[ChangeDetector] = None,
) -> EntryComparison:
    """
    Compare two entries found at the same relative path.

    Entries of different kinds are never identical and are reported with
    a single ``type`` change. Symbolic links are identical iff their
    targets are equal and never carry field changes. Directories and
    files are compared field by field; for two regular files the content
    is compared last and reported as ``("content", "different")``.

    :param old_entry: The entry from the original tree.
    :type old_entry: ``Entry``
    :param new_entry: The entry from the new tree.
    :type new_entry: ``Entry``
    :param old_path: The full path of ``old_entry``, used to read content.
    :type old_path: ``str``
    :param new_path: The full path of ``new_entry``, used to read content.
    :type new_path: ``str``
    :param options: Comparison options.
    :type options: ``Optional[DiffOptions]``
    :param detector: An optional ``ChangeDetector`` to use.
    :type detector: ``Optional[ChangeDetector]``
    :returns: The comparison outcome.
    :rtype: ``EntryComparison``
    """
    options = options or DiffOptions()
    detector = detector or ChangeDetector()

    type_changes = detector.detect_type_change(old_entry, new_entry)
    if type_changes:
        return EntryComparison(False, type_changes, type_changed=True)

    if old_entry.kind == EntryKind.SYMLINK:
        if old_entry.target != new_entry.target:
            _log_debug_compare(
                "Detected symlink target change ('%s' != '%s')",
                old_entry.target,
                new_entry.target,
            )
            return EntryComparison(False)
        return EntryComparison(True)

    changes = detector.detect_changes(old_entry, new_entry, options)

    if (
        old_entry.kind == EntryKind.FILE
        and options.compare_content
        and old_entry.is_regular
        and new_entry.is_regular
        and not compare_content(old_path, new_path, options.content_chunk_size)
    ):
        _log_debug_compare("Detected content change for '%s'", old_path)
        changes.append(FieldDiff(FieldName.CONTENT, CONTENT_DIFFERENT))

    return EntryComparison(not changes, changes)
