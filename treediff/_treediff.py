# Copyright Red Hat
#
# treediff/_treediff.py - Filesystem tree differ global definitions
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level treediff package.
"""
import logging

_log = logging.getLogger("treediff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Treediff debugging subsystem mask
TREEDIFF_DEBUG_WALK = 1
TREEDIFF_DEBUG_COMPARE = 2
TREEDIFF_DEBUG_ENGINE = 4
TREEDIFF_DEBUG_COMMAND = 8
TREEDIFF_DEBUG_ALL = (
    TREEDIFF_DEBUG_WALK
    | TREEDIFF_DEBUG_COMPARE
    | TREEDIFF_DEBUG_ENGINE
    | TREEDIFF_DEBUG_COMMAND
)

# Treediff debugging subsystem names
TREEDIFF_SUBSYSTEM_WALK = "treediff.walk"
TREEDIFF_SUBSYSTEM_COMPARE = "treediff.compare"
TREEDIFF_SUBSYSTEM_ENGINE = "treediff.engine"
TREEDIFF_SUBSYSTEM_COMMAND = "treediff.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    TREEDIFF_DEBUG_WALK: TREEDIFF_SUBSYSTEM_WALK,
    TREEDIFF_DEBUG_COMPARE: TREEDIFF_SUBSYSTEM_COMPARE,
    TREEDIFF_DEBUG_ENGINE: TREEDIFF_SUBSYSTEM_ENGINE,
    TREEDIFF_DEBUG_COMMAND: TREEDIFF_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()

#: Default extended attribute holding the security label.
SECURITY_LABEL_XATTR = "security.selinux"


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``treediff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    treediff_log = logging.getLogger("treediff")

    for handler in treediff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``treediff`` package.

    :param mask: the logical OR of the ``TREEDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > TREEDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid treediff debug mask: {mask}")

    enabled_subsystems = [
        subsystem_name
        for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items()
        if mask & flag
    ]

    treediff_log = logging.getLogger("treediff")
    for handler in treediff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# Treediff exception types
#


class TreeDiffError(Exception):
    """
    Base class for tree differ errors.
    """


class TreeDiffIOError(TreeDiffError):
    """
    An error reading from the file system: a missing or inaccessible
    entry, an unreadable directory, symbolic link or file content.
    """


class TreeDiffPathNormalizationError(TreeDiffError):
    """
    A discovered path cannot be expressed relative to its tree root.
    """


class TreeDiffSecurityLabelError(TreeDiffError):
    """
    A security label extended attribute is present but cannot be decoded,
    or could not be read at all.
    """


class TreeDiffArgumentError(TreeDiffError):
    """
    An invalid argument or argument combination was supplied.
    """


__all__ = [
    # Debug logging
    "TREEDIFF_DEBUG_WALK",
    "TREEDIFF_DEBUG_COMPARE",
    "TREEDIFF_DEBUG_ENGINE",
    "TREEDIFF_DEBUG_COMMAND",
    "TREEDIFF_DEBUG_ALL",
    "TREEDIFF_SUBSYSTEM_WALK",
    "TREEDIFF_SUBSYSTEM_COMPARE",
    "TREEDIFF_SUBSYSTEM_ENGINE",
    "TREEDIFF_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "set_debug_mask",
    "get_debug_mask",
    # Constants
    "SECURITY_LABEL_XATTR",
    # Exceptions
    "TreeDiffError",
    "TreeDiffIOError",
    "TreeDiffPathNormalizationError",
    "TreeDiffSecurityLabelError",
    "TreeDiffArgumentError",
]
