# Copyright Red Hat
#
# treediff/contentdiff.py - Filesystem tree differ content comparison
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Byte-exact content comparison for regular files.
"""
import logging
import os

from treediff import TREEDIFF_SUBSYSTEM_COMPARE, TreeDiffIOError

from .options import DEFAULT_CHUNK_SIZE

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_COMPARE}, **kwargs)


def _open_for_compare(path: str):
    """
    Open ``path`` for binary reading, converting failures to
    ``TreeDiffIOError``.
    """
    try:
        return open(path, "rb")  # pylint: disable=consider-using-with
    except OSError as err:
        raise TreeDiffIOError(
            f"Cannot open '{path}' for reading: {err.strerror or err}"
        ) from err


def compare_content(
    path_a: str, path_b: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> bool:
    """
    Compare the content of two regular files byte for byte.

    File sizes are compared first; files of equal size are then read in
    ``chunk_size`` blocks and the comparison stops at the first block that
    differs.

    :param path_a: The path to the first file.
    :type path_a: ``str``
    :param path_b: The path to the second file.
    :type path_b: ``str``
    :param chunk_size: The size of each read in bytes.
    :type chunk_size: ``int``
    :returns: ``True`` if the files are byte-identical or ``False``
              otherwise.
    :rtype: ``bool``
    :raises: ``TreeDiffIOError`` if either file cannot be opened or read.
    """
    if chunk_size <= 0:
        raise ValueError(f"Invalid chunk size: {chunk_size}")

    with _open_for_compare(path_a) as file_a, _open_for_compare(path_b) as file_b:
        try:
            size_a = os.fstat(file_a.fileno()).st_size
            size_b = os.fstat(file_b.fileno()).st_size
            if size_a != size_b:
                _log_debug_compare(
                    "Content size differs for '%s' and '%s' (%d != %d)",
                    path_a,
                    path_b,
                    size_a,
                    size_b,
                )
                return False

            offset = 0
            for chunk_a in iter(lambda: file_a.read(chunk_size), b""):
                chunk_b = file_b.read(len(chunk_a))
                if chunk_a != chunk_b:
                    _log_debug_compare(
                        "Content differs for '%s' and '%s' in block at offset %d",
                        path_a,
                        path_b,
                        offset,
                    )
                    return False
                offset += len(chunk_a)

            # File A is exhausted: B must be too (it may have grown).
            if file_b.read(1):
                _log_debug_compare(
                    "Content differs for '%s' and '%s': trailing data at %d",
                    path_a,
                    path_b,
                    offset,
                )
                return False
        except OSError as err:
            raise TreeDiffIOError(
                f"Failed to read content of '{path_a}' or '{path_b}': "
                f"{err.strerror or err}"
            ) from err

    return True
