# Copyright Red Hat
#
# treediff/options.py - Filesystem tree differ options
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system tree comparison options.
"""
from dataclasses import dataclass, field, fields
from typing import Tuple, Union
from argparse import Namespace
import logging

from treediff import SECURITY_LABEL_XATTR

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Default read size for content comparisons.
DEFAULT_CHUNK_SIZE = 2**16


@dataclass(frozen=True)
class DiffOptions:
    """
    File system tree comparison options.
    """

    #: Do not compare permission bits
    ignore_permissions: bool = False
    #: Do not compare owner and group
    ignore_ownership: bool = False
    #: Do not read or compare security labels
    ignore_security_labels: bool = False
    #: Only consider content changes
    content_only: bool = False
    #: Compare the content of regular files
    compare_content: bool = True
    #: Relative path patterns to exclude (glob notation)
    exclude_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: Extended attribute holding the security label
    security_label_xattr: str = SECURITY_LABEL_XATTR
    #: Read size used when comparing file content
    content_chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        if self.content_chunk_size <= 0:
            raise ValueError(
                f"Invalid content chunk size: {self.content_chunk_size}"
            )
        if not self.security_label_xattr:
            raise ValueError("Security label attribute name cannot be empty")

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        items = [
            (key, val) if not isinstance(val, tuple) else (key, " ".join(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``. Arguments that are absent or ``None``
        keep their default value.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """

        def get_value(name: str) -> Union[bool, int, str, Tuple[str, ...]]:
            """
            Get a value from ``cmd_args``, converting lists to tuples.

            :param name: The name of the argument.
            :type name: ``str``
            :returns: The argument converted to a tuple if appropriate.
            :rtype: ``Union[bool, int, str, Tuple[str, ...]]``
            """
            attr = getattr(cmd_args, name)
            if isinstance(attr, list):
                return tuple(attr)
            return attr

        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: get_value(name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options
