# Copyright Red Hat
#
# treediff/difftypes.py - Filesystem tree differ diff types
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system diff types
"""
from enum import Enum


class DiffType(Enum):
    """
    Enum for the kinds of difference recorded for a path present in both
    trees.
    """

    MODIFIED = "modified"
    TYPE_CHANGED = "type_changed"
