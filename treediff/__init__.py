# Copyright Red Hat
#
# treediff/__init__.py - Filesystem tree differ package initialisation
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Treediff top-level package.

Compares two filesystem trees and reports added, removed and changed
paths. The comparison interface lives in ``treediff.fsdiffer`` (``FsDiffer`` and
``diff_trees``) and is configured with ``treediff.options.DiffOptions``.
"""
from ._treediff import *  # noqa: F401, F403
from ._treediff import __all__  # noqa: F401

__version__ = "0.1.0"
