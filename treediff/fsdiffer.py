# Copyright Red Hat
#
# treediff/fsdiffer.py - Filesystem tree differ top-level interface
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level treediff interface.
"""
from typing import Optional
import logging
import os

from .engine import DiffEngine, FsDiffResults
from .options import DiffOptions
from .treewalk import TreeWalker

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class FsDiffer:
    """
    Top-level interface for generating file system tree comparisons.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``FsDiffer`` to compute file system differences.

        :param options: Options to control this ``FsDiffer`` instance.
        :type options: ``DiffOptions``
        """
        options = options or DiffOptions()
        self.options: DiffOptions = options
        self.tree_walker: TreeWalker = TreeWalker(options)
        self.diff_engine: DiffEngine = DiffEngine()

    def compare_roots(self, root_a: str, root_b: str) -> FsDiffResults:
        """
        Compare two file system trees and return diff results.

        :param root_a: The root of the original (left hand) tree.
        :type root_a: ``str``
        :param root_b: The root of the new (right hand) tree.
        :type root_b: ``str``
        :returns: The diff results for the comparison.
        :rtype: ``FsDiffResults``
        :raises: ``TreeDiffError`` if either tree cannot be read.
        """
        root_a = os.fspath(root_a)
        root_b = os.fspath(root_b)
        _log_debug(
            "Comparing '%s' to '%s' with options:\n%s", root_a, root_b, self.options
        )

        tree_a = self.tree_walker.walk_tree(root_a)
        tree_b = self.tree_walker.walk_tree(root_b)

        return self.diff_engine.compute_diff(
            root_a, tree_a, root_b, tree_b, self.options
        )


def diff_trees(
    root_a: str, root_b: str, options: Optional[DiffOptions] = None
) -> FsDiffResults:
    """
    Compare the trees at ``root_a`` (original) and ``root_b`` (new).

    :param root_a: The root of the original tree.
    :type root_a: ``str``
    :param root_b: The root of the new tree.
    :type root_b: ``str``
    :param options: Options to control the comparison.
    :type options: ``Optional[DiffOptions]``
    :returns: The diff results for the comparison.
    :rtype: ``FsDiffResults``
    """
    return FsDiffer(options).compare_roots(root_a, root_b)
