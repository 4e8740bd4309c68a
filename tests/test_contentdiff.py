# Copyright Red Hat
#
# tests/test_contentdiff.py - Content comparison tests.
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import tempfile
import os

from treediff import TreeDiffIOError
from treediff.contentdiff import compare_content

from ._util import make_tree


class TestCompareContent(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        make_tree(
            self.root,
            {
                "a": b"x" * 1000,
                "b": b"x" * 1000,
                "c": b"x" * 999 + b"y",
                "d": b"x" * 10,
                "empty1": b"",
                "empty2": b"",
            },
        )

    def tearDown(self):
        self._tmp.cleanup()

    def _path(self, name):
        return os.path.join(self.root, name)

    def test_identical(self):
        self.assertTrue(compare_content(self._path("a"), self._path("b")))

    def test_identical_small_chunks(self):
        self.assertTrue(compare_content(self._path("a"), self._path("b"), chunk_size=7))

    def test_same_size_different(self):
        self.assertFalse(compare_content(self._path("a"), self._path("c")))
        self.assertFalse(compare_content(self._path("a"), self._path("c"), chunk_size=64))

    def test_different_size(self):
        self.assertFalse(compare_content(self._path("a"), self._path("d")))

    def test_empty_files(self):
        self.assertTrue(compare_content(self._path("empty1"), self._path("empty2")))

    def test_missing_file_raises(self):
        with self.assertRaises(TreeDiffIOError):
            compare_content(self._path("a"), self._path("missing"))

    def test_unreadable_file_raises(self):
        with patch(
            "treediff.contentdiff.open",
            create=True,
            side_effect=PermissionError(13, "Permission denied"),
        ):
            with self.assertRaises(TreeDiffIOError):
                compare_content(self._path("a"), self._path("b"))

    def test_invalid_chunk_size(self):
        with self.assertRaises(ValueError):
            compare_content(self._path("a"), self._path("b"), chunk_size=0)
