# Copyright Red Hat
#
# tests/test_changes.py - Entry comparison tests.
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import stat

from treediff.changes import (
    CONTENT_DIFFERENT,
    ChangeDetector,
    FieldDiff,
    FieldName,
    compare_entries,
    format_mode,
)
from treediff.options import DiffOptions

from ._util import make_dir, make_file, make_symlink

_COMPARE_CONTENT = "treediff.changes.compare_content"


def _names(changes):
    return [chg.name for chg in changes]


class TestFormatMode(unittest.TestCase):
    def test_regular_and_dir(self):
        self.assertEqual(format_mode(stat.S_IFREG | 0o644), "644")
        self.assertEqual(format_mode(stat.S_IFDIR | 0o755), "755")
        self.assertEqual(format_mode(stat.S_IFREG | 0o4755), "4755")

    def test_special_keeps_type_bits(self):
        self.assertEqual(format_mode(stat.S_IFIFO | 0o644), "10644")

    def test_full_mode(self):
        self.assertEqual(format_mode(stat.S_IFREG | 0o644, full=True), "100644")
        self.assertEqual(format_mode(stat.S_IFDIR | 0o755, full=True), "40755")


class TestFieldDiff(unittest.TestCase):
    def test_to_list(self):
        chg = FieldDiff(FieldName.MODE, "644", "600")
        self.assertEqual(chg.to_list(), ["mode", "644"])
        self.assertEqual(chg.name, "mode")

    def test_description(self):
        self.assertEqual(
            str(FieldDiff(FieldName.UID, "0", "1000")),
            "uid changed from '0' to '1000'",
        )
        self.assertEqual(
            FieldDiff(FieldName.CONTENT, CONTENT_DIFFERENT).description,
            "content changed",
        )

    def test_equality(self):
        self.assertEqual(
            FieldDiff(FieldName.GID, "1", "2"), FieldDiff(FieldName.GID, "1", "2")
        )
        self.assertNotEqual(
            FieldDiff(FieldName.GID, "1", "2"), FieldDiff(FieldName.UID, "1", "2")
        )


class TestChangeDetector(unittest.TestCase):
    def setUp(self):
        self.detector = ChangeDetector()
        self.opts = DiffOptions()

    def test_no_changes(self):
        changes = self.detector.detect_changes(make_file(), make_file(), self.opts)
        self.assertEqual(changes, [])

    def test_mode_change(self):
        changes = self.detector.detect_changes(
            make_file(mode=0o644), make_file(mode=0o600), self.opts
        )
        self.assertEqual(changes, [FieldDiff(FieldName.MODE, "644", "600")])

    def test_file_field_order(self):
        old = make_file(mode=0o644, uid=0, gid=0, size=1, label="a_t")
        new = make_file(mode=0o600, uid=1, gid=1, size=2, label="b_t")
        changes = self.detector.detect_changes(old, new, self.opts)
        self.assertEqual(_names(changes), ["mode", "uid", "gid", "size", "selinux_label"])
        self.assertEqual(
            [chg.old_value for chg in changes], ["644", "0", "0", "1", "a_t"]
        )

    def test_dir_field_order(self):
        old = make_dir(mode=0o755, uid=0, gid=0, label="a_t")
        new = make_dir(mode=0o700, uid=1, gid=1, label="b_t")
        changes = self.detector.detect_changes(old, new, self.opts)
        self.assertEqual(_names(changes), ["mode", "uid", "gid", "selinux_label"])

    def test_field_order_is_fixed(self):
        # Only gid and label change: relative order still follows declaration.
        old = make_file(gid=1, label="x")
        new = make_file(gid=2, label="y")
        changes = self.detector.detect_changes(old, new, self.opts)
        self.assertEqual(_names(changes), ["gid", "selinux_label"])

    def test_label_absent_both(self):
        changes = self.detector.detect_changes(make_file(), make_file(), self.opts)
        self.assertEqual(changes, [])

    def test_label_equal(self):
        changes = self.detector.detect_changes(
            make_file(label="etc_t"), make_file(label="etc_t"), self.opts
        )
        self.assertEqual(changes, [])

    def test_label_added(self):
        changes = self.detector.detect_changes(
            make_file(), make_file(label="etc_t"), self.opts
        )
        self.assertEqual(changes, [FieldDiff(FieldName.SELINUX_LABEL, "", "etc_t")])

    def test_ignore_options(self):
        old = make_file(mode=0o644, uid=0, gid=0, size=1, label="a_t")
        new = make_file(mode=0o600, uid=1, gid=1, size=2, label="b_t")
        opts = DiffOptions(
            ignore_permissions=True,
            ignore_ownership=True,
            ignore_security_labels=True,
        )
        self.assertEqual(_names(self.detector.detect_changes(old, new, opts)), ["size"])

    def test_content_only_skips_metadata(self):
        old = make_file(mode=0o644, size=1)
        new = make_file(mode=0o600, size=2)
        opts = DiffOptions(content_only=True)
        self.assertEqual(self.detector.detect_changes(old, new, opts), [])

    def test_symlink_has_no_fields(self):
        changes = self.detector.detect_changes(
            make_symlink("a"), make_symlink("b"), self.opts
        )
        self.assertEqual(changes, [])

    def test_mismatched_kinds_rejected(self):
        with self.assertRaises(ValueError):
            self.detector.detect_changes(make_file(), make_dir(), self.opts)

    def test_detect_type_change(self):
        self.assertEqual(self.detector.detect_type_change(make_file(), make_file()), [])
        self.assertEqual(
            self.detector.detect_type_change(make_dir(), make_file()),
            [FieldDiff(FieldName.TYPE, "directory", "file")],
        )


class TestCompareEntries(unittest.TestCase):
    def test_identical_files(self):
        with patch(_COMPARE_CONTENT, return_value=True) as mock_content:
            result = compare_entries(make_file(), make_file(), "/a/f", "/b/f")
        mock_content.assert_called_once()
        self.assertTrue(result.identical)
        self.assertEqual(result.changes, [])
        self.assertFalse(result.type_changed)

    def test_content_change_last(self):
        old = make_file(mode=0o644, size=1)
        new = make_file(mode=0o600, size=2)
        with patch(_COMPARE_CONTENT, return_value=False):
            result = compare_entries(old, new, "/a/f", "/b/f")
        self.assertFalse(result.identical)
        self.assertEqual(_names(result.changes), ["mode", "size", "content"])
        self.assertEqual(result.changes[-1].to_list(), ["content", "different"])

    def test_content_only_change(self):
        with patch(_COMPARE_CONTENT, return_value=False):
            result = compare_entries(make_file(), make_file(), "/a/f", "/b/f")
        self.assertFalse(result.identical)
        self.assertEqual([chg.to_list() for chg in result.changes], [["content", "different"]])

    def test_content_comparison_paths(self):
        opts = DiffOptions(content_chunk_size=512)
        with patch(_COMPARE_CONTENT, return_value=True) as mock_content:
            compare_entries(make_file(), make_file(), "/a/f", "/b/f", options=opts)
        mock_content.assert_called_once_with("/a/f", "/b/f", 512)

    def test_no_content_option(self):
        opts = DiffOptions(compare_content=False)
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(make_file(), make_file(), "/a/f", "/b/f", options=opts)
        mock_content.assert_not_called()
        self.assertTrue(result.identical)

    def test_special_files_not_read(self):
        fifo = make_file(mode=stat.S_IFIFO | 0o644, size=0)
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(fifo, fifo, "/a/p", "/b/p")
        mock_content.assert_not_called()
        self.assertTrue(result.identical)

    def test_special_file_type_bits_change(self):
        fifo = make_file(mode=stat.S_IFIFO | 0o644, size=0)
        reg = make_file(mode=0o644, size=0)
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(fifo, reg, "/a/p", "/b/p")
        mock_content.assert_not_called()
        self.assertEqual([chg.to_list() for chg in result.changes], [["mode", "10644"]])

    def test_regular_file_becomes_fifo(self):
        reg = make_file(mode=0o644, size=0)
        fifo = make_file(mode=stat.S_IFIFO | 0o644, size=0)
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(reg, fifo, "/a/p", "/b/p")
        mock_content.assert_not_called()
        self.assertEqual(result.changes, [FieldDiff(FieldName.MODE, "100644", "10644")])
        self.assertEqual([chg.to_list() for chg in result.changes], [["mode", "100644"]])

    def test_directories_never_read(self):
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(make_dir(), make_dir(mode=0o700), "/a/d", "/b/d")
        mock_content.assert_not_called()
        self.assertEqual([chg.to_list() for chg in result.changes], [["mode", "755"]])

    def test_symlink_same_target(self):
        result = compare_entries(make_symlink("t"), make_symlink("t"), "/a/l", "/b/l")
        self.assertTrue(result.identical)

    def test_symlink_target_changed(self):
        result = compare_entries(
            make_symlink("target1"), make_symlink("target2"), "/a/l", "/b/l"
        )
        self.assertFalse(result.identical)
        self.assertEqual(result.changes, [])
        self.assertFalse(result.type_changed)

    def test_kind_mismatch(self):
        with patch(_COMPARE_CONTENT) as mock_content:
            result = compare_entries(make_dir(), make_file(), "/a/d", "/b/d")
        mock_content.assert_not_called()
        self.assertFalse(result.identical)
        self.assertTrue(result.type_changed)
        self.assertEqual([chg.to_list() for chg in result.changes], [["type", "directory"]])

    def test_kind_mismatch_symlink(self):
        result = compare_entries(make_symlink(), make_file(), "/a/x", "/b/x")
        self.assertTrue(result.type_changed)
        self.assertEqual(result.changes[0].to_list(), ["type", "symlink"])

    def test_ignored_changes_are_identical(self):
        opts = DiffOptions(ignore_permissions=True)
        with patch(_COMPARE_CONTENT, return_value=True):
            result = compare_entries(
                make_file(mode=0o644), make_file(mode=0o600), "/a/f", "/b/f", options=opts
            )
        self.assertTrue(result.identical)
