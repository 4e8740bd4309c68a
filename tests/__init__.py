# Copyright Red Hat
#
# tests/__init__.py - Filesystem tree differ test package
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
import logging
import os

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log", errors="backslashreplace")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)


class MockArgs(object):
    original = None
    new = None
    debug = None
    verbose = 0
    output_format = "json"
    pretty = False
    compact = False
    ignore_permissions = False
    ignore_ownership = False
    ignore_security_labels = False
    content_only = False
    compare_content = True
    exclude_patterns = None
    security_label_xattr = None
    content_chunk_size = None


def have_root():
    """Return ``True`` if the test suite is running as the root user,
    and ``False`` otherwise.
    """
    return os.geteuid() == 0 and os.getegid() == 0
