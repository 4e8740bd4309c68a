# Copyright Red Hat
#
# treediff/command.py - Filesystem tree differ command interface
#
# This file is part of the treediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``treediff.command`` module provides the treediff command line
interface infrastructure.

The command compares two file system trees, the first considered "the
original" and the second "the new one", and prints a report of deleted,
added and changed paths.
"""
from argparse import ArgumentParser
from os.path import basename
import logging

from treediff import (
    TREEDIFF_DEBUG_WALK,
    TREEDIFF_DEBUG_COMPARE,
    TREEDIFF_DEBUG_ENGINE,
    TREEDIFF_DEBUG_COMMAND,
    TREEDIFF_DEBUG_ALL,
    TREEDIFF_SUBSYSTEM_COMMAND,
    SubsystemFilter,
    TreeDiffArgumentError,
    set_debug_mask,
    __version__,
)

from .engine import FsDiffResults
from .fsdiffer import diff_trees
from .options import DiffOptions

DIFF_FORMATS = FsDiffResults.DIFF_FORMATS

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREEDIFF_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None


def _check_diff_args(cmd_args):
    """
    Validate argument combinations for the diff command.

    :param cmd_args: Command line arguments for the command
    :raises: ``TreeDiffArgumentError`` if the arguments conflict.
    """
    output_format = cmd_args.output_format

    if (cmd_args.pretty or cmd_args.compact) and output_format != "json":
        raise TreeDiffArgumentError(
            "Options --pretty and --compact only supported with --output-format=json"
        )

    if cmd_args.pretty and cmd_args.compact:
        raise TreeDiffArgumentError(
            "Options --pretty and --compact are mutually exclusive"
        )

    if cmd_args.content_only and cmd_args.compare_content is False:
        raise TreeDiffArgumentError(
            "Options --content-only and --no-content are mutually exclusive"
        )

    if output_format not in DIFF_FORMATS:
        # Belts and braces: should be unreachable since ArgumentParser validates
        # that `output_format` is a member of DIFF_FORMATS.
        raise TreeDiffArgumentError(f"Unknown diff format: {output_format}")


def _diff_cmd(cmd_args):
    """
    Diff command handler.

    Compare the ORIGINAL tree to the NEW tree and print the report.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    try:
        _check_diff_args(cmd_args)
    except TreeDiffArgumentError as err:
        _log_error("%s", err)
        return 1

    options = DiffOptions.from_cmd_args(cmd_args)
    _log_debug_command(
        "Comparing '%s' to '%s' (%s)",
        cmd_args.original,
        cmd_args.new,
        cmd_args.output_format,
    )

    results = diff_trees(cmd_args.original, cmd_args.new, options)

    if cmd_args.output_format == "paths":
        paths = results.paths()
        if paths:
            print("\n".join(paths))
    elif cmd_args.output_format == "short":
        short = results.short()
        if short:
            print(short)
    else:
        print(results.json(pretty=not cmd_args.compact))
    return 0


def setup_logging(cmd_args):
    """
    Set up treediff logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    treediff_log = logging.getLogger("treediff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    treediff_log.setLevel(level)
    if treediff_log.hasHandlers():
        treediff_log.handlers.clear()

    # Subsystem log filtering
    _treediff_subsystem_filter = SubsystemFilter("treediff")

    # Main console handler (stderr)
    _CONSOLE_HANDLER = logging.StreamHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_treediff_subsystem_filter)

    treediff_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down treediff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "walk": TREEDIFF_DEBUG_WALK,
        "compare": TREEDIFF_DEBUG_COMPARE,
        "engine": TREEDIFF_DEBUG_ENGINE,
        "command": TREEDIFF_DEBUG_COMMAND,
        "all": TREEDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_diff_args(parser):
    """
    Add diff command arguments.
    """
    parser.add_argument(
        "original",
        metavar="ORIGINAL",
        type=str,
        help="The root of the original file system tree",
    )
    parser.add_argument(
        "new",
        metavar="NEW",
        type=str,
        help="The root of the new file system tree",
    )
    parser.add_argument(
        "-o",
        "--output-format",
        default="json",
        choices=DIFF_FORMATS,
        help="Output format for the report (default: json)",
    )
    parser.add_argument(
        "-p",
        "--pretty",
        action="store_true",
        help="Indent JSON output to be human readable (default)",
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Print JSON output on a single line",
    )
    parser.add_argument(
        "--ignore-permissions",
        dest="ignore_permissions",
        action="store_true",
        help="Do not compare permission bits",
    )
    parser.add_argument(
        "--ignore-ownership",
        dest="ignore_ownership",
        action="store_true",
        help="Do not compare owner and group",
    )
    parser.add_argument(
        "--ignore-security-labels",
        dest="ignore_security_labels",
        action="store_true",
        help="Do not read or compare security labels",
    )
    parser.add_argument(
        "-c",
        "--content-only",
        dest="content_only",
        action="store_true",
        help="Only report content, symlink target and type changes",
    )
    parser.add_argument(
        "-C",
        "--no-content",
        dest="compare_content",
        action="store_false",
        help="Do not compare the content of regular files",
    )
    parser.add_argument(
        "-x",
        "--exclude",
        dest="exclude_patterns",
        metavar="PATTERN",
        action="append",
        default=None,
        help="Exclude relative paths matching PATTERN (glob notation)",
    )
    parser.add_argument(
        "--security-label-xattr",
        dest="security_label_xattr",
        metavar="NAME",
        type=str,
        default=None,
        help="Extended attribute holding the security label "
        "(default: security.selinux)",
    )
    parser.add_argument(
        "--chunk-size",
        dest="content_chunk_size",
        metavar="BYTES",
        type=int,
        default=None,
        help="Read size used when comparing file content",
    )


def main(args):
    """
    Main entry point for treediff.
    """
    parser = ArgumentParser(
        description="Compare two file system trees", prog=basename(args[0])
    )

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable "
        "(walk, compare, engine, command, all)",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of treediff",
        version=__version__,
    )
    _add_diff_args(parser)
    parser.set_defaults(func=_diff_cmd)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if cmd_args.debug:
        status = cmd_args.func(cmd_args)
    else:
        try:
            status = cmd_args.func(cmd_args)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


# vim: set et ts=4 sw=4 :
