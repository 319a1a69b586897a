"""Argument parsing functionality for depsteward."""

import argparse

from depsteward import __version__


def _add_common(parser):
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML settings file (default: ./settings.yaml if present)",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--no-default-policies",
                        dest="NO_DEFAULT_POLICIES",
                        help="Do not load the upstream Scala Steward policy documents",
                        action="store_true")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depsteward",
        description="depsteward - dependency version governance engine",
        add_help=True,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="COMMAND", required=True)

    resolve = subparsers.add_parser(
        "resolve",
        help="Find the best allowed version for each dependency",
    )
    _add_common(resolve)
    resolve.add_argument("DEPENDENCIES",
                         nargs="+",
                         metavar="COORDINATE",
                         help="org:name:version[:config] or org::name:version[:config]")
    resolve.add_argument("--group",
                         dest="GROUP",
                         help="Logical group the dependencies belong to",
                         action="store", type=str, default="")
    resolve.add_argument("--update-filter",
                         dest="UPDATE_FILTER",
                         help="Only update matching dependencies: org:, :name or org:name",
                         action="store", type=str)
    resolve.add_argument("--apply-migrations",
                         dest="APPLY_MIGRATIONS",
                         help="Move dependencies to their new coordinates when a migration is available",
                         action="store_true")
    resolve.add_argument("-D", "--define",
                         dest="DEFINES",
                         help="Current value of a {{NAME}} version variable, as NAME=VERSION (repeatable)",
                         action="append", type=str, default=[])
    resolve.add_argument("--snapshot",
                         dest="SNAPSHOT",
                         help="Append the resolved dependencies to this snapshot file",
                         action="store", type=str)
    resolve.add_argument("-r", "--repository",
                         dest="REPOSITORIES",
                         help="Maven repository URL (repeatable, replaces the default)",
                         action="append", type=str)
    resolve.add_argument("--scala-binary-version",
                         dest="SCALA_BINARY_VERSION",
                         help="Binary version appended to cross-built artifact names",
                         action="store", type=str)
    resolve.add_argument("--timeout",
                         dest="TIMEOUT",
                         help="Seconds allowed for each version lookup",
                         action="store", type=float)
    resolve.add_argument("-j", "--parallelism",
                         dest="PARALLELISM",
                         help="Number of concurrent resolutions (default: CPU count)",
                         action="store", type=int)
    for flag, dest, what in (
        ("--migrations", "MIGRATIONS", "artifact migrations"),
        ("--ignores", "IGNORES", "ignored versions"),
        ("--pins", "PINS", "version pins"),
        ("--retractions", "RETRACTIONS", "retracted versions"),
    ):
        resolve.add_argument(flag,
                             dest=dest,
                             help=f"URL of a policy document with {what} (repeatable)",
                             action="append", type=str)

    diff = subparsers.add_parser(
        "diff",
        help="Report what changed between two resolved snapshots",
    )
    _add_common(diff)
    diff.add_argument("BEFORE", help="Snapshot before the update")
    diff.add_argument("AFTER", help="Snapshot after the update")
    diff.add_argument("-o", "--output",
                      dest="OUTPUT",
                      help="Write the report to this file (.json, .yaml or .yml)",
                      action="store", type=str)
    diff.add_argument("--scalafix-migrations",
                      dest="SCALAFIX_MIGRATIONS",
                      help="URL of a policy document with scalafix migrations (repeatable)",
                      action="append", type=str)
    diff.add_argument("-f", "--format",
                      dest="OUTPUT_FORMAT",
                      help="Report format; inferred from --output when omitted, otherwise json",
                      action="store",
                      type=str.lower,
                      choices=['json', 'yaml'])

    return parser.parse_args(argv)
