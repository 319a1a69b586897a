"""CLI entry point for depsteward.

``resolve`` prints the best allowed version for each coordinate given on the
command line; ``diff`` compares two resolved snapshots.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from depsteward.args import parse_args
from depsteward.common.logging_utils import configure_logging
from depsteward.config import Settings, load_settings
from depsteward.constants import ExitCodes
from depsteward.constraints import PolicyDocumentCache, ScalafixMigrationFinder
from depsteward.engine import Engine, create_engine
from depsteward.exceptions import ConfigurationError, ResolutionError
from depsteward.report.diff import (
    append_snapshot,
    compute_diff,
    read_snapshot,
    render_diff,
    snapshot_from_dependencies,
    write_diff_report,
)
from depsteward.versioning.filters import UpdateFilter
from depsteward.versioning.models import Dependency, VariableVersion
from depsteward.versioning.parser import parse_dependency_token, parse_version

logger = logging.getLogger(__name__)


def _setup_logging(args: Any) -> None:
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)


def _settings_overrides(args: Any) -> Dict[str, Any]:
    return {
        "repositories": args.REPOSITORIES,
        "scala_binary_version": args.SCALA_BINARY_VERSION,
        "timeout": args.TIMEOUT,
        "parallelism": args.PARALLELISM,
        "migrations": args.MIGRATIONS,
        "ignores": args.IGNORES,
        "pins": args.PINS,
        "retractions": args.RETRACTIONS,
    }


def _parse_defines(defines: Sequence[str]) -> Dict[str, Any]:
    """Map ``NAME=VERSION`` strings to parsed versions."""
    values = {}
    for item in defines:
        name, sep, raw = item.partition("=")
        version = parse_version(raw.strip()) if sep else None
        if not name.strip() or version is None:
            raise ConfigurationError(f"invalid variable definition '{item}', expected NAME=VERSION")
        values[name.strip()] = version
    return values


def _declared_dependencies(engine: Engine, args: Any) -> List[Dependency]:
    """Parse the coordinates; versionless ones start at their latest stable release."""
    variables = _parse_defines(args.DEFINES)
    dependencies = []
    for token in args.DEPENDENCIES:
        coordinates, version = parse_dependency_token(token)
        if version is None:
            dependencies.append(
                engine.resolver.latest_stable(
                    coordinates.organization, coordinates.name, coordinates.is_cross, args.GROUP
                )
            )
            continue
        if isinstance(version, VariableVersion):
            version = VariableVersion(version.name, variables.get(version.name))
        dependencies.append(Dependency(coordinates, version, args.GROUP))
    return dependencies


def _load_settings(args: Any, overrides: Dict[str, Any]) -> Settings:
    settings = load_settings(args.CONFIG, overrides)
    if args.NO_DEFAULT_POLICIES:
        settings.drop_default_policies()
    return settings


def run_resolve(args: Any) -> int:
    """Resolve the coordinates in ``args`` and print one line per dependency."""
    settings = _load_settings(args, _settings_overrides(args))
    engine = create_engine(settings)
    update_filter = UpdateFilter.parse(args.UPDATE_FILTER)
    logger.info("Updating dependencies matching: %s", update_filter.show())

    declared = _declared_dependencies(engine, args)
    selected = [dep for dep in declared if update_filter.matches(dep)]
    resolved = iter(engine.resolve_all(selected))
    results = [next(resolved) if update_filter.matches(dep) else dep for dep in declared]

    final, pending = engine.migrations.apply_all(results, opt_in=args.APPLY_MIGRATIONS)

    for dependency in final:
        print(dependency.to_line())

    if args.SNAPSHOT:
        append_snapshot(args.SNAPSHOT, snapshot_from_dependencies({args.GROUP: final}))
        logger.info("Snapshot appended to %s", args.SNAPSHOT)

    if pending:
        logger.warning("%d migration(s) available; rerun with --apply-migrations to apply", pending)
        return ExitCodes.MIGRATIONS_AVAILABLE.value
    return ExitCodes.SUCCESS.value


def run_diff(args: Any) -> int:
    """Diff two snapshot files and print or write the report.

    Scalafix migration documents are only fetched when something was updated.
    """
    before = read_snapshot(args.BEFORE)
    after = read_snapshot(args.AFTER)
    diffs = compute_diff(before, after)
    logger.info("%d group(s) changed", len(diffs))

    scalafix = None
    if any(diff.updated for diff in diffs.values()):
        settings = _load_settings(args, {"scalafix_migrations": args.SCALAFIX_MIGRATIONS})
        policies = PolicyDocumentCache(timeout=settings.timeout)
        scalafix = ScalafixMigrationFinder.from_urls(settings.scalafix_migrations, policies)

    if args.OUTPUT:
        write_diff_report(args.OUTPUT, diffs, args.OUTPUT_FORMAT or "", scalafix)
        logger.info("Diff report written to %s", args.OUTPUT)
    else:
        sys.stdout.write(render_diff(diffs, args.OUTPUT_FORMAT or "json", scalafix))
    return ExitCodes.SUCCESS.value


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    commands = {"resolve": run_resolve, "diff": run_diff}
    try:
        code = commands[args.COMMAND](args)
    except ResolutionError as exc:
        logger.error("Resolution failed: %s", exc)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s, aborting", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except OSError as exc:
        logger.error("IO error: %s, aborting", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)
    sys.exit(code)


if __name__ == "__main__":
    main()
