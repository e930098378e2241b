"""
LSF status probe.

Polls the LSF load information manager once for the status of every host and
prints one JSON line for the monitoring pipeline, e.g.:

    [{"name":"lsf.node01","status":0,"criticalGroupName":"hpc",
      "remarks":"Status code: 0 (LIM_OK)"}]

Exit codes:
    0   all hosts passed
    127 at least one host failed (or LSF was unreachable)
    1   fatal error, details on stderr
"""

import argparse
import logging
import sys
from typing import List, Optional

from lsf_probe.config import CONFIG_ENV_VAR, default_config_path, get_config
from lsf_probe.errors import ProbeError, iter_causes
from lsf_probe.services import lsf_monitor
from lsf_probe.services.lsf_client import LIBRARY_ENV_VAR, LsfClient

logger = logging.getLogger(__name__)

FATAL = 1


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lsf-probe",
        description="Simple LSF program to poll for LSF host status.",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_path",
        default=default_config_path(),
        help=f"Configuration file path (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument(
        "--lsf-library",
        help=f"Path to liblsf (default: ${LIBRARY_ENV_VAR} or the system library search path)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Write debug logging to stderr.",
    )
    args = parser.parse_args(argv)
    if not args.config_path:
        parser.error(f"the following arguments are required: -c/--config (or set {CONFIG_ENV_VAR})")
    return args


def run(args: argparse.Namespace) -> int:
    config = get_config(args.config_path)
    client = LsfClient(library_path=args.lsf_library)

    records = lsf_monitor.get_lsf_status(config, client)
    exit_code = lsf_monitor.exit_code_for(records)

    print(lsf_monitor.render_report(records))
    return exit_code


def _report_error(exc: ProbeError) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    for cause in iter_causes(exc):
        print(f"- Caused by: {cause}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args)
    except ProbeError as exc:
        logger.debug("Probe aborted", exc_info=True)
        _report_error(exc)
        return FATAL


if __name__ == "__main__":
    raise SystemExit(main())
