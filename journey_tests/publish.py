#!/usr/bin/env python3
"""
Publish test results to S3.

Copies the Allure report and the accessibility reports, each recursively, to
``$RESULTS_OUTPUT_S3_PATH/allure-report`` and
``$RESULTS_OUTPUT_S3_PATH/accessibility-reports`` with the AWS CLI.

Exit status is 1 when the destination is not set, when neither directory
exists (nothing is uploaded in either case) or when an upload fails.
"""

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

DESTINATION_ENV = "RESULTS_OUTPUT_S3_PATH"
ALLURE_PREFIX = "allure-report"
ACCESSIBILITY_PREFIX = "accessibility-reports"


def s3_copy_command(source: Path, destination: str) -> List[str]:
    return ["aws", "s3", "cp", "--quiet", str(source), destination, "--recursive"]


def upload(source: Path, destination: str) -> None:
    """Copy ``source`` recursively to ``destination`` (raises on failure)."""
    subprocess.run(s3_copy_command(source, destination), check=True)


def publish(allure_dir: Path, reports_dir: Path, destination: Optional[str]) -> int:
    logger.info("Publishing test results to S3")

    destination = (destination or "").strip().rstrip("/")
    if not destination:
        logger.error(f"{DESTINATION_ENV} is not set")
        return 1

    targets = [
        (allure_dir, ALLURE_PREFIX, "Allure reports"),
        (reports_dir, ACCESSIBILITY_PREFIX, "Accessibility reports"),
    ]
    present = [(path, prefix, label) for path, prefix, label in targets if path.is_dir()]

    for path, _, _ in targets:
        if not path.is_dir():
            logger.warning(f"{path} is not found")

    if not present:
        logger.error("No test reports found to publish")
        return 1

    for path, prefix, label in present:
        target = f"{destination}/{prefix}"
        try:
            upload(path, target)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            logger.error(f"Failed to publish {label.lower()} to {target}: {e}")
            return 1
        logger.info(f"{label} published to {target}")

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry point (``publish-test-results``)."""
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    cwd = Path.cwd()
    parser = argparse.ArgumentParser(description="Publish test results to S3")
    parser.add_argument("--allure-dir", type=Path, default=cwd / "allure-report",
                        help="Allure report directory (default: ./allure-report)")
    parser.add_argument("--reports-dir", type=Path, default=cwd / "reports",
                        help="Accessibility reports directory (default: ./reports)")
    args = parser.parse_args(argv)

    return publish(args.allure_dir, args.reports_dir, os.environ.get(DESTINATION_ENV))


if __name__ == "__main__":
    sys.exit(main())
