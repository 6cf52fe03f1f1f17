"""Command-line entry point for building SDK-scoped docs."""

from __future__ import annotations

import argparse
import asyncio
import sys

from sdkdocs.build import build_docs
from sdkdocs.config import create_config, load_config_file
from sdkdocs.exceptions import SdkDocsError
from sdkdocs.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate MDX docs and build one variant per SDK.")
    parser.add_argument("--config", help="JSON file with build settings")
    parser.add_argument("--base-path", default=".", help="Root the other paths are relative to")
    parser.add_argument("--sdk", action="append", dest="sdks", help="Valid SDK (repeatable)")
    parser.add_argument("--docs", help="Docs folder")
    parser.add_argument("--manifest", help="Manifest JSON file")
    parser.add_argument("--partials", help="Partials folder")
    parser.add_argument("--typedoc", help="Typedoc output folder")
    parser.add_argument("--tooltips", help="Tooltips folder (tooltips are embedded only when set)")
    parser.add_argument("--dist", help="Output folder")
    parser.add_argument("--no-write", action="store_true", help="Validate only, do not write output")
    parser.add_argument("--fail-on-warnings", action="store_true", help="Exit non-zero when warnings are reported")
    parser.add_argument("--log-level", help="Logging level (default: SDKDOCS_LOG_LEVEL or WARNING)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    overrides = {
        "valid_sdks": args.sdks,
        "docs_path": args.docs,
        "manifest_path": args.manifest,
        "partials_path": args.partials,
        "typedoc_path": args.typedoc,
        "tooltips_path": args.tooltips,
        "dist_path": args.dist,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if args.fail_on_warnings:
        overrides["fail_on_warnings"] = True

    try:
        if args.config:
            config = load_config_file(args.config, **overrides)
        else:
            config = create_config(base_path=args.base_path, **overrides)
        result = asyncio.run(build_docs(config, write_output=not args.no_write))
    except SdkDocsError as exc:
        logger.debug("Build failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if result.report:
        print(result.report)
    if result.has_warnings and config.fail_on_warnings:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
