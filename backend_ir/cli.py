import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from backend_ir.assembler import build_intermediate_representation
from backend_ir.colored_logging import (
    setup_colored_logging,
    get_colored_logger,
    log_highlight,
    log_progress,
    log_section,
    log_success,
)
from backend_ir.config_validation import load_config
from backend_ir.domain.seeding import materialize_seed_rows
from backend_ir.exceptions import BackendIRError, LoweringError

# Note: Colored logging will be configured after parsing args
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backend-ir",
        description="Lower a declarative backend project configuration into a resolved intermediate representation.",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        help="Path to the YAML or JSON project configuration.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="File to write the IR to. Defaults to stdout.",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        default="json",
        help="Serialization format of the IR (default: json).",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Plan synthetic seed data even if the configuration does not enable it.",
    )
    parser.add_argument(
        "--seed-count",
        type=int,
        help="Rows to plan per model. Overrides the configuration.",
    )
    parser.add_argument(
        "--preview-rows",
        action="store_true",
        help="Include sample rows generated from the seed plan in the output.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    return parser


def report_violations(error: LoweringError) -> None:
    """Print every violation of a failed pass to stderr."""
    print("\n--- Lowering Errors ---", file=sys.stderr)
    for violation in error.violations:
        print(
            f"  - [{violation.severity.value.upper()}] {violation.code} at '{violation.path}'",
            file=sys.stderr,
        )
        print(f"    {violation.message}", file=sys.stderr)
        if violation.suggestion:
            print(f"    Hint:     {violation.suggestion}", file=sys.stderr)
    print("-----------------------", file=sys.stderr)


def serialize(document: dict, output_format: str) -> str:
    if output_format == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, default=str)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # --- Logging Setup ---
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=not args.no_color)

    global logger
    logger = get_colored_logger(__name__)

    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    try:
        # 1. Load Configuration
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)
        log_success(logger, "Configuration loaded and validated successfully.")

        # 2. Lower to IR
        log_section(logger, "Intermediate Representation")
        log_progress(logger, "Lowering models and relationships...")
        ir = build_intermediate_representation(config)
        log_success(logger, "Intermediate representation built successfully.")

        if ir.join_models:
            log_highlight(
                logger,
                f"Synthesized join model(s): {', '.join(m.name for m in ir.join_models)}",
            )
        restricted = [m.name for m in ir.models if m.access_policy.is_restricted]
        if restricted:
            log_highlight(logger, f"Role-restricted model(s): {', '.join(restricted)}")
        if ir.warnings:
            log_highlight(logger, f"{len(ir.warnings)} warning(s) recorded in the IR")

        document = ir.to_dict()

        # 3. Optional sample rows
        if args.preview_rows:
            if ir.seed_plan is None:
                logger.warning("--preview-rows needs seeding; pass --seed or enable it in the config")
            else:
                log_progress(logger, "Planning sample rows from the seed plan...")
                document['seed_rows'] = materialize_seed_rows(
                    ir.seed_plan, seed=config.seeding.random_seed
                )

        # 4. Write
        text = serialize(document, args.format)
        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text, encoding="utf-8")
            log_success(logger, f"IR written to {output_path}")
        else:
            sys.stdout.write(text)
            if not text.endswith("\n"):
                sys.stdout.write("\n")

    # --- Error Handling ---
    except LoweringError as e:
        logger.error(f"Lowering failed: {e.args[0]}", exc_info=args.verbose)
        report_violations(e)
        return 1
    except BackendIRError as e:
        logger.error(f"Error: {e}", exc_info=args.verbose)
        return 1
    except OSError as e:
        logger.error(f"I/O Error: {e}", exc_info=args.verbose)
        return 1
    except Exception as e:
        logger.error(f"An unexpected error occurred during lowering: {e}", exc_info=True)
        return 1

    return 0


# --- Script Entry Point ---
if __name__ == "__main__":
    sys.exit(main())
