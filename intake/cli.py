"""CLI entrypoint for the form intake pipeline."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from intake.common.config_loader import load_all_configs
from intake.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from intake.common.errors import PipelineError
from intake.common.fs import read_json
from intake.common.ids import generate_run_id
from intake.common.logging import build_logger, log_event
from intake.files.reconcile import sweep_orphaned_blobs
from intake.pipeline.reports import write_run_summary
from intake.pipeline.webhook import handle_webhook
from intake.service import Services, build_services

BATCH_COMMANDS = {
    "extract-participants": "extract_participants",
    "extract-landlords": "extract_landlords",
    "extract-investors": "extract_investors",
    "process-historical": "process_historical",
}
COMMANDS = (*BATCH_COMMANDS, "webhook", "list-forms", "register-webhook", "reconcile", "serve")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--form-id", dest="form_ids", action="append", default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--payload", default=None, help="webhook JSON body to process")
    parser.add_argument("--webhook-url", default=None)
    parser.add_argument("--delete", action="store_true", help="reconcile: delete orphaned blobs")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def _print(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def execute_command(args: argparse.Namespace, services: Services, run_id: str) -> int:
    data_dir = Path(args.data_dir)

    if args.command in BATCH_COMMANDS:
        result = services.run_action(
            BATCH_COMMANDS[args.command],
            args.form_ids,
            run_id=run_id,
            submission_limit=args.limit,
        )
        write_run_summary(data_dir, result)
        _print(result.to_dict())
        return EXIT_PARTIAL if result.errors else EXIT_SUCCESS

    if args.command == "webhook":
        if not args.payload:
            raise PipelineError("--payload is required for the webhook command")
        outcome = handle_webhook(read_json(Path(args.payload)), services.context)
        _print(outcome.to_dict())
        return EXIT_SUCCESS if outcome.status != "error" else EXIT_PARTIAL

    if args.command == "list-forms":
        forms = services.api_client().list_forms(limit=args.limit or 1000)
        _print({"total_forms": len(forms), "forms": [form.to_dict() for form in forms]})
        return EXIT_SUCCESS

    if args.command == "register-webhook":
        if not args.webhook_url or not args.form_ids:
            raise PipelineError("--webhook-url and at least one --form-id are required")
        client = services.api_client()
        _print({form_id: client.register_webhook(form_id, args.webhook_url) for form_id in args.form_ids})
        return EXIT_SUCCESS

    if args.command == "reconcile":
        _print(sweep_orphaned_blobs(services.blob_store, services.entity_store, delete=args.delete))
        return EXIT_SUCCESS

    if args.command == "serve":
        import uvicorn

        from intake.api import create_app

        uvicorn.run(create_app(services), host=args.host, port=args.port)
        return EXIT_SUCCESS

    raise ValueError(f"Unknown command: {args.command}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
    services = build_services(bundle, logger=logger, data_dir=data_dir)

    log_event(logger, f"{args.command} start", run_id=run_id, stage=args.command, event="COMMAND_START", status="ok")
    try:
        exit_code = execute_command(args, services, run_id)
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            run_id=run_id,
            stage=args.command,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    finally:
        services.close()
    log_event(logger, f"{args.command} end", run_id=run_id, stage=args.command, event="COMMAND_END", status="ok")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
