from intake.cli import BATCH_COMMANDS, parse_args


def test_parse_args_defaults():
    args = parse_args(["process-historical"])
    assert args.command == "process-historical"
    assert args.form_ids is None
    assert args.limit is None
    assert args.overlay_config_dir is None
    assert args.delete is False


def test_parse_args_collects_repeated_form_ids():
    args = parse_args(["extract-landlords", "--form-id", "1", "--form-id", "2", "--limit", "5"])
    assert args.form_ids == ["1", "2"]
    assert args.limit == 5


def test_parse_args_accepts_overlay_config_dir():
    args = parse_args(["reconcile", "--overlay-config-dir", "config/live", "--delete"])
    assert args.overlay_config_dir == "config/live"
    assert args.delete is True


def test_batch_commands_map_to_actions():
    assert BATCH_COMMANDS["extract-participants"] == "extract_participants"
    assert BATCH_COMMANDS["process-historical"] == "process_historical"
