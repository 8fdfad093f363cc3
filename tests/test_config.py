from budget_import.config import DEFAULT_RULES_PATH, ImportConfig, load_config


def test_packaged_rules_match_defaults():
    assert DEFAULT_RULES_PATH.exists()
    assert load_config() == ImportConfig()


def test_missing_rules_file_falls_back_to_defaults(tmp_path):
    assert load_config(tmp_path / "nope.yaml") == ImportConfig()


def test_broken_rules_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("tolerances: [unclosed\n")
    assert load_config(path) == ImportConfig()

    path.write_text("- just\n- a list\n")
    assert load_config(path) == ImportConfig()


def test_partial_rules_override_defaults(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "tolerances:\n"
        "  strict_abs: 0.5\n"
        "staff:\n"
        "  discipline: STAFFING\n"
        "pipeline:\n"
        "  max_workers: 1\n"
    )
    config = load_config(path)

    assert config.strict_tolerance == 0.5
    assert config.staff_discipline == "STAFFING"
    assert config.max_workers == 1
    assert config.aggregate_tolerance_percent == 1.0
    assert config.indirects_last_row == 42


def test_from_dict_tolerates_empty_sections():
    assert ImportConfig.from_dict({"staff": None, "materials": {}}) == ImportConfig()
