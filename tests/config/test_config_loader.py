"""YAML configuration loading and environment overrides."""

from pathlib import Path

import pytest
import yaml

from delivery_config import DEFAULT_CONFIG_PATH, get_active_config, load_config, parse_config
from delivery_config.schema import DeliveryConfig


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "delivery.yaml"
    path.write_text(text)
    return path


class TestBundledDefaults:

    def test_defaults_file_loads(self):
        config = load_config(DEFAULT_CONFIG_PATH)

        assert config.database.url == "sqlite+pysqlite:///:memory:"
        assert config.ledger.payment_terms_days == 14
        assert config.ledger.allowed_payment_methods == ("cash", "yoco", "eft")
        assert config.packing.default_sort_by == "name"
        assert config.reminders.cron == "0 9 * * 1"
        assert not config.reminders.enabled
        assert config.request_timeout_seconds == 10
        assert config.log_level == "INFO"

    def test_empty_mapping_gives_dataclass_defaults(self):
        assert parse_config({}) == DeliveryConfig()


class TestParsing:

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        config = load_config(_write(tmp_path, "ledger:\n  payment_terms_days: 30\n"))

        assert config.ledger.payment_terms_days == 30
        assert config.ledger.invoice_number_prefix == "INV"
        assert config.database.url.startswith("sqlite")

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="billing"):
            parse_config({"billing": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="terms"):
            parse_config({"ledger": {"terms": 7}})

    def test_section_must_be_a_mapping(self):
        with pytest.raises(ValueError):
            parse_config({"packing": ["A4"]})

    def test_validators_still_run(self):
        with pytest.raises(ValueError):
            parse_config({"ledger": {"payment_terms_days": -1}})
        with pytest.raises(ValueError):
            parse_config({"log_level": "chatty"})
        with pytest.raises(ValueError):
            parse_config({"request_timeout_seconds": 0})

    def test_top_level_must_be_a_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, "- just\n- a list\n"))

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(yaml.YAMLError):
            load_config(_write(tmp_path, "ledger: [unclosed\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")


class TestActiveConfig:

    def test_explicit_path_wins_over_environment(self, tmp_path):
        explicit = _write(tmp_path, "log_level: DEBUG\n")
        config = get_active_config(explicit, environ={"DELIVERY_CONFIG": str(tmp_path / "absent.yaml")})
        assert config.log_level == "DEBUG"

    def test_delivery_config_variable(self, tmp_path):
        path = _write(tmp_path, "reminders:\n  enabled: true\n  cron: '30 7 * * 1-5'\n")
        config = get_active_config(environ={"DELIVERY_CONFIG": str(path)})
        assert config.reminders.enabled
        assert config.reminders.cron == "30 7 * * 1-5"

    def test_database_url_override(self):
        config = get_active_config(environ={"DATABASE_URL": "postgresql://u:p@db/delivery"})
        assert config.database.url == "postgresql://u:p@db/delivery"
        assert config.database.pool_size == 10

    def test_load_is_logged(self, captured_logs):
        get_active_config(environ={})
        (record,) = [r for r in captured_logs() if r["message"] == "config_loaded"]
        assert record["dialect"] == "sqlite+pysqlite"
        assert record["database_url_override"] is False
