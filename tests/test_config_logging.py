"""
Tests for configuration and structured logging
"""

import json
import logging

from loan_ledger.config import LedgerConfig, get_config, reload_config
from loan_ledger.logging_config import JSONFormatter, setup_logging, get_logger, log_action


class TestLedgerConfig:
    """Test environment-driven configuration"""
    
    def test_defaults(self, monkeypatch):
        for name in ("LOAN_LEDGER_STORAGE_BACKEND", "LOAN_LEDGER_API_PORT", "LOAN_LEDGER_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        config = LedgerConfig(_env_file=None)
        
        assert config.storage_backend == "sqlite"
        assert config.api_port == 8090
        assert config.log_format == "json"
        assert config.enable_audit_logging
    
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOAN_LEDGER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LOAN_LEDGER_API_PORT", "9000")
        monkeypatch.setenv("loan_ledger_log_level", "DEBUG")
        
        config = LedgerConfig(_env_file=None)
        
        assert config.storage_backend == "memory"
        assert config.api_port == 9000
        assert config.log_level == "DEBUG"
    
    def test_reload_config(self, monkeypatch):
        monkeypatch.setenv("LOAN_LEDGER_API_PORT", "9100")
        
        reloaded = reload_config()
        
        assert reloaded.api_port == 9100
        assert get_config() is reloaded
        
        monkeypatch.delenv("LOAN_LEDGER_API_PORT")
        reload_config()


class TestStructuredLogging:
    """Test JSON log output"""
    
    def test_json_formatter_drops_empty_fields(self):
        record = logging.LogRecord("loan_ledger", logging.INFO, __file__, 1, "hello", (), None)
        
        entry = json.loads(JSONFormatter().format(record))
        
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["module"] == "loan_ledger"
        assert "owner_id" not in entry
        assert "action" not in entry
    
    def test_log_action_emits_structured_fields(self, capsys):
        logger = setup_logging(level="INFO", logger_name="loan_ledger_test")
        
        log_action(
            logger, "info", "Loan created",
            owner_id="owner-1", action="create_loan", resource="loan:1",
            extra={"amount": 1000}
        )
        
        entry = json.loads(capsys.readouterr().err.strip())
        assert entry["message"] == "Loan created"
        assert entry["owner_id"] == "owner-1"
        assert entry["action"] == "create_loan"
        assert entry["resource"] == "loan:1"
        assert entry["extra"] == {"amount": 1000}
    
    def test_log_action_respects_level(self, capsys):
        logger = setup_logging(level="WARNING", logger_name="loan_ledger_quiet")
        
        log_action(logger, "info", "ignored")
        
        assert capsys.readouterr().err == ""
    
    def test_text_format(self, capsys):
        logger = setup_logging(level="INFO", logger_name="loan_ledger_text", log_format="text")
        
        logger.info("plain line")
        
        assert "INFO [loan_ledger_text] plain line" in capsys.readouterr().err
    
    def test_module_loggers_live_under_application_logger(self):
        assert get_logger().name == "loan_ledger"
        assert get_logger("loan_ledger.service").parent is get_logger()
