# PATH: tests/unit/test_logging.py
"""
Tests for core/logging.py and the logging contract.

Contextual fields go only through extra={"context": {...}}; no other
kwargs are passed to logger methods anywhere in the package.
"""

import ast
import json
import logging
import unittest
from pathlib import Path
from typing import Any, Dict, List

from core.logging import (
    ContextAdapter,
    JSONFormatter,
    clear_global_context,
    get_logger,
    log_error,
    log_opportunity,
    log_workflow,
    set_global_context,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
PACKAGES = ("core", "dex", "strategy", "execution", "discovery", "chains", "monitoring", "config")


class CapturingHandler(logging.Handler):
    def __init__(self, records_list):
        super().__init__()
        self.records = records_list

    def emit(self, record):
        self.records.append(record)


class TestLoggingContractEnforcement(unittest.TestCase):
    """AST-based tests for logging contract."""

    ALLOWED_KWARGS = {"exc_info", "extra", "stack_info", "stacklevel"}

    def _find_logger_violations(self, source_code: str) -> List[Dict[str, Any]]:
        """Find logger calls with invalid kwargs using AST."""
        violations = []

        try:
            tree = ast.parse(source_code)
        except SyntaxError:
            return violations

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
                continue

            method_name = node.func.attr
            if method_name not in ("debug", "info", "warning", "error", "critical", "exception"):
                continue

            obj = node.func.value
            if isinstance(obj, ast.Name):
                is_logger = "log" in obj.id.lower()
            elif isinstance(obj, ast.Attribute):
                is_logger = "log" in obj.attr.lower()
            else:
                is_logger = False
            if not is_logger:
                continue

            for kw in node.keywords:
                if kw.arg and kw.arg not in self.ALLOWED_KWARGS:
                    violations.append({
                        "line": node.lineno,
                        "method": method_name,
                        "invalid_kwarg": kw.arg,
                    })

        return violations

    def test_package_has_no_invalid_kwargs(self):
        """No logger.<level>(..., foo=...) calls in any package."""
        messages = []
        for package in PACKAGES:
            for filepath in sorted((PROJECT_ROOT / package).rglob("*.py")):
                source = filepath.read_text(encoding="utf-8")
                for v in self._find_logger_violations(source):
                    messages.append(
                        f"  {filepath.relative_to(PROJECT_ROOT)}:{v['line']}: "
                        f"logger.{v['method']}(..., {v['invalid_kwarg']}=...)"
                    )
        if messages:
            self.fail("Logging violations:\n" + "\n".join(messages))

    def test_detector_catches_violation(self):
        """The scanner itself flags a bad call."""
        violations = self._find_logger_violations('logger.info("x", pair="APT/USDC")')
        self.assertEqual(violations[0]["invalid_kwarg"], "pair")


class TestJSONFormatter(unittest.TestCase):
    def tearDown(self):
        clear_global_context()

    def _format(self, **context) -> Dict[str, Any]:
        record = logging.LogRecord("duet.test", logging.INFO, __file__, 1, "hello", None, None)
        if context:
            record.context = context
        return json.loads(JSONFormatter().format(record))

    def test_fields(self):
        entry = self._format(pair="APT/USDC")
        self.assertEqual(entry["level"], "INFO")
        self.assertEqual(entry["logger"], "duet.test")
        self.assertEqual(entry["message"], "hello")
        self.assertEqual(entry["context"], {"pair": "APT/USDC"})
        self.assertIn("T", entry["timestamp"])

    def test_global_context_merged(self):
        set_global_context(service="duet-monitor")
        entry = self._format(pair="APT/USDC")
        self.assertEqual(entry["context"]["service"], "duet-monitor")

    def test_no_context_key_when_empty(self):
        self.assertNotIn("context", self._format())


class TestHelpers(unittest.TestCase):
    def setUp(self):
        self.records = []
        self.base = logging.getLogger(f"test_helpers_{id(self)}")
        self.base.setLevel(logging.DEBUG)
        self.base.handlers = [CapturingHandler(self.records)]
        self.logger = ContextAdapter(self.base, {"component": "test"})

    def test_adapter_merges_default_context(self):
        self.logger.info("x", extra={"context": {"pair": "APT/USDC"}})
        self.assertEqual(self.records[0].context, {"component": "test", "pair": "APT/USDC"})

    def test_log_opportunity(self):
        log_opportunity(self.logger, "APT/USDC", "0.2008", "0.075", "buy-amm-sell-clob", rank=1)
        ctx = self.records[0].context
        self.assertEqual(ctx["margin_pct"], "0.2008")
        self.assertEqual(ctx["rank"], 1)

    def test_log_workflow(self):
        log_workflow(self.logger, "wf_1", "POOL_CREATION", "COMPLETED", tx_hash="0x1")
        self.assertEqual(self.records[0].context["tx_hash"], "0x1")
        self.assertIn("COMPLETED", self.records[0].getMessage())

    def test_log_error(self):
        log_error(self.logger, "NO_QUOTE", "no estimate", pair="APT/USDC")
        record = self.records[0]
        self.assertEqual(record.levelno, logging.ERROR)
        self.assertEqual(record.getMessage(), "[NO_QUOTE] no estimate")
        self.assertEqual(record.context["error_code"], "NO_QUOTE")

    def test_get_logger_returns_adapter(self):
        self.assertIsInstance(get_logger("duet.x", job="monitor"), ContextAdapter)


if __name__ == "__main__":
    unittest.main()
