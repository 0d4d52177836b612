#!/usr/bin/env python3
"""
Check that docs/test_scenarios_business_summary.md documents every scenario
in tests/test_integration_scenarios.py, and nothing else.

Run: python scripts/validate_test_docs_sync.py
"""

import ast
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SCENARIO_FILE = PROJECT_ROOT / "tests" / "test_integration_scenarios.py"
SUMMARY_FILE = PROJECT_ROOT / "docs" / "test_scenarios_business_summary.md"

DOC_CLASS_PATTERN = re.compile(r"\*\*Test Class\*\*:\s*`(Test\w+)`")
DOC_METHOD_PATTERN = re.compile(r"\*\*Test Method\*\*:\s*`(test_\w+)`")


def collect_scenarios(test_file: Path) -> dict[str, list[str]]:
    """Map each Test* class to its test_* methods, in file order."""
    tree = ast.parse(test_file.read_text())
    scenarios = {}
    for node in tree.body:
        if isinstance(node, ast.ClassDef) and node.name.startswith("Test"):
            scenarios[node.name] = [
                item.name
                for item in node.body
                if isinstance(item, ast.FunctionDef) and item.name.startswith("test_")
            ]
    return scenarios


def collect_documented(doc_file: Path) -> tuple[set[str], set[str]]:
    content = doc_file.read_text()
    return set(DOC_CLASS_PATTERN.findall(content)), set(DOC_METHOD_PATTERN.findall(content))


@dataclass
class SyncReport:
    scenarios: dict[str, list[str]]
    missing_classes: set[str] = field(default_factory=set)
    missing_methods: set[str] = field(default_factory=set)
    stale_classes: set[str] = field(default_factory=set)
    stale_methods: set[str] = field(default_factory=set)

    @property
    def in_sync(self) -> bool:
        return not (self.missing_classes or self.missing_methods or self.stale_classes or self.stale_methods)


def check_sync(test_file: Path = SCENARIO_FILE, doc_file: Path = SUMMARY_FILE) -> SyncReport:
    scenarios = collect_scenarios(test_file)
    doc_classes, doc_methods = collect_documented(doc_file)
    methods = {m for names in scenarios.values() for m in names}

    return SyncReport(
        scenarios=scenarios,
        missing_classes=set(scenarios) - doc_classes,
        missing_methods=methods - doc_methods,
        stale_classes=doc_classes - set(scenarios),
        stale_methods=doc_methods - methods,
    )


def main() -> int:
    for path in (SCENARIO_FILE, SUMMARY_FILE):
        if not path.exists():
            print(f"❌ File not found: {path}")
            return 1

    report = check_sync()

    print("=" * 60)
    print("Scenario Documentation Sync")
    print("=" * 60)
    for label, names in (
        ("Undocumented class", report.missing_classes),
        ("Undocumented method", report.missing_methods),
        ("Documented class no longer exists", report.stale_classes),
        ("Documented method no longer exists", report.stale_methods),
    ):
        for name in sorted(names):
            print(f"   - {label}: {name}")

    if report.in_sync:
        print("\n✅ Business summary matches the integration scenarios")
        return 0

    print(f"\n❌ Update {SUMMARY_FILE.relative_to(PROJECT_ROOT)}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
