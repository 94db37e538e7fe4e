#!/usr/bin/env python3
"""
Check that docs/test_scenarios_business_summary.md documents every scenario
in tests/test_integration_scenarios.py, and nothing else.

Run: python scripts/validate_test_docs_sync.py
"""

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_FILE = PROJECT_ROOT / 'tests' / 'test_integration_scenarios.py'
DOC_FILE = PROJECT_ROOT / 'docs' / 'test_scenarios_business_summary.md'

CLASS_RE = re.compile(r'^class (Test\w+)')
METHOD_RE = re.compile(r'^\s+def (test_\w+)')
DOC_CLASS_RE = re.compile(r'\*\*Test Class\*\*:\s*`(Test\w+)`')
DOC_METHOD_RE = re.compile(r'\*\*Test Method\*\*:\s*`(test_\w+)`')


@dataclass
class SyncReport:
    scenarios: dict[str, list[str]] = field(default_factory=dict)
    undocumented_classes: set[str] = field(default_factory=set)
    undocumented_methods: set[str] = field(default_factory=set)
    stale_classes: set[str] = field(default_factory=set)
    stale_methods: set[str] = field(default_factory=set)

    @property
    def in_sync(self) -> bool:
        return not (
            self.undocumented_classes
            or self.undocumented_methods
            or self.stale_classes
            or self.stale_methods
        )


def scenario_tests(test_file: Path) -> dict[str, list[str]]:
    """Test classes mapped to their test methods, in file order."""
    scenarios: dict[str, list[str]] = {}
    current = None
    for line in test_file.read_text().splitlines():
        class_match = CLASS_RE.match(line)
        if class_match:
            current = class_match.group(1)
            scenarios[current] = []
        elif current:
            method_match = METHOD_RE.match(line)
            if method_match:
                scenarios[current].append(method_match.group(1))
    return scenarios


def documented_tests(doc_file: Path) -> tuple[set[str], set[str]]:
    content = doc_file.read_text()
    return set(DOC_CLASS_RE.findall(content)), set(DOC_METHOD_RE.findall(content))


def compare(test_file: Path = TEST_FILE, doc_file: Path = DOC_FILE) -> SyncReport:
    scenarios = scenario_tests(test_file)
    doc_classes, doc_methods = documented_tests(doc_file)
    methods = {m for names in scenarios.values() for m in names}

    return SyncReport(
        scenarios=scenarios,
        undocumented_classes=set(scenarios) - doc_classes,
        undocumented_methods=methods - doc_methods,
        stale_classes=doc_classes - set(scenarios),
        stale_methods=doc_methods - methods,
    )


def main() -> int:
    for path in (TEST_FILE, DOC_FILE):
        if not path.exists():
            print(f"Missing file: {path}")
            return 1

    report = compare()
    _, doc_methods = documented_tests(DOC_FILE)

    print(f"{TEST_FILE.name} <-> {DOC_FILE.name}")
    for cls, methods in report.scenarios.items():
        marker = " " if cls not in report.undocumented_classes else "!"
        print(f" {marker} {cls}")
        for method in methods:
            print(f"     {'ok' if method in doc_methods else '!!'} {method}")

    problems = [
        ("Undocumented class", report.undocumented_classes),
        ("Undocumented method", report.undocumented_methods),
        ("Documented class no longer exists", report.stale_classes),
        ("Documented method no longer exists", report.stale_methods),
    ]
    for label, names in problems:
        for name in sorted(names):
            print(f"{label}: {name}")

    if report.in_sync:
        print("All scenarios documented.")
        return 0
    return 1


if __name__ == '__main__':
    sys.exit(main())
