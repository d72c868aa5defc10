"""Script analyzer: dangerous or wasteful npm scripts."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    Severity,
    info_finding,
)


@dataclass(frozen=True)
class ScriptRule:
    pattern: re.Pattern[str]
    message: str
    severity: Severity


DANGER_RULES: tuple[ScriptRule, ...] = (
    ScriptRule(
        re.compile(r"rm\s+-rf"),
        'Dangerous: "rm -rf" command detected. This can delete files permanently.',
        "error",
    ),
    ScriptRule(
        re.compile(r"sudo\s+"),
        "Requires elevated privileges (sudo). Package scripts should not require root access.",
        "error",
    ),
    ScriptRule(
        re.compile(r"eval\s*\("),
        "eval() detected. This is a potential security risk if used with user input.",
        "warning",
    ),
    ScriptRule(
        re.compile(r">\s*/dev/null\s+2>&1"),
        "Output suppression detected (> /dev/null). This may hide important errors.",
        "info",
    ),
    ScriptRule(
        re.compile(r"curl\s+.*\|\s*(ba)?sh"),
        "Piping curl to shell detected. Always inspect downloaded scripts.",
        "error",
    ),
    ScriptRule(
        re.compile(r"wget\s+.*\|\s*(ba)?sh"),
        "Piping wget to shell detected. Always inspect downloaded scripts.",
        "error",
    ),
)

INEFFICIENCY_RULES: tuple[ScriptRule, ...] = (
    ScriptRule(
        re.compile(r"npm\s+install(?!\s+--)"),
        'Running "npm install" in scripts. Consider prepare/postinstall hooks instead.',
        "info",
    ),
    ScriptRule(
        re.compile(r"&&\s+npm\s+run\s+\w+\s+&&\s+npm\s+run"),
        "Sequential script execution detected. Consider npm-run-all for parallel execution.",
        "info",
    ),
)

TEST_PLACEHOLDERS = (
    'echo "error: no test specified"',
    "echo error: no test specified",
    "exit 1",
    "no test",
)


class ScriptAnalyzer:
    name = "script"

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        scripts = context.manifest.get("scripts")
        if not isinstance(scripts, Mapping) or not scripts:
            return []
        findings = _check_test_script(scripts)
        for script_name, body in scripts.items():
            if not isinstance(body, str):
                continue
            findings += _apply(DANGER_RULES, script_name, body, FindingTag.SECURITY)
            findings += _apply(INEFFICIENCY_RULES, script_name, body, FindingTag.PERFORMANCE)
        return findings


def _apply(rules: tuple[ScriptRule, ...], script_name: str, body: str, tag: FindingTag) -> list[Finding]:
    return [
        Finding(
            severity=rule.severity,
            message=f'Script "{script_name}": {rule.message}',
            tags=frozenset((FindingTag.SCRIPTS, tag)),
            meta={"script": script_name, "content": body},
        )
        for rule in rules
        if rule.pattern.search(body)
    ]


def _check_test_script(scripts: Mapping[str, str]) -> list[Finding]:
    tags = (FindingTag.SCRIPTS, FindingTag.QUALITY)
    test = scripts.get("test")
    if not isinstance(test, str) or not test:
        return [info_finding('No "test" script found. Add a test script to improve code quality.', tags=tags)]
    lowered = test.lower()
    if any(p in lowered for p in TEST_PLACEHOLDERS):
        return [
            info_finding(
                "Test script is a placeholder. Configure actual tests for better quality.",
                tags=tags,
            )
        ]
    return []
