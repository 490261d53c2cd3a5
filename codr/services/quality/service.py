"""
Quality Assurance Service.

Heuristic checks over generated source files: lint, typing, security and
performance smells. Each check reports at most one issue of its kind per file;
the score is 100 minus a weighted penalty capped at 50.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from ...core.logging import get_logger
from ...models.generation import GeneratedFile
from ...models.quality import CodeIssue, IssueType, QualityReport, QualitySummary

logger = get_logger(__name__)

PASS_SCORE = 70
MAX_PENALTY = 50
LARGE_FILE_CHARS = 50_000

PENALTY_WEIGHTS: dict[str, int] = {
    "error": 10,
    "warning": 3,
    "info": 1,
}

SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
TYPED_EXTENSIONS = (".ts", ".tsx")

_CONST_DECL_RE = re.compile(r"const\s+\w+\s*=")
_FUNCTION_DECL_RE = re.compile(r"function\s+\w+\s*\([^)]*\)\s*{")
_SECRET_NAME_RE = re.compile(r"api[_-]?key|secret|token", re.IGNORECASE)
_SECRET_VALUE_RE = re.compile(r"['\"`][a-zA-Z0-9_-]{20,}['\"`]")

Check = Callable[[GeneratedFile], Iterable[CodeIssue]]


def _issue(file: GeneratedFile, type_: IssueType, rule: str, message: str) -> CodeIssue:
    return CodeIssue(type=type_, message=message, file=file.path, rule=rule)


def check_lint(file: GeneratedFile) -> Iterable[CodeIssue]:
    if not file.path.endswith(SCRIPT_EXTENSIONS):
        return
    if "console.log" in file.content:
        yield _issue(file, "warning", "no-console", "console.log statement found - remove for production")
    if _CONST_DECL_RE.search(file.content):
        yield _issue(file, "info", "no-unused-vars", "Consider checking for unused variables")


def check_types(file: GeneratedFile) -> Iterable[CodeIssue]:
    if not file.path.endswith(TYPED_EXTENSIONS):
        return
    if ": any" in file.content:
        yield _issue(file, "warning", "no-any", 'Avoid using "any" type - use specific types instead')
    if _FUNCTION_DECL_RE.search(file.content):
        yield _issue(file, "info", "typedef", "Consider adding return types to functions")


def check_security(file: GeneratedFile) -> Iterable[CodeIssue]:
    content = file.content
    if "eval(" in content:
        yield _issue(file, "error", "no-eval", "Use of eval() is a security risk")
    if "innerHTML" in content:
        yield _issue(
            file,
            "warning",
            "no-inner-html",
            "innerHTML can be vulnerable to XSS - use textContent or sanitize input",
        )
    if _SECRET_NAME_RE.search(content) and _SECRET_VALUE_RE.search(content):
        yield _issue(file, "error", "no-hardcoded-secrets", "Potential hardcoded secret detected")


def check_performance(file: GeneratedFile) -> Iterable[CodeIssue]:
    if len(file.content) > LARGE_FILE_CHARS:
        yield _issue(file, "warning", "bundle-size", "Large file detected - consider code splitting")
    if ".forEach" in file.content and "=>" in file.content:
        yield _issue(file, "info", "performance", "Consider using for...of loops for better performance")


DEFAULT_CHECKS: tuple[Check, ...] = (check_lint, check_types, check_security, check_performance)


def calculate_score(issues: Sequence[CodeIssue]) -> int:
    penalty = sum(PENALTY_WEIGHTS.get(issue.type, 0) for issue in issues)
    return max(0, 100 - min(penalty, MAX_PENALTY))


class QualityAssurance:
    """Service producing quality reports for generated apps."""

    def __init__(self, checks: Sequence[Check] = DEFAULT_CHECKS) -> None:
        self.checks = tuple(checks)

    def analyze(self, files: Sequence[GeneratedFile]) -> QualityReport:
        """Run every check over every file.

        Args:
            files: Files to analyze; normally the latest version of each path.

        Returns:
            The quality report. ``passed`` is true at a score of 70 or more.
        """
        issues = [issue for check in self.checks for f in files for issue in check(f)]
        score = calculate_score(issues)
        report = QualityReport(
            passed=score >= PASS_SCORE,
            score=score,
            issues=issues,
            summary=QualitySummary(
                errors=sum(1 for i in issues if i.type == "error"),
                warnings=sum(1 for i in issues if i.type == "warning"),
                suggestions=sum(1 for i in issues if i.type == "info"),
            ),
        )

        logger.info(
            "Quality analysis completed",
            files=len(files),
            score=score,
            passed=report.passed,
            errors=report.summary.errors,
            warnings=report.summary.warnings,
        )
        return report
