"""
Pattern-based static checks over the added lines of a diff.

These are cheap heuristics meant to point a reviewer at suspicious lines,
not a linter. Only lines added by the change are scanned.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from devassistant.review.diff import ChangedFile


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class IssueCategory(str, Enum):
    SECURITY = "security"
    BUG = "bug"


class SuggestionCategory(str, Enum):
    STYLE = "style"
    DOCUMENTATION = "documentation"
    REFACTORING = "refactoring"


@dataclass
class Issue:
    """A likely problem in a changed line."""

    severity: Severity
    category: IssueCategory
    file: str
    line: int
    """1-based position within the file's changed lines."""

    message: str
    code: Optional[str] = None


@dataclass
class Suggestion:
    """An improvement that is not a defect."""

    category: SuggestionCategory
    file: str
    line: Optional[int]
    message: str
    code: Optional[str] = None


@dataclass
class FileFindings:
    issues: list[Issue] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)


SECURITY_PATTERNS: dict[str, str] = {
    r"\beval\(": "eval() can execute arbitrary code",
    r"\bexec\(": "exec() can execute arbitrary code",
    r"Runtime\.getRuntime\(\)": "Direct use of Runtime can run arbitrary processes",
    r"\.innerHTML": "Assigning innerHTML can lead to XSS",
    r"dangerouslySetInnerHTML": "Possible XSS vulnerability",
    r"SQL.*WHERE.*\+": "Possible SQL injection through string concatenation",
    r"password.*=.*\"": "Hard-coded password",
    r"api_key.*=.*\"": "Hard-coded API key",
}

BUG_PATTERNS: dict[str, str] = {
    r"\bif\s*\(?\s*\w+\s*=\s*[^=]": "Assignment inside a condition, did you mean ==?",
    r"for.*in.*range\(0,\s*len": "Iterate with enumerate() instead of range(len(...))",
    r"\.equals\(null\)": "Comparing to null with equals() can throw a NullPointerException",
    r"catch.*\{\s*\}": "Empty catch block hides errors",
    r"except\s*:\s*pass": "Bare except with pass hides errors",
    r"Thread\.sleep": "Thread.sleep often hides a synchronization problem",
}

STYLE_PATTERNS: dict[str, str] = {
    r"\bTODO\b": "Unfinished TODO comment",
    r"\bFIXME\b": "Unfinished FIXME comment",
    r"console\.log": "Leftover console.log debugging",
    r"\bprintln\b": "Leftover println debugging",
    r"\bdebugger\b": "Leftover debugger statement",
}

DOCUMENTED_LANGUAGES: dict[str, tuple[re.Pattern, re.Pattern]] = {
    ".kt": (re.compile(r"(public|internal)\s+(suspend\s+)?fun"), re.compile(r"/\*\*")),
    ".java": (re.compile(r"public\s+[\w<>\[\], ]+\s+\w+\s*\("), re.compile(r"/\*\*")),
    ".py": (re.compile(r"^\+\s*def\s+[a-zA-Z]\w*\s*\("), re.compile(r'"""|\'\'\'')),
}

LARGE_CHANGE_LINES = 50


def _compile(patterns: dict[str, str]) -> list[tuple[re.Pattern, str]]:
    return [(re.compile(pattern, re.IGNORECASE), message) for pattern, message in patterns.items()]


_SECURITY = _compile(SECURITY_PATTERNS)
_BUGS = _compile(BUG_PATTERNS)
_STYLE = _compile(STYLE_PATTERNS)


def scan_file(changed: ChangedFile) -> FileFindings:
    """
    Run every check against one changed file.

    Args:
        changed: File parsed from the diff

    Returns:
        Issues and suggestions found in the file's added lines
    """
    findings = FileFindings()
    added = changed.added_lines

    for regex, message in _SECURITY:
        for position, line in added:
            if regex.search(line[1:]):
                findings.issues.append(Issue(
                    severity=Severity.HIGH,
                    category=IssueCategory.SECURITY,
                    file=changed.path,
                    line=position,
                    message=message,
                    code=line[1:].strip(),
                ))

    for regex, message in _BUGS:
        for position, line in added:
            if regex.search(line[1:]):
                findings.issues.append(Issue(
                    severity=Severity.MEDIUM,
                    category=IssueCategory.BUG,
                    file=changed.path,
                    line=position,
                    message=message,
                    code=line[1:].strip(),
                ))

    for regex, message in _STYLE:
        for position, line in added:
            if regex.search(line[1:]):
                findings.suggestions.append(Suggestion(
                    category=SuggestionCategory.STYLE,
                    file=changed.path,
                    line=position,
                    message=message,
                    code=line[1:].strip(),
                ))

    if _missing_documentation(changed):
        findings.suggestions.append(Suggestion(
            category=SuggestionCategory.DOCUMENTATION,
            file=changed.path,
            line=None,
            message="New public functions should have doc comments",
        ))

    if len(changed.changes) > LARGE_CHANGE_LINES:
        findings.suggestions.append(Suggestion(
            category=SuggestionCategory.REFACTORING,
            file=changed.path,
            line=None,
            message=(
                f"File has many changes ({len(changed.changes)} lines). "
                "Consider splitting them into several pull requests."
            ),
        ))

    return findings


def _missing_documentation(changed: ChangedFile) -> bool:
    for suffix, (function_re, doc_re) in DOCUMENTED_LANGUAGES.items():
        if changed.path.endswith(suffix):
            added = [line for _, line in changed.added_lines]
            has_function = any(function_re.search(line) for line in added)
            has_docs = any(doc_re.search(line) for line in added)
            return has_function and not has_docs
    return False
