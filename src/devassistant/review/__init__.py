"""
Pull request review.

Components:
    - diff: Parse unified diffs and index changed files
    - checks: Regex checks over added lines
    - analyzer: Combine documentation context, checks and an LLM review
"""

from devassistant.review.analyzer import PrAnalysisResult, PrAnalyzer
from devassistant.review.checks import Issue, Severity, Suggestion, scan_file
from devassistant.review.diff import ChangedFile, index_changes, parse_diff

__all__ = [
    "ChangedFile",
    "index_changes",
    "Issue",
    "parse_diff",
    "PrAnalysisResult",
    "PrAnalyzer",
    "scan_file",
    "Severity",
    "Suggestion",
]
