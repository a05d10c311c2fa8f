"""
Pull request analysis.

Indexes a diff next to the project documentation, pulls documentation
context for every changed file, runs the static checks and summarizes the
findings. An LLM, when available, adds a narrative review.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from devassistant.llm import LLMUnavailableError, OllamaClient
from devassistant.review.checks import Issue, Severity, Suggestion, scan_file
from devassistant.review.diff import ChangedFile, index_changes, parse_diff
from devassistant.retrieval.store import DocumentStore

logger = logging.getLogger(__name__)

CONTEXT_TOP_K = 3
QUERY_CHANGE_LINES = 10
PROMPT_PATCH_CHARS = 3000
PROMPT_MAX_FILES = 15

REVIEW_PROMPT = """You are an experienced code reviewer. Review the pull request below.

Changed files:
{files}

Related project documentation:
{context}

Static checks already reported {issue_count} issues.

Reply with a short SUMMARY of what the change does, then ISSUES (bugs, security
problems, error handling) and SUGGESTIONS (design, tests, documentation).
Name files and lines where possible."""

_SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1}


@dataclass
class PrAnalysisResult:
    """Outcome of a pull request analysis."""

    summary: str
    issues: list[Issue] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    files_changed: list[str] = field(default_factory=list)
    llm_review: Optional[str] = None
    llm_error: Optional[str] = None

    @property
    def high_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if issue.severity is Severity.HIGH]

    def to_markdown(self) -> str:
        """Render the result as a pull request comment."""
        lines = [self.summary.rstrip(), ""]

        if self.issues:
            lines += ["## Issues", ""]
            for issue in sorted(self.issues, key=lambda i: _SEVERITY_ORDER[i.severity]):
                lines.append(
                    f"### [{issue.severity.value.upper()}] {issue.category.value} - "
                    f"{issue.file}:{issue.line}"
                )
                lines += ["", f"**Problem:** {issue.message}"]
                if issue.code:
                    lines += ["", "```", issue.code, "```"]
                lines.append("")

        if self.suggestions:
            lines += ["## Suggestions", ""]
            for suggestion in self.suggestions:
                location = suggestion.file
                if suggestion.line is not None:
                    location = f"{suggestion.file}:{suggestion.line}"
                lines += [f"### {suggestion.category.value} - {location}", "", suggestion.message]
                if suggestion.code:
                    lines += ["", "```", suggestion.code, "```"]
                lines.append("")

        if self.llm_review:
            lines += ["## LLM review", "", self.llm_review, ""]

        lines += ["---", "Automated analysis by DevAssistant"]
        return "\n".join(lines) + "\n"


class PrAnalyzer:
    """Analyze a unified diff with documentation context."""

    def __init__(
        self,
        store: DocumentStore,
        llm: Optional[OllamaClient] = None,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            store: Store whose index file holds the documentation index
            llm: Client for the narrative review; None skips it
            chunk_size: Words per chunk when indexing long patches
            chunk_overlap: Words shared by consecutive patch chunks
        """
        self.store = store
        self.llm = llm
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def analyze(self, diff: str, ref: str = "local") -> PrAnalysisResult:
        """
        Analyze a diff.

        Args:
            diff: Unified diff text
            ref: Pull request reference used to name indexed diff chunks

        Returns:
            PrAnalysisResult with findings and summary
        """
        files = parse_diff(diff)
        if not files:
            return PrAnalysisResult(summary="No changes to analyze")

        logger.info(f"Analyzing {len(files)} changed files from {ref}")

        if not self.store.load():
            logger.info("No documentation index loaded; reviewing without docs context")
        docs_count = self.store.size
        index_changes(self.store, files, ref, self.chunk_size, self.chunk_overlap)

        issues: list[Issue] = []
        suggestions: list[Suggestion] = []
        contexts: dict[str, str] = {}

        for changed in files:
            contexts[changed.path] = self._relevant_context(changed, docs_count)
            findings = scan_file(changed)
            issues.extend(findings.issues)
            suggestions.extend(findings.suggestions)

        result = PrAnalysisResult(
            summary=build_summary(files, issues, suggestions),
            issues=issues,
            suggestions=suggestions,
            files_changed=[changed.path for changed in files],
        )

        if self.llm is not None:
            try:
                result.llm_review = self.llm.generate(
                    self._review_prompt(files, contexts, len(issues))
                )
            except LLMUnavailableError as e:
                logger.warning(f"LLM review skipped: {e}")
                result.llm_error = str(e)

        return result

    def _relevant_context(self, changed: ChangedFile, docs_count: int) -> str:
        """Documentation chunks most similar to a file's name and first changes."""
        if docs_count == 0:
            return ""

        query = f"File: {changed.path}\nChanges:\n" + "\n".join(
            changed.changes[:QUERY_CHANGE_LINES]
        )
        # Rank everything, then keep documentation only
        results = [
            result
            for result in self.store.search(query, top_k=self.store.size)
            if not result.document.source.startswith("pr:")
        ][:CONTEXT_TOP_K]
        return "\n\n".join(
            f"Source: {result.document.source}\n{result.document.content}"
            for result in results
        )

    def _review_prompt(
        self,
        files: list[ChangedFile],
        contexts: dict[str, str],
        issue_count: int,
    ) -> str:
        file_blocks = []
        for changed in files[:PROMPT_MAX_FILES]:
            file_blocks.append(
                f"=== {changed.path} ===\n"
                f"Status: {changed.status}\n"
                f"Changes: +{changed.additions}/-{changed.deletions}\n\n"
                f"{changed.patch[:PROMPT_PATCH_CHARS]}"
            )
        context = "\n\n".join(text for text in contexts.values() if text) or "None found"
        return REVIEW_PROMPT.format(
            files="\n\n".join(file_blocks),
            context=context,
            issue_count=issue_count,
        )


def build_summary(
    files: list[ChangedFile],
    issues: list[Issue],
    suggestions: list[Suggestion],
) -> str:
    """Markdown overview of a pull request analysis."""
    total_changes = sum(len(changed.changes) for changed in files)
    counts = {
        severity: sum(1 for issue in issues if issue.severity is severity)
        for severity in Severity
    }

    lines = [
        "## Pull request analysis",
        "",
        "### Statistics",
        f"- Files changed: {len(files)}",
        f"- Changed lines: {total_changes}",
        "",
        "### Issues",
    ]
    if not issues:
        lines.append("No critical problems found")
    else:
        for severity in Severity:
            if counts[severity]:
                lines.append(f"- {severity.value.capitalize()} priority: {counts[severity]}")
    lines += ["", "### Suggestions", f"- Total suggestions: {len(suggestions)}"]

    if counts[Severity.HIGH]:
        lines += [
            "",
            "High priority problems found. Fix them before merging.",
        ]
    return "\n".join(lines) + "\n"
