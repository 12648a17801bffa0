"""Result aggregation: flatten per-capability findings and count severities."""

from typing import Iterable, List, Sequence, Tuple

from .models import Issue, Severity, Summary


def summarize_issues(issues: Sequence[Issue]) -> Summary:
    """Count issues per severity bucket."""
    return Summary(
        total_issues=len(issues),
        critical_count=sum(1 for i in issues if i.severity == Severity.CRITICAL),
        high_count=sum(1 for i in issues if i.severity == Severity.HIGH),
        medium_count=sum(1 for i in issues if i.severity == Severity.MEDIUM),
        low_count=sum(1 for i in issues if i.severity == Severity.LOW),
        info_count=sum(1 for i in issues if i.severity == Severity.INFO),
    )


def aggregate(outcomes: Iterable[Sequence[Issue]]) -> Tuple[List[Issue], Summary]:
    """
    Concatenate per-capability issue lists and summarize them.

    Outcomes must already be in capability registration order; a capability
    that failed contributes an empty sequence. Findings are not deduplicated.
    """
    issues: List[Issue] = []
    for outcome in outcomes:
        issues.extend(outcome)

    return issues, summarize_issues(issues)
