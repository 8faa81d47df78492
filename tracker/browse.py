"""
Filtering, grouping and dashboard summaries over the issue list.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from shared.types import Issue, IssueType, Priority, ResolutionStatus


def _matches_search(issue: Issue, term: str) -> bool:
    haystacks = [issue.title, issue.description, issue.submitted_by, *issue.tags]
    return any(term in (text or "").lower() for text in haystacks)


def filter_issues(
    issues: Iterable[Issue],
    search: str = "",
    status: Optional[ResolutionStatus | str] = None,
    issue_type: Optional[IssueType | str] = None,
    priority: Optional[Priority | str] = None,
) -> List[Issue]:
    """Returns the issues matching every given criterion; None means "all"."""
    term = (search or "").strip().lower()
    status = ResolutionStatus(status) if status else None
    issue_type = IssueType(issue_type) if issue_type else None
    priority = Priority(priority) if priority else None
    return [
        issue
        for issue in issues
        if (not term or _matches_search(issue, term))
        and (status is None or issue.status == status)
        and (issue_type is None or issue.type == issue_type)
        and (priority is None or issue.priority == priority)
    ]


def sort_by_recent_update(issues: Iterable[Issue]) -> List[Issue]:
    return sorted(issues, key=lambda issue: issue.updated_at, reverse=True)


def group_by_status(issues: Iterable[Issue]) -> Dict[ResolutionStatus, List[Issue]]:
    grouped: Dict[ResolutionStatus, List[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.status, []).append(issue)
    return {status: sort_by_recent_update(group) for status, group in grouped.items()}


def issue_stats(issues: Iterable[Issue]) -> Dict[str, int]:
    issues = list(issues)
    return {
        "total": len(issues),
        "open": sum(1 for i in issues if i.status == ResolutionStatus.OPEN),
        "in_progress": sum(1 for i in issues if i.status == ResolutionStatus.IN_PROGRESS),
        "resolved": sum(1 for i in issues if i.status == ResolutionStatus.RESOLVED),
        "urgent": sum(1 for i in issues if i.priority == Priority.URGENT),
    }


def recent_activity(issues: Iterable[Issue], limit: int = 5) -> List[Issue]:
    return sort_by_recent_update(issues)[:limit]
