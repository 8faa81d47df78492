"""
Seed data and simulated uploads used when no backend is reachable.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable, Dict, List

from shared.types import (
    ChatMessage,
    ContentDetails,
    GeneralDetails,
    Issue,
    IssueType,
    LocalFile,
    MediaFile,
    Priority,
    ResolutionStatus,
    TechnicalDetails,
)
from tracker.context import AppContext

logger = logging.getLogger(__name__)

SEED_ISSUE_COUNT = 15
SEED_TYPES = (IssueType.CONTENT, IssueType.TECHNICAL, IssueType.GENERAL)

SYSTEM_SENDER = "System"
ISSUE_CREATED_MESSAGE = (
    "Issue created successfully. A support representative will be with you shortly."
)

SUPPORT_RESPONSES = (
    "Thanks for reporting this issue. We'll look into it right away.",
    "I've assigned this to our technical team. You should hear back within 24 hours.",
    "Could you provide more details about when this started happening?",
    "We've identified the issue and are working on a fix.",
    "The issue has been resolved. Please let us know if you're still experiencing problems.",
    "I've updated the status. Is there anything else I can help you with?",
)

MOCK_UPLOAD_MIN_DELAY_SECONDS = 1.5
MOCK_UPLOAD_MAX_DELAY_SECONDS = 2.5
MOCK_URL_TEMPLATE = "https://drive.google.com/file/d/mock-{file_id}/view?usp=sharing"

_CONTENT_TITLES = ("Blog Post", "Social Media", "Newsletter", "Video Script")
_TECHNICAL_TITLES = ("Login Error", "Database Connection", "API Timeout", "UI Bug")
_GENERAL_TITLES = ("Account Access", "Feature Request", "Policy Question", "Training")


class MockDataGenerator:
    """Produces randomized seed issues, chat threads and upload results."""

    def __init__(
        self,
        context: AppContext,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.context = context
        self.sleep = sleep

    def generate_issues(self, count: int = SEED_ISSUE_COUNT) -> List[Issue]:
        issues = [
            self._generate_issue(SEED_TYPES[i % len(SEED_TYPES)], i)
            for i in range(count)
        ]
        return sorted(issues, key=lambda issue: issue.submitted_at, reverse=True)

    def generate_chat_messages(self, issue_id: str) -> List[ChatMessage]:
        now = self.context.now()
        users = self.context.users
        count = self.context.rng.randint(2, 4)
        # Replies are spaced 30 minutes apart, ending 30 minutes ago; the
        # system notice precedes the first reply.
        messages = [
            ChatMessage(
                id=self.context.new_id(),
                issue_id=issue_id,
                sender=SYSTEM_SENDER,
                message=ISSUE_CREATED_MESSAGE,
                timestamp=now - timedelta(minutes=30 * (count + 1)),
                is_system=True,
            )
        ]

        for i in range(count):
            sender = users[(1 + i % 2) % len(users)]
            messages.append(
                ChatMessage(
                    id=self.context.new_id(),
                    issue_id=issue_id,
                    sender=sender.name,
                    message=SUPPORT_RESPONSES[i % len(SUPPORT_RESPONSES)],
                    timestamp=now - timedelta(minutes=30 * (count - i)),
                    is_system=False,
                )
            )
        return messages

    def generate_threads(self, issues: List[Issue]) -> Dict[str, List[ChatMessage]]:
        return {issue.id: self.generate_chat_messages(issue.id) for issue in issues}

    def mock_upload(self, file: LocalFile) -> MediaFile:
        """Simulates a cloud upload, including network latency. Never fails."""
        delay = self.context.rng.uniform(
            MOCK_UPLOAD_MIN_DELAY_SECONDS, MOCK_UPLOAD_MAX_DELAY_SECONDS
        )
        self.sleep(delay)
        logger.info("Mock upload of %s completed after %.2fs", file.name, delay)
        return MediaFile(
            id=self.context.new_id(),
            name=file.name,
            url=MOCK_URL_TEMPLATE.format(file_id=self.context.new_id()),
            type=file.type,
            size=file.size,
            uploaded_at=self.context.now(),
        )

    def _generate_issue(self, issue_type: IssueType, index: int) -> Issue:
        rng = self.context.rng
        now = self.context.now()
        users = self.context.users
        base = dict(
            id=self.context.new_id(),
            submitted_by=users[index % len(users)].name,
            submitted_at=now - timedelta(days=30 * rng.random()),
            updated_at=now - timedelta(days=rng.random()),
            status=rng.choice(list(ResolutionStatus)),
            priority=rng.choice(list(Priority)),
            media_files=[],
        )

        if issue_type == IssueType.CONTENT:
            return Issue(
                **base,
                type=IssueType.CONTENT,
                title=f"Content Request: {_CONTENT_TITLES[index % 4]}",
                description=(
                    "Need assistance with content creation and strategy for "
                    "upcoming campaign."
                ),
                tags=["content", "marketing", "creative"],
                content_details=ContentDetails(
                    content_type=rng.choice(["blog", "social", "email", "video"]),
                    platform=rng.choice(["Website", "Instagram", "LinkedIn", "YouTube"]),
                    audience=rng.choice(["B2B", "B2C", "Internal", "Partners"]),
                    deadline=now + timedelta(days=14 * rng.random()),
                ),
            )
        if issue_type == IssueType.TECHNICAL:
            return Issue(
                **base,
                type=IssueType.TECHNICAL,
                title=f"Technical Issue: {_TECHNICAL_TITLES[index % 4]}",
                description=(
                    "Experiencing technical difficulties that need immediate attention."
                ),
                tags=["bug", "technical", "urgent"],
                technical_details=TechnicalDetails(
                    system_type=rng.choice(
                        ["Web Application", "Mobile App", "API", "Database"]
                    ),
                    browser=rng.choice(["Chrome", "Firefox", "Safari", "Edge"]),
                    error_message="TypeError: Cannot read property of undefined",
                    steps_to_reproduce=(
                        "1. Navigate to dashboard\n2. Click on user profile\n"
                        "3. Error appears"
                    ),
                ),
            )
        return Issue(
            **base,
            type=IssueType.GENERAL,
            title=f"General Request: {_GENERAL_TITLES[index % 4]}",
            description=(
                "General inquiry that requires attention from the appropriate team."
            ),
            tags=["general", "inquiry"],
            general_details=GeneralDetails(
                category=rng.choice(["Access", "Feature", "Policy", "Training"]),
                department=rng.choice(["IT", "HR", "Marketing", "Sales"]),
                urgency=rng.choice(["Low", "Medium", "High"]),
            ),
        )
