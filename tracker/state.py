"""
In-memory issue and chat state, mirrored to the local store after every mutation.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import timezone
from enum import StrEnum
from typing import Dict, List, Optional

from shared.json_utils import parse_datetime
from shared.types import (
    ChatMessage,
    ContentDetails,
    GeneralDetails,
    Issue,
    IssueType,
    MediaFile,
    Priority,
    ResolutionStatus,
    TechnicalDetails,
)
from tracker.context import AppContext
from tracker.local_store import LocalStore
from tracker.mock_data import SYSTEM_SENDER, MockDataGenerator
from tracker.scheduler import ScheduledTask, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

AUTO_REPLY_SENDER = "Sarah Wilson"
AUTO_REPLY_MIN_DELAY_SECONDS = 2.0
AUTO_REPLY_MAX_DELAY_SECONDS = 5.0
AUTO_RESPONSES = (
    "Thanks for the update! I'll look into this right away.",
    "I've received your message and will get back to you shortly.",
    "Let me check on this and I'll update you soon.",
    "Thanks for the additional information. This helps a lot!",
    "I'm working on this now. I'll keep you posted on the progress.",
)


class View(StrEnum):
    DASHBOARD = "dashboard"
    SUBMIT = "submit"
    ISSUES = "issues"
    CHAT = "chat"


class IssueTracker:
    """
    Application state for one client session.

    Holds the issue list, the per-issue message threads, the selected issue and
    the current view. Every mutation persists both collections; mutations are
    serialized with a lock because delayed replies arrive on timer threads.
    """

    def __init__(
        self,
        store: LocalStore,
        context: AppContext | None = None,
        generator: MockDataGenerator | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.store = store
        self.context = context or AppContext()
        self.generator = generator or MockDataGenerator(self.context)
        self.scheduler = scheduler or ThreadingScheduler()
        self.issues: List[Issue] = []
        self.messages: Dict[str, List[ChatMessage]] = {}
        self.selected_issue: Optional[Issue] = None
        self.current_view = View.DASHBOARD
        self._pending_replies: List[ScheduledTask] = []
        self._lock = threading.RLock()

    def load(self) -> None:
        """Rehydrate from the store, seeding mock data on first run."""
        with self._lock:
            issues = self.store.load_issues()
            if not issues:
                logger.info("No stored issues found, generating seed data")
                self.issues = self.generator.generate_issues()
                self.messages = self.generator.generate_threads(self.issues)
                self._persist()
                return
            self.issues = issues
            self.messages = self.store.load_messages()

    def build_issue(
        self,
        *,
        title: str,
        description: str,
        issue_type: IssueType | str,
        priority: Priority | str = Priority.MEDIUM,
        tags: str = "",
        media_files: Optional[List[MediaFile]] = None,
        details: Optional[dict] = None,
    ) -> Issue:
        """
        Assembles a new open issue from submission-form input.

        Raises ValueError when the title or description is blank.
        """
        if not (title or "").strip():
            raise ValueError("Title is required")
        if not (description or "").strip():
            raise ValueError("Description is required")
        issue_type = IssueType(issue_type)
        details = details or {}
        now = self.context.now()
        deadline = parse_datetime(details.get("deadline"))
        if deadline is not None and deadline.tzinfo is None:
            # Date-only form values are midnight UTC.
            deadline = deadline.replace(tzinfo=timezone.utc)
        detail_fields = {}
        if issue_type == IssueType.CONTENT:
            detail_fields["content_details"] = ContentDetails(
                content_type=details.get("content_type") or "",
                platform=details.get("platform") or "",
                audience=details.get("audience") or "",
                deadline=deadline,
            )
        elif issue_type == IssueType.TECHNICAL:
            detail_fields["technical_details"] = TechnicalDetails(
                system_type=details.get("system_type") or "",
                browser=details.get("browser"),
                error_message=details.get("error_message"),
                steps_to_reproduce=details.get("steps_to_reproduce"),
            )
        else:
            detail_fields["general_details"] = GeneralDetails(
                category=details.get("category") or "",
                department=details.get("department") or "",
                urgency=details.get("urgency") or "",
            )

        return Issue(
            id=self.context.new_id(),
            title=title,
            description=description,
            type=issue_type,
            priority=Priority(priority),
            status=ResolutionStatus.OPEN,
            submitted_by=self.context.current_user.name,
            submitted_at=now,
            updated_at=now,
            tags=[tag.strip() for tag in tags.split(",") if tag.strip()],
            media_files=list(media_files or []),
            **detail_fields,
        )

    def submit_issue(self, issue: Issue) -> None:
        with self._lock:
            self.issues = [issue, *self.issues]
            self.messages = {
                **self.messages,
                issue.id: self.generator.generate_chat_messages(issue.id),
            }
            self._persist()
            self.current_view = View.ISSUES

    def change_status(self, issue_id: str, status: ResolutionStatus | str) -> None:
        """Sets an issue's status; any transition is allowed."""
        status = ResolutionStatus(status)
        with self._lock:
            now = self.context.now()
            self.issues = [
                replace(issue, status=status, updated_at=now)
                if issue.id == issue_id
                else issue
                for issue in self.issues
            ]
            if self.selected_issue and self.selected_issue.id == issue_id:
                self.selected_issue = self.get_issue(issue_id)
            self._append_message(
                ChatMessage(
                    id=self.context.new_id(),
                    issue_id=issue_id,
                    sender=SYSTEM_SENDER,
                    message=f'Issue status changed to "{status.value.replace("-", " ")}"',
                    timestamp=now,
                    is_system=True,
                )
            )
            self._persist()

    def select_issue(self, issue_id: str) -> Optional[Issue]:
        with self._lock:
            self.selected_issue = self.get_issue(issue_id)
            if self.selected_issue:
                self.current_view = View.CHAT
            return self.selected_issue

    def show(self, view: View | str) -> None:
        self.current_view = View(view)

    def send_message(self, issue_id: str, text: str) -> ScheduledTask:
        """
        Appends the current user's message and schedules a simulated reply.

        Returns the handle of the pending reply so callers may cancel it.
        """
        with self._lock:
            self._append_message(
                ChatMessage(
                    id=self.context.new_id(),
                    issue_id=issue_id,
                    sender=self.context.current_user.name,
                    message=text,
                    timestamp=self.context.now(),
                    is_system=False,
                )
            )
            self.store.save_messages(self.messages)

            delay = self.context.rng.uniform(
                AUTO_REPLY_MIN_DELAY_SECONDS, AUTO_REPLY_MAX_DELAY_SECONDS
            )
            reply_text = self.context.rng.choice(AUTO_RESPONSES)
            task = self.scheduler.call_later(
                delay, lambda: self._deliver_auto_reply(issue_id, reply_text, task)
            )
            self._pending_replies.append(task)
            return task

    def messages_for(self, issue_id: str) -> List[ChatMessage]:
        return list(self.messages.get(issue_id, []))

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return next((issue for issue in self.issues if issue.id == issue_id), None)

    def close(self) -> None:
        """Cancels any replies that have not been delivered yet."""
        with self._lock:
            for task in self._pending_replies:
                task.cancel()
            self._pending_replies.clear()

    def _deliver_auto_reply(self, issue_id: str, text: str, task: ScheduledTask) -> None:
        with self._lock:
            self._pending_replies = [t for t in self._pending_replies if t is not task]
            self._append_message(
                ChatMessage(
                    id=self.context.new_id(),
                    issue_id=issue_id,
                    sender=AUTO_REPLY_SENDER,
                    message=text,
                    timestamp=self.context.now(),
                    is_system=False,
                )
            )
            self.store.save_messages(self.messages)

    def _append_message(self, message: ChatMessage) -> None:
        thread = self.messages.get(message.issue_id, [])
        self.messages = {**self.messages, message.issue_id: [*thread, message]}

    def _persist(self) -> None:
        self.store.save_issues(self.issues)
        self.store.save_messages(self.messages)
