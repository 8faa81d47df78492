# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from enum import StrEnum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


class IssueType(StrEnum):
    CONTENT = "content"
    TECHNICAL = "technical"
    GENERAL = "general"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ResolutionStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"
    SUPPORT = "support"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None


@dataclass(frozen=True)
class MediaFile:
    """Descriptor for an uploaded attachment."""

    id: str
    name: str
    url: str
    type: str
    size: int
    uploaded_at: datetime


@dataclass
class ContentDetails:
    content_type: str
    platform: str
    audience: str
    deadline: Optional[datetime] = None


@dataclass
class TechnicalDetails:
    system_type: str
    browser: Optional[str] = None
    error_message: Optional[str] = None
    steps_to_reproduce: Optional[str] = None


@dataclass
class GeneralDetails:
    category: str
    department: str
    urgency: str


_DETAILS_FIELD_BY_TYPE = {
    IssueType.CONTENT: "content_details",
    IssueType.TECHNICAL: "technical_details",
    IssueType.GENERAL: "general_details",
}


@dataclass
class Issue:
    """A tracked unit of work.

    At most one of the ``*_details`` records may be set, and it must be the one
    matching ``type``.
    """

    id: str
    title: str
    description: str
    type: IssueType
    priority: Priority
    status: ResolutionStatus
    submitted_by: str
    submitted_at: datetime
    updated_at: datetime
    tags: List[str] = field(default_factory=list)
    media_files: List[MediaFile] = field(default_factory=list)
    content_details: Optional[ContentDetails] = None
    technical_details: Optional[TechnicalDetails] = None
    general_details: Optional[GeneralDetails] = None

    def __post_init__(self):
        self.type = IssueType(self.type)
        self.priority = Priority(self.priority)
        self.status = ResolutionStatus(self.status)
        expected = _DETAILS_FIELD_BY_TYPE[self.type]
        for name in _DETAILS_FIELD_BY_TYPE.values():
            if name != expected and getattr(self, name) is not None:
                raise ValueError(
                    f"Issue of type '{self.type}' cannot carry {name}"
                )

    @property
    def details(self):
        return getattr(self, _DETAILS_FIELD_BY_TYPE[self.type])


@dataclass(frozen=True)
class ChatMessage:
    """A single entry in an issue's conversation thread."""

    id: str
    issue_id: str
    sender: str
    message: str
    timestamp: datetime
    is_system: bool = False


@dataclass(frozen=True)
class LocalFile:
    """A file picked on the client, ready to be uploaded."""

    name: str
    type: str
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)
