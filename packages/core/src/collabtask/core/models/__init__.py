"""CollabTask Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import Activity
from .enums import (
    PRIORITY_WEIGHTS,
    QUERYABLE_KINDS,
    ActivityType,
    BoardColumn,
    EntityKind,
    NotificationType,
    Priority,
    ProjectStatus,
    ProjectVisibility,
    RelatedType,
    TaskStatus,
    UserRole,
    UserStatus,
)
from .notification import Notification
from .project import Project, ProjectSettings
from .query import DateRange, NumberRange, Page, QuerySpec
from .stats import ProjectStats, UserStats
from .task import Attachment, Comment, Reaction, Subtask, Task
from .team import Team
from .user import User

__all__ = [
    # 枚举
    "UserRole",
    "UserStatus",
    "ProjectStatus",
    "ProjectVisibility",
    "Priority",
    "TaskStatus",
    "BoardColumn",
    "NotificationType",
    "RelatedType",
    "ActivityType",
    "EntityKind",
    "PRIORITY_WEIGHTS",
    "QUERYABLE_KINDS",
    # 实体
    "User",
    "Project",
    "ProjectSettings",
    "Task",
    "Subtask",
    "Comment",
    "Attachment",
    "Reaction",
    "Team",
    "Notification",
    "Activity",
    # 派生视图
    "ProjectStats",
    "UserStats",
    # 查询
    "QuerySpec",
    "DateRange",
    "NumberRange",
    "Page",
]
