"""枚举定义 -- 领域层的规范取值

存储层使用大写下划线编码（如 IN_PROGRESS），领域层统一使用小写取值，
两者之间的映射见 normalize 模块。
"""

from enum import StrEnum


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class UserStatus(StrEnum):
    """用户状态"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    INVITED = "invited"


class ProjectStatus(StrEnum):
    """项目状态"""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ProjectVisibility(StrEnum):
    """项目可见性"""

    PUBLIC = "public"
    PRIVATE = "private"
    TEAM = "team"


class Priority(StrEnum):
    """优先级（Task 与 Project 共用）"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# 排序权重，越大越靠前；未映射的取值权重为 0
PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class TaskStatus(StrEnum):
    """Task 生命周期状态

    backlog -> todo -> in_progress -> review -> done
    """

    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class BoardColumn(StrEnum):
    """Kanban 看板列（展示分组用，与 TaskStatus 是两个概念）"""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class NotificationType(StrEnum):
    """通知类型"""

    TASK_ASSIGNED = "task_assigned"
    TASK_COMPLETED = "task_completed"
    COMMENT_ADDED = "comment_added"
    DUE_DATE_REMINDER = "due_date_reminder"
    PROJECT_INVITATION = "project_invitation"
    MENTION = "mention"


class RelatedType(StrEnum):
    """通知关联对象类型"""

    TASK = "task"
    PROJECT = "project"
    COMMENT = "comment"


class ActivityType(StrEnum):
    """活动流类型"""

    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"
    PROJECT_CREATED = "project_created"
    USER_JOINED = "user_joined"
    COMMENT_ADDED = "comment_added"


class EntityKind(StrEnum):
    """实体种类（装配与查询的分派键）"""

    USER = "user"
    PROJECT = "project"
    TASK = "task"
    SUBTASK = "subtask"
    COMMENT = "comment"
    ATTACHMENT = "attachment"
    TEAM = "team"
    NOTIFICATION = "notification"
    ACTIVITY = "activity"


# 查询引擎支持的目标实体
QUERYABLE_KINDS: frozenset[EntityKind] = frozenset(
    {EntityKind.TASK, EntityKind.PROJECT, EntityKind.USER}
)
