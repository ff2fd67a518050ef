"""枚举归一化 -- 存储层编码到领域枚举的映射

每个枚举族是一张显式的有限映射表，外加一个文档化的默认值：
任何不在表中的输入（未知编码、空串、None、非字符串）都映射到默认值，
函数因此是全函数，从不抛错。默认值偏向最保守、权限最低的解释。

匹配前去除首尾空白并忽略大小写，存储层编码（IN_PROGRESS）
与已规范化的取值（in_progress）得到同一个成员。
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any

from .models.enums import (
    ActivityType,
    NotificationType,
    Priority,
    ProjectStatus,
    ProjectVisibility,
    RelatedType,
    TaskStatus,
    UserRole,
    UserStatus,
)


class EnumFamily(StrEnum):
    """可归一化的枚举族"""

    USER_ROLE = "user_role"
    USER_STATUS = "user_status"
    PROJECT_STATUS = "project_status"
    PROJECT_VISIBILITY = "project_visibility"
    PRIORITY = "priority"
    TASK_STATUS = "task_status"
    NOTIFICATION_TYPE = "notification_type"
    ACTIVITY_TYPE = "activity_type"
    RELATED_TYPE = "related_type"


_USER_ROLE_CODES: dict[str, UserRole] = {
    "ADMIN": UserRole.ADMIN,
    "MANAGER": UserRole.MANAGER,
    "MEMBER": UserRole.MEMBER,
}

_USER_STATUS_CODES: dict[str, UserStatus] = {
    "ACTIVE": UserStatus.ACTIVE,
    "INACTIVE": UserStatus.INACTIVE,
    "INVITED": UserStatus.INVITED,
}

_PROJECT_STATUS_CODES: dict[str, ProjectStatus] = {
    "ACTIVE": ProjectStatus.ACTIVE,
    "PAUSED": ProjectStatus.PAUSED,
    "COMPLETED": ProjectStatus.COMPLETED,
    "ARCHIVED": ProjectStatus.ARCHIVED,
}

_PROJECT_VISIBILITY_CODES: dict[str, ProjectVisibility] = {
    "PUBLIC": ProjectVisibility.PUBLIC,
    "PRIVATE": ProjectVisibility.PRIVATE,
    "TEAM": ProjectVisibility.TEAM,
}

_PRIORITY_CODES: dict[str, Priority] = {
    "LOW": Priority.LOW,
    "MEDIUM": Priority.MEDIUM,
    "HIGH": Priority.HIGH,
    "URGENT": Priority.URGENT,
}

_TASK_STATUS_CODES: dict[str, TaskStatus] = {
    "BACKLOG": TaskStatus.BACKLOG,
    "TODO": TaskStatus.TODO,
    "IN_PROGRESS": TaskStatus.IN_PROGRESS,
    "REVIEW": TaskStatus.REVIEW,
    "DONE": TaskStatus.DONE,
}

_NOTIFICATION_TYPE_CODES: dict[str, NotificationType] = {
    "TASK_ASSIGNED": NotificationType.TASK_ASSIGNED,
    "TASK_COMPLETED": NotificationType.TASK_COMPLETED,
    "COMMENT_ADDED": NotificationType.COMMENT_ADDED,
    "DUE_DATE_REMINDER": NotificationType.DUE_DATE_REMINDER,
    "PROJECT_INVITATION": NotificationType.PROJECT_INVITATION,
    "MENTION": NotificationType.MENTION,
}

_ACTIVITY_TYPE_CODES: dict[str, ActivityType] = {
    "TASK_CREATED": ActivityType.TASK_CREATED,
    "TASK_UPDATED": ActivityType.TASK_UPDATED,
    "TASK_COMPLETED": ActivityType.TASK_COMPLETED,
    "PROJECT_CREATED": ActivityType.PROJECT_CREATED,
    "USER_JOINED": ActivityType.USER_JOINED,
    "COMMENT_ADDED": ActivityType.COMMENT_ADDED,
}

_RELATED_TYPE_CODES: dict[str, RelatedType] = {
    "TASK": RelatedType.TASK,
    "PROJECT": RelatedType.PROJECT,
    "COMMENT": RelatedType.COMMENT,
}

# 枚举族 -> (映射表, 默认值)
_TABLES: dict[EnumFamily, tuple[dict[str, Any], Any]] = {
    EnumFamily.USER_ROLE: (_USER_ROLE_CODES, UserRole.MEMBER),
    EnumFamily.USER_STATUS: (_USER_STATUS_CODES, UserStatus.INVITED),
    EnumFamily.PROJECT_STATUS: (_PROJECT_STATUS_CODES, ProjectStatus.ARCHIVED),
    EnumFamily.PROJECT_VISIBILITY: (_PROJECT_VISIBILITY_CODES, ProjectVisibility.TEAM),
    EnumFamily.PRIORITY: (_PRIORITY_CODES, Priority.MEDIUM),
    EnumFamily.TASK_STATUS: (_TASK_STATUS_CODES, TaskStatus.DONE),
    EnumFamily.NOTIFICATION_TYPE: (_NOTIFICATION_TYPE_CODES, NotificationType.MENTION),
    EnumFamily.ACTIVITY_TYPE: (_ACTIVITY_TYPE_CODES, ActivityType.COMMENT_ADDED),
    EnumFamily.RELATED_TYPE: (_RELATED_TYPE_CODES, None),
}


def _code_key(code: object) -> str | None:
    if not isinstance(code, str):
        return None
    return code.strip().upper()


def _lookup(family: EnumFamily, code: object) -> Any:
    table, default = _TABLES[family]
    key = _code_key(code)
    if key is None:
        return default
    return table.get(key, default)


def normalize_user_role(code: object) -> UserRole:
    """用户角色，未知 -> member"""
    return _lookup(EnumFamily.USER_ROLE, code)


def normalize_user_status(code: object) -> UserStatus:
    """用户状态，未知 -> invited"""
    return _lookup(EnumFamily.USER_STATUS, code)


def normalize_project_status(code: object) -> ProjectStatus:
    """项目状态，未知 -> archived"""
    return _lookup(EnumFamily.PROJECT_STATUS, code)


def normalize_project_visibility(code: object) -> ProjectVisibility:
    """项目可见性，未知 -> team"""
    return _lookup(EnumFamily.PROJECT_VISIBILITY, code)


def normalize_priority(code: object) -> Priority:
    """优先级，未知 -> medium"""
    return _lookup(EnumFamily.PRIORITY, code)


def normalize_task_status(code: object) -> TaskStatus:
    """Task 状态，未知 -> done"""
    return _lookup(EnumFamily.TASK_STATUS, code)


def normalize_notification_type(code: object) -> NotificationType:
    """通知类型，未知 -> mention"""
    return _lookup(EnumFamily.NOTIFICATION_TYPE, code)


def normalize_activity_type(code: object) -> ActivityType:
    """活动类型，未知 -> comment_added"""
    return _lookup(EnumFamily.ACTIVITY_TYPE, code)


def normalize_related_type(code: object) -> RelatedType | None:
    """通知关联对象类型，未知 -> None"""
    return _lookup(EnumFamily.RELATED_TYPE, code)


NORMALIZERS: dict[EnumFamily, Callable[[object], Any]] = {
    EnumFamily.USER_ROLE: normalize_user_role,
    EnumFamily.USER_STATUS: normalize_user_status,
    EnumFamily.PROJECT_STATUS: normalize_project_status,
    EnumFamily.PROJECT_VISIBILITY: normalize_project_visibility,
    EnumFamily.PRIORITY: normalize_priority,
    EnumFamily.TASK_STATUS: normalize_task_status,
    EnumFamily.NOTIFICATION_TYPE: normalize_notification_type,
    EnumFamily.ACTIVITY_TYPE: normalize_activity_type,
    EnumFamily.RELATED_TYPE: normalize_related_type,
}


def normalize(family: EnumFamily | str, code: object) -> Any:
    """按枚举族分派归一化

    Args:
        family: 枚举族（未知族名属于调用方错误，抛出 ValueError）
        code: 存储层编码

    Returns:
        规范枚举成员（或该族的默认值）
    """
    return NORMALIZERS[EnumFamily(family)](code)


def is_known_code(family: EnumFamily | str, code: object) -> bool:
    """编码是否命中映射表（未命中时 normalize 返回的是默认值）"""
    table, _ = _TABLES[EnumFamily(family)]
    key = _code_key(code)
    return key is not None and key in table
