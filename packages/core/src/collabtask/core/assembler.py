"""实体装配 -- 原始记录到规范实体

输入为存储层原生形态的映射（camelCase 键、大写编码枚举、datetime 值、关联表行），
输出为不可变的领域实体：
- 枚举字段经 normalize 归一化（未知编码降级为默认值并记录 debug 日志）
- 时间字段转为 ISO-8601 UTC 字符串，缺失为 None
- 关联表行展平为 ID 列表，保持给定顺序
- 必需关联缺失时抛出 MissingRelation，不伪造取值

纯内存变换，不做任何网络或存储 I/O。
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from .exceptions import AssemblyError, InvalidRecord, MissingRelation
from .models.activity import Activity
from .models.enums import EntityKind
from .models.notification import Notification
from .models.project import Project, ProjectSettings
from .models.task import Attachment, Comment, Reaction, Subtask, Task
from .models.team import Team
from .models.user import User
from .normalize import EnumFamily, is_known_code, normalize
from .timeutil import to_iso

log = structlog.get_logger()

Record = Mapping[str, Any]
Related = Mapping[str, Iterable[Any]]

# 项目设置缺失时的默认值（按单个开关补齐）
_SETTINGS_DEFAULTS: dict[str, bool] = {
    "allowComments": True,
    "allowAttachments": True,
    "requireApproval": False,
    "timeTracking": False,
}


class _Source:
    """单条原始记录的读取上下文，出错时携带实体种类与记录 ID"""

    def __init__(self, entity: EntityKind, record: Record, related: Related | None) -> None:
        self.entity = entity
        self.record = record
        self.related = related or {}
        self.record_id: str | None = record.get("id")

    def get(self, key: str, default: Any = None) -> Any:
        value = self.record.get(key)
        return default if value is None else value

    def required(self, *keys: str) -> str:
        """读取必需关联，按顺序取第一个非空键"""
        for key in keys:
            value = self.record.get(key)
            if value is not None and value != "":
                return value
        raise MissingRelation(self.entity.value, self.record_id, keys[0])

    def mapping(self, key: str) -> dict[str, Any]:
        """读取嵌套映射字段，缺失为空 dict，形态不符抛出 InvalidRecord"""
        value = self.record.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise InvalidRecord(
                self.entity.value,
                self.record_id,
                f"{key} 应为映射，实际为 {type(value).__name__}",
            )
        return dict(value)

    def sequence(self, key: str) -> list[Any]:
        """读取列表字段，缺失为空列表，形态不符抛出 InvalidRecord"""
        return self._as_list(key, self.record.get(key))

    def rows(self, name: str) -> list[Any]:
        """关联行：related 优先，其次为记录内嵌的 include 结果"""
        rows = self.related.get(name)
        if rows is None:
            rows = self.record.get(name)
        return self._as_list(name, rows)

    def _as_list(self, key: str, value: Any) -> list[Any]:
        if value is None:
            return []
        if isinstance(value, str | bytes | Mapping) or not isinstance(value, Iterable):
            raise InvalidRecord(
                self.entity.value,
                self.record_id,
                f"{key} 应为列表，实际为 {type(value).__name__}",
            )
        return list(value)

    def ids(self, name: str, key: str) -> list[str]:
        """将关联行展平为 ID 列表（也接受直接给出的 ID 字符串）"""
        result: list[str] = []
        for row in self.rows(name):
            if isinstance(row, str):
                result.append(row)
                continue
            try:
                result.append(row[key])
            except (KeyError, TypeError) as exc:
                raise InvalidRecord(
                    self.entity.value,
                    self.record_id,
                    f"{name} 关联行缺少 {key}",
                ) from exc
        return result

    def date(self, key: str) -> str | None:
        try:
            return to_iso(self.record.get(key))
        except (TypeError, ValueError) as exc:
            raise InvalidRecord(self.entity.value, self.record_id, f"{key}: {exc}") from exc

    def enum(self, family: EnumFamily, key: str) -> Any:
        code = self.record.get(key)
        value = normalize(family, code)
        if code is not None and not is_known_code(family, code):
            log.debug(
                "enum_code_fallback",
                entity=self.entity.value,
                record_id=self.record_id,
                field=key,
                code=code,
                fallback=value,
            )
        return value

    def build(self, model: type[BaseModel], **fields: Any) -> Any:
        try:
            return model(**fields)
        except ValidationError as exc:
            raise InvalidRecord(self.entity.value, self.record_id, str(exc)) from exc


def assemble_user(record: Record, related: Related | None = None) -> User:
    """装配 User"""
    src = _Source(EntityKind.USER, record, related)
    return src.build(
        User,
        id=src.record_id,
        name=src.get("name"),
        email=src.get("email"),
        avatar=src.get("avatar"),
        role=src.enum(EnumFamily.USER_ROLE, "role"),
        status=src.enum(EnumFamily.USER_STATUS, "status"),
        created_at=src.date("createdAt"),
        last_active=src.date("lastActive"),
        timezone=src.get("timezone"),
        position=src.get("position"),
        department=src.get("department"),
    )


def assemble_project(record: Record, related: Related | None = None) -> Project:
    """装配 Project

    members / teams 关联行展平为 member_ids / team_ids；
    settings 缺失或部分缺失时按开关补齐默认值。
    """
    src = _Source(EntityKind.PROJECT, record, related)
    owner_id = src.required("ownerId")

    raw_settings = src.mapping("settings")
    settings = {
        key: raw_settings.get(key) if raw_settings.get(key) is not None else default
        for key, default in _SETTINGS_DEFAULTS.items()
    }

    return src.build(
        Project,
        id=src.record_id,
        name=src.get("name"),
        description=src.get("description", ""),
        color=src.get("color", ""),
        icon=src.get("icon", ""),
        status=src.enum(EnumFamily.PROJECT_STATUS, "status"),
        visibility=src.enum(EnumFamily.PROJECT_VISIBILITY, "visibility"),
        owner_id=owner_id,
        team_ids=src.ids("teams", "teamId"),
        member_ids=src.ids("members", "userId"),
        created_at=src.date("createdAt"),
        updated_at=src.date("updatedAt"),
        due_date=src.date("dueDate"),
        progress=src.get("progress", 0),
        priority=src.enum(EnumFamily.PRIORITY, "priority"),
        template=src.get("template"),
        tags=src.sequence("tags"),
        settings=ProjectSettings.model_validate(settings),
    )


def assemble_task(record: Record, related: Related | None = None) -> Task:
    """装配 Task

    assignees / dependencies 关联行展平为 ID 列表（顺序即主负责人顺序），
    attachments / comments / subtasks 递归装配。
    """
    src = _Source(EntityKind.TASK, record, related)
    project_id = src.required("projectId")
    reporter_id = src.required("reporterId")

    return src.build(
        Task,
        id=src.record_id,
        title=src.get("title"),
        description=src.get("description", ""),
        status=src.enum(EnumFamily.TASK_STATUS, "status"),
        priority=src.enum(EnumFamily.PRIORITY, "priority"),
        project_id=project_id,
        assignee_ids=src.ids("assignees", "userId"),
        reporter_id=reporter_id,
        created_at=src.date("createdAt"),
        updated_at=src.date("updatedAt"),
        due_date=src.date("dueDate"),
        start_date=src.date("startDate"),
        completed_at=src.date("completedAt"),
        estimated_hours=src.get("estimatedHours"),
        actual_hours=src.get("actualHours"),
        tags=src.sequence("tags"),
        attachments=[assemble_attachment(row) for row in src.rows("attachments")],
        comments=[assemble_comment(row) for row in src.rows("comments")],
        dependencies=src.ids("dependencies", "prerequisiteTaskId"),
        subtasks=[assemble_subtask(row) for row in src.rows("subtasks")],
        custom_fields=src.mapping("customFields"),
        position=src.get("position", 0),
    )


def assemble_subtask(record: Record, related: Related | None = None) -> Subtask:
    """装配 Subtask"""
    src = _Source(EntityKind.SUBTASK, record, related)
    return src.build(
        Subtask,
        id=src.record_id,
        title=src.get("title"),
        completed=bool(src.get("completed", False)),
        assignee_id=src.get("assigneeId"),
        due_date=src.date("dueDate"),
        created_at=src.date("createdAt"),
    )


def assemble_comment(record: Record, related: Related | None = None) -> Comment:
    """装配 Comment

    reactions 既接受 {emoji, userIds} 形态，也接受每个用户一行的 {emoji, userId}，
    后者按 emoji 首次出现顺序合并。
    """
    src = _Source(EntityKind.COMMENT, record, related)
    author_id = src.required("authorId")

    return src.build(
        Comment,
        id=src.record_id,
        content=src.get("content", ""),
        author_id=author_id,
        created_at=src.date("createdAt"),
        updated_at=src.date("updatedAt"),
        mentions=src.sequence("mentions"),
        attachments=[assemble_attachment(row) for row in src.rows("attachments")],
        reactions=_merge_reactions(src),
    )


def assemble_attachment(record: Record, related: Related | None = None) -> Attachment:
    """装配 Attachment"""
    src = _Source(EntityKind.ATTACHMENT, record, related)
    uploaded_by = src.required("uploadedById", "uploadedBy")
    return src.build(
        Attachment,
        id=src.record_id,
        name=src.get("name"),
        url=src.get("url"),
        type=src.get("type", ""),
        size=src.get("size", 0),
        uploaded_by=uploaded_by,
        uploaded_at=src.date("uploadedAt"),
    )


def assemble_team(record: Record, related: Related | None = None) -> Team:
    """装配 Team"""
    src = _Source(EntityKind.TEAM, record, related)
    leader_id = src.required("leaderId")
    return src.build(
        Team,
        id=src.record_id,
        name=src.get("name"),
        description=src.get("description", ""),
        member_ids=src.ids("members", "userId"),
        leader_id=leader_id,
        created_at=src.date("createdAt"),
        color=src.get("color", ""),
        department=src.get("department"),
    )


def assemble_notification(record: Record, related: Related | None = None) -> Notification:
    """装配 Notification"""
    src = _Source(EntityKind.NOTIFICATION, record, related)
    user_id = src.required("userId")
    return src.build(
        Notification,
        id=src.record_id,
        type=src.enum(EnumFamily.NOTIFICATION_TYPE, "type"),
        title=src.get("title"),
        message=src.get("message", ""),
        user_id=user_id,
        read=bool(src.get("read", False)),
        created_at=src.date("createdAt"),
        updated_at=src.date("updatedAt"),
        related_id=src.get("relatedId"),
        related_type=src.enum(EnumFamily.RELATED_TYPE, "relatedType"),
        action_url=src.get("actionUrl"),
    )


def assemble_activity(record: Record, related: Related | None = None) -> Activity:
    """装配 Activity"""
    src = _Source(EntityKind.ACTIVITY, record, related)
    user_id = src.required("userId")
    return src.build(
        Activity,
        id=src.record_id,
        type=src.enum(EnumFamily.ACTIVITY_TYPE, "type"),
        user_id=user_id,
        project_id=src.get("projectId"),
        task_id=src.get("taskId"),
        description=src.get("description", ""),
        created_at=src.date("createdAt"),
        metadata=src.mapping("metadata") if src.get("metadata") is not None else None,
    )


def _merge_reactions(src: _Source) -> list[Reaction]:
    merged: dict[str, list[str]] = {}
    for row in src.rows("reactions"):
        try:
            emoji = row["emoji"]
        except (KeyError, TypeError) as exc:
            raise InvalidRecord(
                src.entity.value, src.record_id, "reactions 关联行缺少 emoji"
            ) from exc
        user_ids = merged.setdefault(emoji, [])
        if "userIds" in row:
            user_ids.extend(uid for uid in row["userIds"] if uid not in user_ids)
        elif row.get("userId") is not None and row["userId"] not in user_ids:
            user_ids.append(row["userId"])
    return [Reaction(emoji=emoji, user_ids=user_ids) for emoji, user_ids in merged.items()]


_ASSEMBLERS: dict[EntityKind, Callable[[Record, Related | None], Any]] = {
    EntityKind.USER: assemble_user,
    EntityKind.PROJECT: assemble_project,
    EntityKind.TASK: assemble_task,
    EntityKind.SUBTASK: assemble_subtask,
    EntityKind.COMMENT: assemble_comment,
    EntityKind.ATTACHMENT: assemble_attachment,
    EntityKind.TEAM: assemble_team,
    EntityKind.NOTIFICATION: assemble_notification,
    EntityKind.ACTIVITY: assemble_activity,
}


def assemble(kind: EntityKind | str, record: Record, related: Related | None = None) -> Any:
    """按实体种类分派装配

    Args:
        kind: 实体种类
        record: 存储层原始记录
        related: 关联名 -> 关联行（与记录内嵌的同名关联同时存在时优先）

    Returns:
        规范实体

    Raises:
        MissingRelation: 必需关联缺失
        InvalidRecord: 记录形态不合法
    """
    return _ASSEMBLERS[EntityKind(kind)](record, related)


def assemble_many(
    kind: EntityKind | str,
    records: Iterable[Record],
    *,
    skip_invalid: bool = False,
) -> list[Any]:
    """批量装配

    Args:
        kind: 实体种类
        records: 原始记录序列
        skip_invalid: True 时跳过装配失败的记录并记录 warning，否则首个错误直接抛出

    Returns:
        装配成功的实体列表，保持输入顺序
    """
    assembler = _ASSEMBLERS[EntityKind(kind)]
    entities: list[Any] = []
    skipped = 0
    for record in records:
        try:
            entities.append(assembler(record, None))
        except AssemblyError as exc:
            if not skip_invalid:
                raise
            skipped += 1
            log.warning(
                "record_skipped",
                entity=exc.entity,
                record_id=exc.record_id,
                error=str(exc),
            )
    if skipped:
        log.info(
            "batch_assembled",
            entity=EntityKind(kind).value,
            assembled=len(entities),
            skipped=skipped,
        )
    return entities
