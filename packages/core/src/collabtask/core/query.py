"""查询引擎 -- 看板列、项目网格、用户表格的派生视图

处理顺序固定为 filter -> search -> sort -> group，不可调换：
- 字段过滤与搜索是 AND 关系
- 排序的平局规则与分组都作用于已缩小的候选集
- 所有排序最终按 id 升序打破平局，保证同一输入的输出完全确定

输出的列表/字典每次调用新建，不与输入列表共享。

每次调用记录一条 query_executed debug 日志。Core 不配置日志，宿主需调用
logging_config.setup_logging()，默认 INFO 级别下这些 debug 事件不会输出。
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from math import ceil
from typing import Any

import structlog
from pydantic import BaseModel

from .config import QueryConfig, load_query_config
from .exceptions import InvalidQuerySpec
from .models.enums import (
    PRIORITY_WEIGHTS,
    QUERYABLE_KINDS,
    EntityKind,
    Priority,
    ProjectStatus,
    TaskStatus,
    UserRole,
    UserStatus,
)
from .models.project import Project
from .models.query import DateRange, NumberRange, Page, QuerySpec
from .models.task import Task
from .models.user import User
from .stats import is_overdue
from .timeutil import as_utc, parse_timestamp, range_end
from .workflow import BOARD_COLUMNS, STATUS_ORDER, column_for

log = structlog.get_logger()

Entity = Task | Project | User
QueryResult = list[Any] | dict[str, list[Any]] | Page

_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.TASK: Task,
    EntityKind.PROJECT: Project,
    EntityKind.USER: User,
}

# 搜索字段
_TEXT_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.TASK: ("title", "description"),
    EntityKind.PROJECT: ("name", "description"),
    EntityKind.USER: ("name", "email", "department"),
}

_DATE_FIELDS = frozenset(
    {"created_at", "updated_at", "due_date", "start_date", "completed_at", "last_active"}
)
_NUMERIC_FIELDS = frozenset({"progress", "position", "estimated_hours", "actual_hours"})

_PRIORITY_ORDER: tuple[Priority, ...] = (
    Priority.URGENT,
    Priority.HIGH,
    Priority.MEDIUM,
    Priority.LOW,
)
_ROLE_ORDER: tuple[UserRole, ...] = (UserRole.ADMIN, UserRole.MANAGER, UserRole.MEMBER)

# 缺失值排在最后时使用的占位
_MISSING = 1
_PRESENT = 0


class _Context:
    """单次查询的只读上下文"""

    def __init__(self, users: Mapping[str, User]) -> None:
        self.users = users


SortKeyFn = Callable[[Any, _Context], tuple]


# ============================================================
# 排序键
# ============================================================


def _ts(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value).timestamp()
    except ValueError:
        return None


def _by_priority(entity: Any, ctx: _Context) -> tuple:
    return (-PRIORITY_WEIGHTS.get(entity.priority, 0),)


def _by_due_date(entity: Any, ctx: _Context) -> tuple:
    due = _ts(entity.due_date)
    return (_MISSING, 0.0) if due is None else (_PRESENT, due)


def _by_created(entity: Any, ctx: _Context) -> tuple:
    return (-(_ts(entity.created_at) or 0.0),)


def _by_updated(entity: Any, ctx: _Context) -> tuple:
    return (-(_ts(entity.updated_at) or 0.0),)


def _by_assignee(entity: Task, ctx: _Context) -> tuple:
    user = ctx.users.get(entity.primary_assignee_id) if entity.assignee_ids else None
    if user is None:
        return (_MISSING, "")
    return (_PRESENT, user.name.casefold())


def _by_position(entity: Task, ctx: _Context) -> tuple:
    return (entity.position, *_by_created(entity, ctx))


def _by_name(entity: Any, ctx: _Context) -> tuple:
    return (entity.name.casefold(),)


def _by_email(entity: User, ctx: _Context) -> tuple:
    return (entity.email.casefold(),)


def _by_role(entity: User, ctx: _Context) -> tuple:
    return (_ROLE_ORDER.index(entity.role),)


def _by_progress(entity: Project, ctx: _Context) -> tuple:
    return (-entity.progress,)


def _by_last_active(entity: User, ctx: _Context) -> tuple:
    last_active = _ts(entity.last_active)
    return (_MISSING, 0.0) if last_active is None else (_PRESENT, -last_active)


_SORTS: dict[EntityKind, dict[str, SortKeyFn]] = {
    EntityKind.TASK: {
        "priority": _by_priority,
        "dueDate": _by_due_date,
        "created": _by_created,
        "updated": _by_updated,
        "assignee": _by_assignee,
        "position": _by_position,
    },
    EntityKind.PROJECT: {
        "priority": _by_priority,
        "dueDate": _by_due_date,
        "created": _by_created,
        "updated": _by_updated,
        "name": _by_name,
        "progress": _by_progress,
    },
    EntityKind.USER: {
        "created": _by_created,
        "name": _by_name,
        "email": _by_email,
        "role": _by_role,
        "lastActive": _by_last_active,
    },
}

_KEY_ALIASES: dict[str, str] = {
    "due_date": "dueDate",
    "last_active": "lastActive",
    "rawStatus": "raw_status",
}


# ============================================================
# 分组
# ============================================================


class _Grouping:
    """分组定义：固定的组键顺序 + 实体到组键的映射"""

    def __init__(self, keys: Iterable[str], key_of: Callable[[Any], str]) -> None:
        self.keys = tuple(str(key) for key in keys)
        self.key_of = key_of


_GROUPS: dict[EntityKind, dict[str, _Grouping]] = {
    EntityKind.TASK: {
        "status": _Grouping(BOARD_COLUMNS, lambda task: column_for(task.status).value),
        "raw_status": _Grouping(STATUS_ORDER, lambda task: TaskStatus(task.status).value),
        "priority": _Grouping(_PRIORITY_ORDER, lambda task: Priority(task.priority).value),
    },
    EntityKind.PROJECT: {
        "status": _Grouping(ProjectStatus, lambda project: ProjectStatus(project.status).value),
        "priority": _Grouping(_PRIORITY_ORDER, lambda project: Priority(project.priority).value),
    },
    EntityKind.USER: {
        "role": _Grouping(_ROLE_ORDER, lambda user: UserRole(user.role).value),
        "status": _Grouping(UserStatus, lambda user: UserStatus(user.status).value),
    },
}


# ============================================================
# 过滤
# ============================================================

Predicate = Callable[[Any], bool]


def _field_names(model: type[BaseModel]) -> dict[str, str]:
    """字段名与 camelCase 别名 -> 字段名"""
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def _parse_bound(value: str, field: str, *, upper: bool) -> datetime:
    try:
        return range_end(value) if upper else parse_timestamp(value)
    except ValueError as exc:
        raise InvalidQuerySpec(
            f"过滤字段 {field} 的日期边界无法解析: {value}",
            field="filters",
        ) from exc


def _date_predicate(field: str, cond: DateRange) -> Predicate:
    start = _parse_bound(cond.start, field, upper=False) if cond.start else None
    end = _parse_bound(cond.end, field, upper=True) if cond.end else None

    def check(entity: Any) -> bool:
        value = getattr(entity, field)
        if value is None:
            return False
        try:
            moment = parse_timestamp(value)
        except ValueError:
            return False
        if start is not None and moment < start:
            return False
        return end is None or moment <= end

    return check


def _number_predicate(field: str, cond: NumberRange) -> Predicate:
    def check(entity: Any) -> bool:
        value = getattr(entity, field)
        if value is None:
            return False
        if cond.min is not None and value < cond.min:
            return False
        return cond.max is None or value <= cond.max

    return check


def _value_predicate(field: str, cond: Any) -> Predicate:
    def check(entity: Any) -> bool:
        value = getattr(entity, field)
        if isinstance(cond, list):
            if isinstance(value, list):
                return any(item in cond for item in value)
            return value in cond
        if isinstance(value, list):
            return cond in value
        return value == cond

    return check


def _compile_filters(spec: QuerySpec, now: datetime) -> list[Predicate]:
    model = _MODELS[spec.target]
    names = _field_names(model)
    predicates: list[Predicate] = []

    for raw_field, cond in spec.filters.items():
        field = names.get(raw_field)
        if field is None:
            raise InvalidQuerySpec(
                f"{spec.target.value} 没有可过滤字段: {raw_field}",
                field="filters",
            )
        if isinstance(cond, DateRange):
            if field not in _DATE_FIELDS:
                raise InvalidQuerySpec(f"字段 {raw_field} 不支持日期范围过滤", field="filters")
            predicates.append(_date_predicate(field, cond))
        elif isinstance(cond, NumberRange):
            if field not in _NUMERIC_FIELDS:
                raise InvalidQuerySpec(f"字段 {raw_field} 不支持数值范围过滤", field="filters")
            predicates.append(_number_predicate(field, cond))
        else:
            predicates.append(_value_predicate(field, cond))

    if spec.overdue:
        if spec.target != EntityKind.TASK:
            raise InvalidQuerySpec("overdue 过滤仅适用于 task", field="overdue")
        predicates.append(lambda task: is_overdue(task, now))

    return predicates


def _matches_text(entity: Any, needle: str, fields: Sequence[str]) -> bool:
    for field in fields:
        value = getattr(entity, field)
        if value and needle in value.casefold():
            return True
    return False


# ============================================================
# 入口
# ============================================================


def resolve_sort_key(target: EntityKind, sort_key: str | None) -> SortKeyFn | None:
    """校验并解析排序键（未知键抛出 InvalidQuerySpec）"""
    if sort_key is None:
        return None
    key = _KEY_ALIASES.get(sort_key, sort_key)
    try:
        return _SORTS[target][key]
    except KeyError:
        raise InvalidQuerySpec(
            f"{target.value} 不支持排序键: {sort_key}，可用: {sorted(_SORTS[target])}",
            field="sort_key",
        ) from None


def resolve_group_key(target: EntityKind, group_key: str | None) -> _Grouping | None:
    """校验并解析分组键（未知键抛出 InvalidQuerySpec）"""
    if group_key is None:
        return None
    key = _KEY_ALIASES.get(group_key, group_key)
    try:
        return _GROUPS[target][key]
    except KeyError:
        raise InvalidQuerySpec(
            f"{target.value} 不支持分组键: {group_key}，可用: {sorted(_GROUPS[target])}",
            field="group_key",
        ) from None


def _user_index(users: Mapping[str, User] | Iterable[User] | None) -> Mapping[str, User]:
    if users is None:
        return {}
    if isinstance(users, Mapping):
        return users
    return {user.id: user for user in users}


def query(
    entities: Iterable[Entity],
    spec: QuerySpec | None = None,
    *,
    users: Mapping[str, User] | Iterable[User] | None = None,
    now: datetime | None = None,
    config: QueryConfig | None = None,
) -> QueryResult:
    """执行查询

    Args:
        entities: 同一种类的实体快照（种类由 spec.target 指定）
        spec: 查询描述，None 等价于空 QuerySpec()
        users: 用于 assignee 排序解析显示名称的用户目录（id -> User 或 User 序列）
        now: overdue 判定的参考时间（默认当前 UTC 时间）
        config: 分页配置（默认从环境变量加载）

    Returns:
        - 无分组无分页：排序后的新列表
        - 有分组：组键 -> 列表，按固定顺序包含全部组键（空组也存在）
        - 有分页：Page

    Raises:
        InvalidQuerySpec: 未知排序/分组键、未知过滤字段、实体种类与 target 不符等
    """
    spec = spec or QuerySpec()
    target = spec.target
    if target not in QUERYABLE_KINDS:
        raise InvalidQuerySpec(f"不支持查询的实体种类: {target.value}", field="target")

    sort_fn = resolve_sort_key(target, spec.sort_key)
    grouping = resolve_group_key(target, spec.group_key)
    paginated = spec.page is not None or spec.page_size is not None
    if grouping is not None and paginated:
        raise InvalidQuerySpec("分组与分页不能同时使用", field="page")

    now = as_utc(now) if now is not None else datetime.now(UTC)
    predicates = _compile_filters(spec, now)
    ctx = _Context(_user_index(users))

    model = _MODELS[target]
    items: list[Any] = []
    total_input = 0
    for entity in entities:
        total_input += 1
        if not isinstance(entity, model):
            raise InvalidQuerySpec(
                f"实体 {type(entity).__name__} 与查询目标 {target.value} 不符",
                field="target",
            )
        items.append(entity)

    # 1. filter
    items = [entity for entity in items if all(check(entity) for check in predicates)]

    # 2. search
    # 空白文本视为不搜索；非空时按原文（含首尾空白）做子串匹配
    text = spec.search_text or ""
    if text.strip():
        needle = text.casefold()
        fields = _TEXT_FIELDS[target]
        items = [entity for entity in items if _matches_text(entity, needle, fields)]

    # 3. sort（id 升序兜底）
    if sort_fn is not None:
        items.sort(key=lambda entity: (*sort_fn(entity, ctx), entity.id))

    log.debug(
        "query_executed",
        target=target.value,
        input_count=total_input,
        matched_count=len(items),
        sort_key=spec.sort_key,
        group_key=spec.group_key,
    )

    # 4. group
    if grouping is not None:
        groups: dict[str, list[Any]] = {key: [] for key in grouping.keys}
        for entity in items:
            groups[grouping.key_of(entity)].append(entity)
        return groups

    if paginated:
        config = config or load_query_config()
        return paginate(items, spec.page or 1, spec.page_size, config=config)

    return items


def paginate(
    items: Sequence[Any],
    page: int = 1,
    page_size: int | None = None,
    *,
    config: QueryConfig | None = None,
) -> Page:
    """对已排序结果分页

    page_size 缺省取配置默认值，超过上限时截断到上限；页码超出范围返回空页。
    """
    config = config or load_query_config()
    if page < 1:
        raise InvalidQuerySpec(f"页码必须 >= 1: {page}", field="page")
    size = page_size or config.default_page_size
    if size < 1:
        raise InvalidQuerySpec(f"每页条数必须 >= 1: {size}", field="page_size")
    if size > config.max_page_size:
        log.debug("page_size_clamped", requested=size, max_page_size=config.max_page_size)
        size = config.max_page_size

    total = len(items)
    offset = (page - 1) * size
    return Page(
        items=list(items[offset : offset + size]),
        page=page,
        page_size=size,
        total=total,
        total_pages=ceil(total / size),
    )


def board(
    tasks: Iterable[Task],
    spec: QuerySpec | None = None,
    *,
    users: Mapping[str, User] | Iterable[User] | None = None,
    now: datetime | None = None,
) -> dict[str, list[Task]]:
    """看板视图：按看板列分组，默认按优先级排序

    spec 中的 target / group_key 被固定为 task / status。
    """
    spec = spec or QuerySpec()
    spec = spec.model_copy(
        update={
            "target": EntityKind.TASK,
            "group_key": "status",
            "sort_key": spec.sort_key or "priority",
        }
    )
    return query(tasks, spec, users=users, now=now)
