"""派生统计 -- 基于实体快照计算项目与用户统计"""

from collections.abc import Iterable
from datetime import UTC, datetime

from .models.enums import ProjectStatus, TaskStatus
from .models.project import Project
from .models.stats import ProjectStats, UserStats
from .models.task import Task
from .timeutil import as_utc, parse_timestamp

# 进行中（未完成且已排期）的状态
PENDING_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW}
)


def is_overdue(task: Task, now: datetime) -> bool:
    """截止时间早于 now 且未完成"""
    now = as_utc(now)
    if task.status == TaskStatus.DONE or task.due_date is None:
        return False
    try:
        return parse_timestamp(task.due_date) < now
    except ValueError:
        return False


def project_stats(
    project: Project,
    tasks: Iterable[Task],
    now: datetime | None = None,
) -> ProjectStats:
    """项目统计

    只统计 project_id 属于该项目的 Task；backlog 不计入 pending。

    Args:
        project: 项目快照
        tasks: Task 快照（可包含其他项目的 Task）
        now: 逾期判定参考时间（默认当前 UTC 时间）
    """
    now = as_utc(now) if now is not None else datetime.now(UTC)
    own = [task for task in tasks if task.project_id == project.id]

    estimated = sum(task.estimated_hours or 0.0 for task in own)
    actual = sum(task.actual_hours or 0.0 for task in own)

    return ProjectStats(
        total_tasks=len(own),
        completed_tasks=sum(1 for task in own if task.status == TaskStatus.DONE),
        pending_tasks=sum(1 for task in own if task.status in PENDING_STATUSES),
        overdue_tasks=sum(1 for task in own if is_overdue(task, now)),
        total_members=len(project.member_ids),
        total_hours=actual,
        remaining_hours=max(0.0, estimated - actual),
    )


def user_stats(
    user_id: str,
    tasks: Iterable[Task],
    projects: Iterable[Project],
) -> UserStats:
    """用户统计

    total/completed 统计分配给该用户的 Task；
    active_projects 统计用户作为负责人或成员参与的 active 项目；
    completion_rate 为四舍五入的百分比，无任务时为 0。
    """
    assigned = [task for task in tasks if user_id in task.assignee_ids]
    completed = sum(1 for task in assigned if task.status == TaskStatus.DONE)
    active_projects = sum(
        1
        for project in projects
        if project.status == ProjectStatus.ACTIVE
        and (project.owner_id == user_id or user_id in project.member_ids)
    )
    completion_rate = round(completed / len(assigned) * 100) if assigned else 0

    return UserStats(
        total_tasks=len(assigned),
        completed_tasks=completed,
        active_projects=active_projects,
        completion_rate=completion_rate,
    )
