"""数据完整性校验 -- 任务依赖图与成员约定

装配阶段只拒绝自依赖（见 Task 模型校验），依赖图的整体性质
（环路、引用缺失、跨项目引用）在这里对一组 Task 快照显式校验：
- find_dependency_issues() 报告全部问题，不抛错
- ensure_valid_dependencies() 对自引用/缺失/环路抛错，跨项目引用只报告

owner_id / leader_id 属于成员列表只是约定，membership_issues() 仅报告。
"""

from collections.abc import Iterable, Iterator
from enum import StrEnum

import structlog
from pydantic import Field

from .exceptions import DependencyCycleError, InvalidDependency
from .models.base import DomainModel
from .models.enums import TaskStatus
from .models.project import Project
from .models.task import Task
from .models.team import Team

log = structlog.get_logger()


class IssueKind(StrEnum):
    """完整性问题种类"""

    SELF_REFERENCE = "self_reference"
    MISSING = "missing"
    CROSS_PROJECT = "cross_project"
    CYCLE = "cycle"
    OWNER_NOT_MEMBER = "owner_not_member"
    LEADER_NOT_MEMBER = "leader_not_member"


class IntegrityIssue(DomainModel):
    """一条完整性问题"""

    kind: IssueKind
    entity_id: str = Field(description="出问题的实体 ID（环路为环上最小 ID）")
    detail: str = Field(default="", description="可读描述")
    related_ids: list[str] = Field(default_factory=list, description="相关实体 ID")


def _dependency_graph(tasks: Iterable[Task]) -> dict[str, list[str]]:
    return {task.id: [dep for dep in task.dependencies if dep != task.id] for task in tasks}


def _canonical_cycle(cycle: list[str]) -> tuple[str, ...]:
    """旋转到最小 ID 开头，保持依赖方向"""
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def find_cycles(tasks: Iterable[Task]) -> list[list[str]]:
    """查找依赖图中的环路

    迭代 DFS，沿 task -> 前置任务 方向遍历，每个回边对应的环路报告一次；
    依赖图无环时返回空列表。引用快照外任务的边被忽略。

    Returns:
        环路列表，每个环路按依赖方向排列并以最小 ID 开头
    """
    graph = _dependency_graph(tasks)
    finished: set[str] = set()
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    for root in sorted(graph):
        if root in finished:
            continue
        path: list[str] = [root]
        on_path: dict[str, int] = {root: 0}
        stack: list[Iterator[str]] = [iter(graph[root])]

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                node = path.pop()
                del on_path[node]
                finished.add(node)
                continue
            if nxt not in graph or nxt in finished:
                continue
            if nxt in on_path:
                key = _canonical_cycle(path[on_path[nxt] :])
                if key not in seen:
                    seen.add(key)
                    cycles.append(list(key))
                continue
            on_path[nxt] = len(path)
            path.append(nxt)
            stack.append(iter(graph[nxt]))

    return cycles


def find_dependency_issues(tasks: Iterable[Task]) -> list[IntegrityIssue]:
    """报告依赖问题：自引用、引用缺失、跨项目引用、环路"""
    tasks = list(tasks)
    index = {task.id: task for task in tasks}
    issues: list[IntegrityIssue] = []

    for task in tasks:
        for dep in task.dependencies:
            if dep == task.id:
                issues.append(
                    IntegrityIssue(
                        kind=IssueKind.SELF_REFERENCE,
                        entity_id=task.id,
                        detail="任务依赖自身",
                        related_ids=[dep],
                    )
                )
            elif dep not in index:
                issues.append(
                    IntegrityIssue(
                        kind=IssueKind.MISSING,
                        entity_id=task.id,
                        detail=f"前置任务 {dep} 不存在",
                        related_ids=[dep],
                    )
                )
            elif index[dep].project_id != task.project_id:
                issues.append(
                    IntegrityIssue(
                        kind=IssueKind.CROSS_PROJECT,
                        entity_id=task.id,
                        detail=f"前置任务 {dep} 属于项目 {index[dep].project_id}",
                        related_ids=[dep],
                    )
                )

    for cycle in find_cycles(tasks):
        issues.append(
            IntegrityIssue(
                kind=IssueKind.CYCLE,
                entity_id=cycle[0],
                detail=" -> ".join([*cycle, cycle[0]]),
                related_ids=cycle,
            )
        )

    if issues:
        log.warning(
            "dependency_issues_found",
            issue_count=len(issues),
            kinds=sorted({issue.kind.value for issue in issues}),
        )
    return issues


def ensure_valid_dependencies(tasks: Iterable[Task]) -> None:
    """校验依赖图，自引用/引用缺失/环路时抛错

    Raises:
        InvalidDependency: 自引用或引用不存在的任务
        DependencyCycleError: 依赖图存在环路
    """
    tasks = list(tasks)
    index = {task.id for task in tasks}
    for task in tasks:
        for dep in task.dependencies:
            if dep == task.id:
                raise InvalidDependency(task.id, dep, "self_reference")
            if dep not in index:
                raise InvalidDependency(task.id, dep, "missing")

    cycles = find_cycles(tasks)
    if cycles:
        raise DependencyCycleError(cycles[0])


def blocking_tasks(task: Task, tasks: Iterable[Task]) -> list[Task]:
    """尚未完成的前置任务，按 dependencies 顺序"""
    index = {other.id: other for other in tasks}
    return [
        index[dep]
        for dep in task.dependencies
        if dep in index and dep != task.id and index[dep].status != TaskStatus.DONE
    ]


def membership_issues(
    projects: Iterable[Project] = (),
    teams: Iterable[Team] = (),
) -> list[IntegrityIssue]:
    """报告负责人不在成员列表中的项目与团队（约定，不强制）"""
    issues: list[IntegrityIssue] = []
    for project in projects:
        if project.owner_id not in project.member_ids:
            issues.append(
                IntegrityIssue(
                    kind=IssueKind.OWNER_NOT_MEMBER,
                    entity_id=project.id,
                    detail=f"负责人 {project.owner_id} 不在项目成员中",
                    related_ids=[project.owner_id],
                )
            )
    for team in teams:
        if team.leader_id not in team.member_ids:
            issues.append(
                IntegrityIssue(
                    kind=IssueKind.LEADER_NOT_MEMBER,
                    entity_id=team.id,
                    detail=f"负责人 {team.leader_id} 不在团队成员中",
                    related_ids=[team.leader_id],
                )
            )
    return issues
