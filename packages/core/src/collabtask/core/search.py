"""全局搜索 -- 跨 Project / Task / User 的文本搜索

每类实体复用查询引擎的 search 阶段，结果按 id 升序并截断到 limit。
"""

from collections.abc import Iterable

from pydantic import Field

from .config import load_query_config
from .models.base import DomainModel
from .models.enums import EntityKind
from .models.project import Project
from .models.query import QuerySpec
from .models.task import Task
from .models.user import User
from .query import query


class SearchHit(DomainModel):
    """单条搜索结果"""

    id: str
    type: EntityKind
    title: str
    description: str = ""
    url: str


class SearchResults(DomainModel):
    """全局搜索结果"""

    query: str
    total_results: int = 0
    projects: list[SearchHit] = Field(default_factory=list)
    tasks: list[SearchHit] = Field(default_factory=list)
    users: list[SearchHit] = Field(default_factory=list)


def _search(entities: Iterable, target: EntityKind, text: str, limit: int) -> list:
    spec = QuerySpec(target=target, search_text=text)
    matched = sorted(query(entities, spec), key=lambda entity: entity.id)
    return matched[:limit]


def global_search(
    text: str,
    *,
    projects: Iterable[Project] = (),
    tasks: Iterable[Task] = (),
    users: Iterable[User] = (),
    limit: int | None = None,
) -> SearchResults:
    """全局搜索

    Args:
        text: 搜索文本（大小写不敏感子串）；空白文本不返回任何结果
        projects / tasks / users: 各类实体快照
        limit: 每类最多返回条数（默认取配置 search_limit）

    Returns:
        SearchResults，total_results 为截断后三类结果之和
    """
    if not text.strip():
        return SearchResults(query=text)
    limit = limit or load_query_config().search_limit

    project_hits = [
        SearchHit(
            id=project.id,
            type=EntityKind.PROJECT,
            title=project.name,
            description=project.description,
            url=f"/projects/{project.id}",
        )
        for project in _search(projects, EntityKind.PROJECT, text, limit)
    ]
    task_hits = [
        SearchHit(
            id=task.id,
            type=EntityKind.TASK,
            title=task.title,
            description=task.description,
            url=f"/projects/{task.project_id}/tasks/{task.id}",
        )
        for task in _search(tasks, EntityKind.TASK, text, limit)
    ]
    user_hits = [
        SearchHit(
            id=user.id,
            type=EntityKind.USER,
            title=user.name,
            description=user.email,
            url=f"/users/{user.id}",
        )
        for user in _search(users, EntityKind.USER, text, limit)
    ]

    return SearchResults(
        query=text,
        total_results=len(project_hits) + len(task_hits) + len(user_hits),
        projects=project_hits,
        tasks=task_hits,
        users=user_hits,
    )
