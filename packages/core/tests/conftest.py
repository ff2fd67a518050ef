"""packages/core 测试配置 -- 实体构造 fixture"""

from datetime import UTC, datetime

import pytest
from collabtask.core.models import Project, Task, User


@pytest.fixture
def now() -> datetime:
    """固定参考时间"""
    return datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_task():
    """Task 工厂，只需给出关心的字段"""

    def _make(task_id: str, **overrides) -> Task:
        fields = {
            "id": task_id,
            "title": f"Task {task_id}",
            "project_id": "p1",
            "reporter_id": "u1",
            "created_at": "2024-01-01T00:00:00.000Z",
            "updated_at": "2024-01-01T00:00:00.000Z",
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def make_project():
    """Project 工厂"""

    def _make(project_id: str, **overrides) -> Project:
        fields = {
            "id": project_id,
            "name": f"Project {project_id}",
            "owner_id": "u1",
            "member_ids": ["u1"],
            "created_at": "2024-01-01T00:00:00.000Z",
            "updated_at": "2024-01-01T00:00:00.000Z",
        }
        fields.update(overrides)
        return Project(**fields)

    return _make


@pytest.fixture
def make_user():
    """User 工厂"""

    def _make(user_id: str, **overrides) -> User:
        fields = {
            "id": user_id,
            "name": f"User {user_id}",
            "email": f"{user_id}@example.com",
            "created_at": "2024-01-01T00:00:00.000Z",
        }
        fields.update(overrides)
        return User(**fields)

    return _make
