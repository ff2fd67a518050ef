"""查询引擎单元测试

测试内容：
1. 排序（各实体种类的排序键、平局规则、确定性）
2. 分组（看板列、空组、完整性）
3. 过滤与搜索（AND 组合、范围过滤、overdue）
4. 分页
5. 非法查询描述
"""

from datetime import datetime

import pytest
from collabtask.core.config import QueryConfig
from collabtask.core.exceptions import InvalidQuerySpec
from collabtask.core.models import (
    EntityKind,
    Page,
    Priority,
    ProjectStatus,
    QuerySpec,
    TaskStatus,
    UserRole,
)
from collabtask.core.query import board, paginate, query, resolve_group_key, resolve_sort_key


def _ids(items) -> list[str]:
    return [item.id for item in items]


class TestSort:
    """排序"""

    def test_priority_descending(self, make_task):
        """urgent 在 low 之前"""
        tasks = [
            make_task("t1", priority=Priority.LOW),
            make_task("t2", priority=Priority.URGENT),
        ]
        result = query(tasks, QuerySpec(sort_key="priority"))
        assert _ids(result) == ["t2", "t1"]

    def test_priority_full_order(self, make_task):
        tasks = [
            make_task("a", priority=Priority.MEDIUM),
            make_task("b", priority=Priority.LOW),
            make_task("c", priority=Priority.URGENT),
            make_task("d", priority=Priority.HIGH),
        ]
        assert _ids(query(tasks, QuerySpec(sort_key="priority"))) == ["c", "d", "a", "b"]

    def test_ties_broken_by_id(self, make_task):
        """同优先级按 id 升序，与输入顺序无关"""
        tasks = [
            make_task("t3", priority=Priority.HIGH),
            make_task("t1", priority=Priority.HIGH),
            make_task("t2", priority=Priority.HIGH),
        ]
        forward = query(tasks, QuerySpec(sort_key="priority"))
        backward = query(list(reversed(tasks)), QuerySpec(sort_key="priority"))
        assert _ids(forward) == _ids(backward) == ["t1", "t2", "t3"]

    def test_due_date_missing_last(self, make_task):
        tasks = [
            make_task("t1"),
            make_task("t2", due_date="2024-02-01T00:00:00.000Z"),
            make_task("t3", due_date="2024-01-20T00:00:00.000Z"),
        ]
        assert _ids(query(tasks, QuerySpec(sort_key="dueDate"))) == ["t3", "t2", "t1"]

    def test_sort_key_alias(self, make_task):
        tasks = [
            make_task("t1"),
            make_task("t2", due_date="2024-02-01T00:00:00.000Z"),
        ]
        assert _ids(query(tasks, QuerySpec(sort_key="due_date"))) == ["t2", "t1"]

    def test_created_newest_first(self, make_task):
        tasks = [
            make_task("t1", created_at="2024-01-01T00:00:00.000Z"),
            make_task("t2", created_at="2024-01-03T00:00:00.000Z"),
            make_task("t3", created_at="2024-01-02T00:00:00.000Z"),
        ]
        assert _ids(query(tasks, QuerySpec(sort_key="created"))) == ["t2", "t3", "t1"]

    def test_updated_newest_first(self, make_task):
        """最近更新在前，更新时间相同按 id 升序"""
        tasks = [
            make_task("t3", updated_at="2024-01-05T00:00:00.000Z"),
            make_task("t1", updated_at="2024-01-02T00:00:00.000Z"),
            make_task("t4", updated_at="2024-01-09T00:00:00.000Z"),
            make_task("t2", updated_at="2024-01-05T00:00:00.000Z"),
        ]
        result = query(tasks, QuerySpec(sort_key="updated"))
        assert _ids(result) == ["t4", "t2", "t3", "t1"]

    def test_assignee_by_display_name(self, make_task, make_user):
        """按主负责人显示名称排序，未分配或无法解析的排最后"""
        users = [make_user("u1", name="zoe"), make_user("u2", name="Adam")]
        tasks = [
            make_task("t1", assignee_ids=["u1"]),
            make_task("t2"),
            make_task("t3", assignee_ids=["u2", "u1"]),
            make_task("t4", assignee_ids=["ghost"]),
        ]
        result = query(tasks, QuerySpec(sort_key="assignee"), users=users)
        assert _ids(result) == ["t3", "t1", "t2", "t4"]

    def test_position_then_created(self, make_task):
        tasks = [
            make_task("t1", position=2),
            make_task("t2", position=1, created_at="2024-01-01T00:00:00.000Z"),
            make_task("t3", position=1, created_at="2024-01-05T00:00:00.000Z"),
        ]
        assert _ids(query(tasks, QuerySpec(sort_key="position"))) == ["t3", "t2", "t1"]

    def test_project_sorts(self, make_project):
        projects = [
            make_project("p1", name="beta", progress=10),
            make_project("p2", name="Alpha", progress=90),
            make_project("p3", name="gamma", progress=50),
        ]
        by_name = query(projects, QuerySpec(target=EntityKind.PROJECT, sort_key="name"))
        assert _ids(by_name) == ["p2", "p1", "p3"]
        by_progress = query(projects, QuerySpec(target=EntityKind.PROJECT, sort_key="progress"))
        assert _ids(by_progress) == ["p2", "p3", "p1"]

    def test_project_due_date_and_created(self, make_project):
        projects = [
            make_project("p1", created_at="2024-01-03T00:00:00.000Z"),
            make_project(
                "p2",
                due_date="2024-03-01T00:00:00.000Z",
                created_at="2024-01-01T00:00:00.000Z",
            ),
            make_project(
                "p3",
                due_date="2024-02-01T00:00:00.000Z",
                created_at="2024-01-02T00:00:00.000Z",
            ),
        ]
        by_due = query(projects, QuerySpec(target=EntityKind.PROJECT, sort_key="dueDate"))
        assert _ids(by_due) == ["p3", "p2", "p1"]
        by_created = query(projects, QuerySpec(target=EntityKind.PROJECT, sort_key="created"))
        assert _ids(by_created) == ["p1", "p3", "p2"]

    def test_project_updated(self, make_project):
        projects = [
            make_project("p1", updated_at="2024-01-02T00:00:00.000Z"),
            make_project("p2", updated_at="2024-01-04T00:00:00.000Z"),
        ]
        result = query(projects, QuerySpec(target=EntityKind.PROJECT, sort_key="updated"))
        assert _ids(result) == ["p2", "p1"]

    def test_user_sorts(self, make_user):
        users = [
            make_user("u1", role=UserRole.MEMBER, last_active="2024-01-10T00:00:00.000Z"),
            make_user("u2", role=UserRole.ADMIN),
            make_user("u3", role=UserRole.MANAGER, last_active="2024-01-12T00:00:00.000Z"),
        ]
        by_role = query(users, QuerySpec(target=EntityKind.USER, sort_key="role"))
        assert _ids(by_role) == ["u2", "u3", "u1"]
        by_active = query(users, QuerySpec(target=EntityKind.USER, sort_key="lastActive"))
        assert _ids(by_active) == ["u3", "u1", "u2"]

    def test_no_sort_keeps_input_order(self, make_task):
        tasks = [make_task("t2"), make_task("t1")]
        assert _ids(query(tasks)) == ["t2", "t1"]

    def test_result_is_new_list(self, make_task):
        tasks = [make_task("t1")]
        result = query(tasks)
        assert result == tasks
        assert result is not tasks


class TestGroup:
    """分组"""

    def test_backlog_and_todo_share_column(self, make_task):
        """backlog 与 todo 同在 todo 列，其余列为空"""
        tasks = [
            make_task("t1", status=TaskStatus.BACKLOG),
            make_task("t2", status=TaskStatus.TODO),
        ]
        groups = query(tasks, QuerySpec(group_key="status"))
        assert {key: _ids(value) for key, value in groups.items()} == {
            "todo": ["t1", "t2"],
            "in_progress": [],
            "review": [],
            "done": [],
        }

    def test_group_order_and_completeness(self):
        groups = query([], QuerySpec(group_key="status"))
        assert list(groups) == ["todo", "in_progress", "review", "done"]
        assert all(value == [] for value in groups.values())

    def test_raw_status_group(self, make_task):
        tasks = [
            make_task("t1", status=TaskStatus.BACKLOG),
            make_task("t2", status=TaskStatus.TODO),
        ]
        groups = query(tasks, QuerySpec(group_key="raw_status"))
        assert list(groups) == ["backlog", "todo", "in_progress", "review", "done"]
        assert _ids(groups["backlog"]) == ["t1"]
        assert _ids(groups["todo"]) == ["t2"]

    def test_sorted_within_groups(self, make_task):
        tasks = [
            make_task("t1", priority=Priority.LOW, status=TaskStatus.REVIEW),
            make_task("t2", priority=Priority.HIGH, status=TaskStatus.REVIEW),
            make_task("t3", priority=Priority.URGENT, status=TaskStatus.DONE),
        ]
        groups = query(tasks, QuerySpec(sort_key="priority", group_key="status"))
        assert _ids(groups["review"]) == ["t2", "t1"]
        assert _ids(groups["done"]) == ["t3"]

    def test_every_entity_in_exactly_one_group(self, make_task):
        tasks = [make_task(f"t{i}", status=status) for i, status in enumerate(TaskStatus)]
        groups = query(tasks, QuerySpec(group_key="status"))
        grouped = [task.id for items in groups.values() for task in items]
        assert sorted(grouped) == sorted(_ids(tasks))

    def test_project_status_group(self, make_project):
        projects = [
            make_project("p1", status=ProjectStatus.PAUSED),
            make_project("p2"),
        ]
        groups = query(projects, QuerySpec(target=EntityKind.PROJECT, group_key="status"))
        assert list(groups) == ["active", "paused", "completed", "archived"]
        assert _ids(groups["paused"]) == ["p1"]
        assert _ids(groups["active"]) == ["p2"]

    def test_user_role_group(self, make_user):
        users = [make_user("u1", role=UserRole.ADMIN), make_user("u2")]
        groups = query(users, QuerySpec(target=EntityKind.USER, group_key="role"))
        assert list(groups) == ["admin", "manager", "member"]
        assert _ids(groups["member"]) == ["u2"]


class TestFilterAndSearch:
    """过滤与搜索"""

    def test_search_is_case_insensitive(self, make_task):
        tasks = [
            make_task("t1", title="Fix login BUG"),
            make_task("t2", title="Write docs", description="mention a bug here"),
            make_task("t3", title="Refactor"),
        ]
        result = query(tasks, QuerySpec(search_text="bug"))
        assert _ids(result) == ["t1", "t2"]

    def test_blank_search_matches_all(self, make_task):
        tasks = [make_task("t1"), make_task("t2")]
        assert len(query(tasks, QuerySpec(search_text="   "))) == 2

    def test_search_keeps_surrounding_whitespace(self, make_task):
        """搜索文本的首尾空白参与匹配，“fix ” 不命中 fixture"""
        tasks = [
            make_task("t1", title="Update fixture data"),
            make_task("t2", title="Quick fix login"),
        ]
        assert _ids(query(tasks, QuerySpec(search_text="fix "))) == ["t2"]

    def test_date_range_excludes_outside(self, make_task):
        """2024-02-01 不在 2024-01-01..2024-01-31 内"""
        tasks = [
            make_task("t1", due_date="2024-01-15T00:00:00.000Z"),
            make_task("t2", due_date="2024-02-01T00:00:00.000Z"),
            make_task("t3", due_date="2024-01-31T18:00:00.000Z"),
            make_task("t4"),
        ]
        spec = QuerySpec(filters={"dueDate": {"start": "2024-01-01", "end": "2024-01-31"}})
        assert _ids(query(tasks, spec)) == ["t1", "t3"]

    def test_open_ended_range(self, make_task):
        tasks = [
            make_task("t1", due_date="2024-01-15T00:00:00.000Z"),
            make_task("t2", due_date="2024-03-01T00:00:00.000Z"),
        ]
        spec = QuerySpec(filters={"due_date": {"start": "2024-02-01"}})
        assert _ids(query(tasks, spec)) == ["t2"]

    def test_filters_and_search_are_anded(self, make_task):
        tasks = [
            make_task("t1", title="bug A", priority=Priority.HIGH),
            make_task("t2", title="bug B", priority=Priority.LOW),
            make_task("t3", title="feature", priority=Priority.HIGH),
        ]
        spec = QuerySpec(search_text="bug", filters={"priority": "high"})
        assert _ids(query(tasks, spec)) == ["t1"]

    def test_multi_select_filter(self, make_task):
        tasks = [
            make_task("t1", priority=Priority.HIGH),
            make_task("t2", priority=Priority.LOW),
            make_task("t3", priority=Priority.URGENT),
        ]
        spec = QuerySpec(filters={"priority": ["high", "urgent"]})
        assert _ids(query(tasks, spec)) == ["t1", "t3"]

    def test_list_field_membership(self, make_task):
        """列表字段：单值为包含，多值为交集"""
        tasks = [
            make_task("t1", assignee_ids=["u1", "u2"]),
            make_task("t2", assignee_ids=["u3"]),
            make_task("t3"),
        ]
        assert _ids(query(tasks, QuerySpec(filters={"assigneeIds": "u2"}))) == ["t1"]
        spec = QuerySpec(filters={"assignee_ids": ["u3", "u9"]})
        assert _ids(query(tasks, spec)) == ["t2"]

    def test_number_range(self, make_project):
        projects = [
            make_project("p1", progress=10),
            make_project("p2", progress=50),
            make_project("p3", progress=100),
        ]
        spec = QuerySpec(target=EntityKind.PROJECT, filters={"progress": {"min": 20, "max": 99}})
        assert _ids(query(projects, spec)) == ["p2"]

    def test_overdue(self, make_task, now):
        """截止时间已过且未完成"""
        tasks = [
            make_task("t1", due_date="2024-01-10T00:00:00.000Z"),
            make_task("t2", due_date="2024-01-10T00:00:00.000Z", status=TaskStatus.DONE),
            make_task("t3", due_date="2024-01-20T00:00:00.000Z"),
            make_task("t4"),
        ]
        assert _ids(query(tasks, QuerySpec(overdue=True), now=now)) == ["t1"]

    def test_overdue_with_naive_now(self, make_task):
        """不带时区的 now 按 UTC 处理"""
        tasks = [
            make_task("t1", due_date="2024-01-10T00:00:00.000Z"),
            make_task("t2", due_date="2024-01-15T12:30:00.000Z"),
        ]
        spec = QuerySpec(overdue=True)
        assert _ids(query(tasks, spec, now=datetime(2024, 1, 15, 12, 0))) == ["t1"]

    def test_user_search_by_email(self, make_user):
        users = [make_user("u1"), make_user("u2", email="ada@corp.io")]
        spec = QuerySpec(target=EntityKind.USER, search_text="CORP")
        assert _ids(query(users, spec)) == ["u2"]


class TestPagination:
    """分页"""

    def test_page(self, make_task):
        tasks = [make_task(f"t{i}") for i in range(1, 6)]
        page = query(tasks, QuerySpec(sort_key="created", page=2, page_size=2))
        assert isinstance(page, Page)
        assert _ids(page.items) == ["t3", "t4"]
        assert page.total == 5
        assert page.total_pages == 3

    def test_page_beyond_range_is_empty(self, make_task):
        page = paginate([make_task("t1")], page=5, page_size=10)
        assert page.items == []
        assert page.total == 1
        assert page.total_pages == 1

    def test_default_and_clamped_page_size(self):
        config = QueryConfig(default_page_size=3, max_page_size=5)
        assert paginate(list(range(10)), config=config).items == [0, 1, 2]
        clamped = paginate(list(range(10)), page_size=50, config=config)
        assert clamped.page_size == 5
        assert clamped.total_pages == 2

    def test_empty(self):
        page = paginate([], config=QueryConfig())
        assert page.total == 0
        assert page.total_pages == 0

    def test_grouping_with_pagination_rejected(self, make_task):
        with pytest.raises(InvalidQuerySpec):
            query([make_task("t1")], QuerySpec(group_key="status", page=1))


class TestInvalidSpec:
    """非法查询描述立即报错，不静默降级"""

    def test_unknown_sort_key(self, make_task):
        with pytest.raises(InvalidQuerySpec) as exc_info:
            query([make_task("t1")], QuerySpec(sort_key="colour"))
        assert exc_info.value.field == "sort_key"

    def test_sort_key_not_valid_for_target(self):
        """name 是项目排序键，不是 task 排序键"""
        with pytest.raises(InvalidQuerySpec):
            resolve_sort_key(EntityKind.TASK, "name")
        assert resolve_sort_key(EntityKind.PROJECT, "name") is not None

    def test_unknown_group_key(self):
        with pytest.raises(InvalidQuerySpec) as exc_info:
            resolve_group_key(EntityKind.USER, "priority")
        assert exc_info.value.field == "group_key"

    def test_unknown_filter_field(self, make_task):
        with pytest.raises(InvalidQuerySpec):
            query([make_task("t1")], QuerySpec(filters={"colour": "red"}))

    def test_range_on_wrong_field(self, make_task):
        with pytest.raises(InvalidQuerySpec):
            query([make_task("t1")], QuerySpec(filters={"title": {"start": "2024-01-01"}}))

    def test_overdue_only_for_tasks(self, make_project):
        spec = QuerySpec(target=EntityKind.PROJECT, overdue=True)
        with pytest.raises(InvalidQuerySpec):
            query([make_project("p1")], spec)

    def test_entity_kind_mismatch(self, make_project):
        with pytest.raises(InvalidQuerySpec):
            query([make_project("p1")], QuerySpec(target=EntityKind.TASK))

    def test_non_queryable_target(self):
        with pytest.raises(InvalidQuerySpec):
            query([], QuerySpec(target=EntityKind.COMMENT))


class TestBoard:
    """看板视图"""

    def test_board_groups_and_sorts(self, make_task):
        tasks = [
            make_task("t1", status=TaskStatus.BACKLOG, priority=Priority.LOW),
            make_task("t2", status=TaskStatus.TODO, priority=Priority.URGENT),
            make_task("t3", status=TaskStatus.DONE),
        ]
        columns = board(tasks)
        assert list(columns) == ["todo", "in_progress", "review", "done"]
        assert _ids(columns["todo"]) == ["t2", "t1"]
        assert _ids(columns["done"]) == ["t3"]

    def test_board_with_search(self, make_task):
        tasks = [
            make_task("t1", title="bug"),
            make_task("t2", title="feature", status=TaskStatus.REVIEW),
        ]
        columns = board(tasks, QuerySpec(search_text="bug"))
        assert _ids(columns["todo"]) == ["t1"]
        assert columns["review"] == []
