"""全局搜索单元测试"""

from collabtask.core.models import EntityKind
from collabtask.core.search import global_search


class TestGlobalSearch:
    """跨 Project / Task / User 搜索"""

    def test_hits_per_kind(self, make_project, make_task, make_user):
        results = global_search(
            "Login",
            projects=[make_project("p1", name="Login revamp"), make_project("p2")],
            tasks=[
                make_task("t1", title="Fix login bug", project_id="p1"),
                make_task("t2", title="Docs"),
            ],
            users=[make_user("u1", department="Login squad"), make_user("u2")],
        )
        assert results.query == "Login"
        assert results.total_results == 3

        assert results.projects[0].id == "p1"
        assert results.projects[0].type == EntityKind.PROJECT
        assert results.projects[0].url == "/projects/p1"

        assert results.tasks[0].title == "Fix login bug"
        assert results.tasks[0].url == "/projects/p1/tasks/t1"

        assert results.users[0].url == "/users/u1"
        assert results.users[0].description == "u1@example.com"

    def test_limit_per_kind(self, make_task):
        tasks = [make_task(f"t{i}", title="bug") for i in range(5, 0, -1)]
        results = global_search("bug", tasks=tasks, limit=2)
        assert [hit.id for hit in results.tasks] == ["t1", "t2"]
        assert results.total_results == 2

    def test_default_limit_from_env(self, make_task, monkeypatch):
        monkeypatch.setenv("COLLABTASK_SEARCH_LIMIT", "1")
        tasks = [make_task("t1", title="bug"), make_task("t2", title="bug")]
        assert len(global_search("bug", tasks=tasks).tasks) == 1

    def test_blank_text(self, make_task):
        results = global_search("  ", tasks=[make_task("t1")])
        assert results.total_results == 0
        assert results.tasks == []

    def test_camel_case_dump(self, make_user):
        results = global_search("u1", users=[make_user("u1")])
        assert results.model_dump(by_alias=True)["totalResults"] == 1
