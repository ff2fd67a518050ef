"""CLI 入口模块 -- python -m collabtask.core <command> <records.json>

支持的命令：
  board       将原始 Task 记录装配后按看板列输出
  check-deps  校验原始 Task 记录的依赖关系
"""

import json
import sys
from pathlib import Path

from .assembler import assemble_many
from .integrity import find_dependency_issues
from .logging_config import setup_logging
from .models.enums import EntityKind
from .query import board

_USAGE = """用法: python -m collabtask.core <command> <records.json>
命令:
  board       将原始 Task 记录装配后按看板列输出
  check-deps  校验原始 Task 记录的依赖关系"""


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回进程退出码"""
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 2:
        print(_USAGE)
        return 1

    command, path = argv[0], Path(argv[1])
    if command not in ("board", "check-deps"):
        print(f"未知命令: {command}")
        print("可用命令: board, check-deps")
        return 1

    setup_logging()
    records = json.loads(path.read_text(encoding="utf-8"))
    tasks = assemble_many(EntityKind.TASK, records, skip_invalid=True)

    if command == "board":
        for column, column_tasks in board(tasks).items():
            print(f"[{column}] {len(column_tasks)}")
            for task in column_tasks:
                print(f"  {task.id}  {task.priority.value:<7} {task.title}")
        return 0

    issues = find_dependency_issues(tasks)
    for issue in issues:
        print(f"{issue.kind.value:<14} {issue.entity_id}  {issue.detail}")
    print(f"共 {len(tasks)} 个任务，{len(issues)} 个依赖问题")
    return 1 if issues else 0


if __name__ == "__main__":
    sys.exit(main())
