"""Task 状态流转与看板列映射

领域模型有 5 个字面状态，看板只展示 4 列：backlog 与 todo 合并到 todo 列，
但在存储和排序中仍是两个不同的状态。字面状态（TaskStatus）与列 ID（BoardColumn）
是两个独立概念，转换只经过 column_for()。

引擎不禁止任何流转（done 可以重新打开到任意更早状态），
流转策略如需约束由外部协作方负责。
"""

from datetime import UTC, datetime

from .models.enums import BoardColumn, TaskStatus
from .models.task import Task
from .timeutil import to_iso

# 生命周期顺序
STATUS_ORDER: tuple[TaskStatus, ...] = (
    TaskStatus.BACKLOG,
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
)

# 看板列顺序
BOARD_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn.TODO,
    BoardColumn.IN_PROGRESS,
    BoardColumn.REVIEW,
    BoardColumn.DONE,
)

STATUS_TO_COLUMN: dict[TaskStatus, BoardColumn] = {
    TaskStatus.BACKLOG: BoardColumn.TODO,
    TaskStatus.TODO: BoardColumn.TODO,
    TaskStatus.IN_PROGRESS: BoardColumn.IN_PROGRESS,
    TaskStatus.REVIEW: BoardColumn.REVIEW,
    TaskStatus.DONE: BoardColumn.DONE,
}

# 拖入某列时落地的字面状态
COLUMN_DEFAULT_STATUS: dict[BoardColumn, TaskStatus] = {
    BoardColumn.TODO: TaskStatus.TODO,
    BoardColumn.IN_PROGRESS: TaskStatus.IN_PROGRESS,
    BoardColumn.REVIEW: TaskStatus.REVIEW,
    BoardColumn.DONE: TaskStatus.DONE,
}


def column_for(status: TaskStatus | str) -> BoardColumn:
    """字面状态 -> 看板列 ID"""
    return STATUS_TO_COLUMN[TaskStatus(status)]


def statuses_in_column(column: BoardColumn | str) -> list[TaskStatus]:
    """看板列 -> 归入该列的字面状态（按生命周期顺序）"""
    column = BoardColumn(column)
    return [status for status in STATUS_ORDER if STATUS_TO_COLUMN[status] == column]


def can_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """流转是否允许

    引擎层面任意两个状态之间都可流转，保留此函数作为外部策略的挂载点。
    """
    return TaskStatus(from_status) in STATUS_ORDER and TaskStatus(to_status) in STATUS_ORDER


def transition(task: Task, to_status: TaskStatus | str, at: datetime | None = None) -> Task:
    """生成状态流转后的替换 Task

    - 进入 done 时写入 completed_at
    - 离开 done（重新打开）时清空 completed_at
    - 状态不变时原样返回

    Args:
        task: 当前 Task 快照
        to_status: 目标状态
        at: 流转时间（默认当前 UTC 时间）

    Returns:
        新的 Task 快照
    """
    to_status = TaskStatus(to_status)
    if task.status == to_status:
        return task

    stamp = to_iso(at or datetime.now(UTC))
    update: dict = {"status": to_status, "updated_at": stamp}
    if to_status == TaskStatus.DONE:
        update["completed_at"] = stamp
    elif task.status == TaskStatus.DONE:
        update["completed_at"] = None
    return task.model_copy(update=update)


def move_to_column(
    task: Task,
    column: BoardColumn | str,
    position: int,
    at: datetime | None = None,
) -> Task:
    """看板拖放：移动到指定列与位置

    Task 已处于目标列的某个字面状态时保留原状态（backlog 拖回 todo 列仍是 backlog），
    否则落地为该列的默认状态。
    """
    column = BoardColumn(column)
    if column_for(task.status) == column:
        moved = task
    else:
        moved = transition(task, COLUMN_DEFAULT_STATUS[column], at)
    if moved.position == position:
        return moved
    return moved.model_copy(
        update={
            "position": position,
            "updated_at": to_iso(at or datetime.now(UTC)),
        }
    )
