"""CollabTask Core 异常体系

全部为本地同步错误，不存在可重试的 I/O：
- 数据问题在装配阶段暴露（MissingRelation / InvalidRecord），由调用方决定跳过或中止
- 调用意图问题（未知排序/分组键、未知过滤字段）立即抛出 InvalidQuerySpec，不做默认降级
- 枚举归一化从不抛错，见 normalize 模块
"""


class CollabTaskError(Exception):
    """Core 包基础异常"""


class AssemblyError(CollabTaskError):
    """实体装配失败"""

    def __init__(self, message: str, entity: str, record_id: str | None) -> None:
        """
        Args:
            message: 错误描述
            entity: 实体种类
            record_id: 原始记录 ID（可能缺失）
        """
        super().__init__(message)
        self.entity = entity
        self.record_id = record_id


class MissingRelation(AssemblyError):
    """必需的关联在原始记录中缺失（如 Task 的 projectId）

    装配器不会伪造取值。
    """

    def __init__(self, entity: str, record_id: str | None, relation: str) -> None:
        """
        Args:
            entity: 实体种类
            record_id: 原始记录 ID
            relation: 缺失的关联字段名
        """
        super().__init__(
            f"{entity} {record_id or '<unknown>'} 缺少必需关联: {relation}",
            entity=entity,
            record_id=record_id,
        )
        self.relation = relation


class InvalidRecord(AssemblyError):
    """原始记录形态不合法（缺少字段、取值越界、自依赖等）"""

    def __init__(self, entity: str, record_id: str | None, detail: str) -> None:
        super().__init__(
            f"{entity} {record_id or '<unknown>'} 记录不合法: {detail}",
            entity=entity,
            record_id=record_id,
        )
        self.detail = detail


class InvalidQuerySpec(CollabTaskError):
    """查询描述不合法（未知排序键、分组键或过滤字段等）"""

    def __init__(self, message: str, field: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            field: 出错的 QuerySpec 字段
        """
        super().__init__(message)
        self.field = field


class DependencyError(CollabTaskError):
    """任务依赖关系不合法"""


class InvalidDependency(DependencyError):
    """单条依赖引用不合法（自引用或引用不存在的任务）"""

    def __init__(self, task_id: str, dependency_id: str, reason: str) -> None:
        super().__init__(f"task {task_id} 的依赖 {dependency_id} 不合法: {reason}")
        self.task_id = task_id
        self.dependency_id = dependency_id
        self.reason = reason


class DependencyCycleError(DependencyError):
    """依赖图存在环路（数据完整性错误，不做静默消解）"""

    def __init__(self, cycle: list[str]) -> None:
        """
        Args:
            cycle: 环路上的任务 ID，按依赖方向排列
        """
        super().__init__(f"依赖存在环路: {' -> '.join([*cycle, cycle[0]])}")
        self.cycle = cycle
