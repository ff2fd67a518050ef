"""查询描述模型

QuerySpec 每次查询构造一次，不可变；sort_key / group_key 的合法性
由查询引擎按 target 校验（非法值抛出 InvalidQuerySpec，而不是静默降级）。
"""

from typing import Any

from pydantic import ConfigDict, Field

from .base import DomainModel
from .enums import EntityKind


class DateRange(DomainModel):
    """日期范围，两端可选，存在时为闭区间

    end 若为纯日期（YYYY-MM-DD），覆盖当天全部时间。
    """

    model_config = ConfigDict(extra="forbid")

    start: str | None = None
    end: str | None = None


class NumberRange(DomainModel):
    """数值范围，两端可选，存在时为闭区间"""

    model_config = ConfigDict(extra="forbid")

    min: float | None = None
    max: float | None = None


Scalar = str | int | float | bool
FilterValue = Scalar | list[Scalar] | DateRange | NumberRange


class QuerySpec(DomainModel):
    """一次查询的完整描述

    处理顺序固定：filter -> search -> sort -> group（分页在排序之后，且不与分组同时使用）。
    """

    target: EntityKind = Field(default=EntityKind.TASK, description="查询目标实体种类")
    search_text: str | None = Field(default=None, description="大小写不敏感的子串搜索")
    filters: dict[str, FilterValue] = Field(
        default_factory=dict,
        description="字段过滤，字段名可用 snake_case 或 camelCase",
    )
    overdue: bool = Field(default=False, description="仅保留已逾期且未完成的 Task")
    sort_key: str | None = Field(default=None, description="排序键")
    group_key: str | None = Field(default=None, description="分组键")
    page: int | None = Field(default=None, ge=1, description="页码，从 1 开始")
    page_size: int | None = Field(default=None, ge=1, description="每页条数")


class Page(DomainModel):
    """分页结果"""

    items: list[Any] = Field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0
    total_pages: int = 0
