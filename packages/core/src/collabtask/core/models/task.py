"""Task Domain Model 及其从属实体

Subtask、Comment、Attachment 归属于唯一的 Task（Attachment 也可归属 Comment），
随 Task 一起装配，不单独参与查询。
"""

from typing import Self

from pydantic import Field, model_validator

from .base import DomainModel
from .enums import Priority, TaskStatus

CustomFieldValue = str | int | float | bool | list[str]


class Attachment(DomainModel):
    """附件"""

    id: str = Field(description="唯一标识")
    name: str = Field(description="文件名")
    url: str = Field(description="访问地址")
    type: str = Field(default="", description="MIME 类型或扩展名")
    size: int = Field(default=0, ge=0, description="文件大小（字节）")
    uploaded_by: str = Field(description="上传者 User ID")
    uploaded_at: str = Field(description="上传时间")


class Reaction(DomainModel):
    """评论表情回应"""

    emoji: str
    user_ids: list[str] = Field(default_factory=list)


class Comment(DomainModel):
    """评论"""

    id: str = Field(description="唯一标识")
    content: str = Field(description="评论内容")
    author_id: str = Field(description="作者 User ID")
    created_at: str = Field(description="创建时间")
    updated_at: str | None = Field(default=None, description="更新时间")
    mentions: list[str] = Field(default_factory=list, description="被提及的 User ID")
    attachments: list[Attachment] = Field(default_factory=list)
    reactions: list[Reaction] = Field(default_factory=list)


class Subtask(DomainModel):
    """子任务"""

    id: str = Field(description="唯一标识")
    title: str = Field(description="标题")
    completed: bool = Field(default=False, description="是否完成")
    assignee_id: str | None = Field(default=None, description="负责人 User ID")
    due_date: str | None = Field(default=None, description="截止时间")
    created_at: str = Field(description="创建时间")


class Task(DomainModel):
    """Task 数据模型

    assignee_ids 有序，第一位为列表视图中的主负责人。
    dependencies 为前置任务 ID，不允许包含自身；
    环路、跨项目引用由 integrity 模块显式校验。
    """

    id: str = Field(description="唯一标识")
    title: str = Field(description="标题")
    description: str = Field(default="", description="描述")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="字面状态")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    project_id: str = Field(description="所属 Project ID")
    assignee_ids: list[str] = Field(default_factory=list, description="负责人，有序")
    reporter_id: str = Field(description="报告人 User ID")
    created_at: str = Field(description="创建时间")
    updated_at: str = Field(description="更新时间")
    due_date: str | None = Field(default=None, description="截止时间")
    start_date: str | None = Field(default=None, description="开始时间")
    completed_at: str | None = Field(default=None, description="完成时间")
    estimated_hours: float | None = Field(default=None, ge=0, description="预估工时")
    actual_hours: float | None = Field(default=None, ge=0, description="实际工时")
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list, description="前置任务 ID")
    subtasks: list[Subtask] = Field(default_factory=list)
    custom_fields: dict[str, CustomFieldValue] = Field(default_factory=dict)
    position: int = Field(default=0, description="列内手动排序位置")

    @model_validator(mode="after")
    def _reject_self_dependency(self) -> Self:
        if self.id in self.dependencies:
            raise ValueError(f"task {self.id} 不能依赖自身")
        return self

    @property
    def primary_assignee_id(self) -> str | None:
        """主负责人（assignee_ids 第一位）"""
        return self.assignee_ids[0] if self.assignee_ids else None
