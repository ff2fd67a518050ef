"""Project Domain Model

owner_id 属于 member_ids 只是约定，不在模型层强制（见 integrity.membership_issues）。
"""

from pydantic import Field

from .base import DomainModel
from .enums import Priority, ProjectStatus, ProjectVisibility


class ProjectSettings(DomainModel):
    """项目设置，缺省值与存储层缺失时的默认一致"""

    allow_comments: bool = Field(default=True, description="允许评论")
    allow_attachments: bool = Field(default=True, description="允许附件")
    require_approval: bool = Field(default=False, description="需要审批")
    time_tracking: bool = Field(default=False, description="启用工时记录")


class Project(DomainModel):
    """Project 数据模型"""

    id: str = Field(description="唯一标识")
    name: str = Field(description="项目名称")
    description: str = Field(default="", description="项目描述")
    color: str = Field(default="", description="展示颜色")
    icon: str = Field(default="", description="展示图标")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="项目状态")
    visibility: ProjectVisibility = Field(
        default=ProjectVisibility.TEAM,
        description="可见性",
    )
    owner_id: str = Field(description="负责人 User ID")
    team_ids: list[str] = Field(default_factory=list, description="关联团队（集合语义）")
    member_ids: list[str] = Field(default_factory=list, description="成员（集合语义）")
    created_at: str = Field(description="创建时间")
    updated_at: str = Field(description="更新时间")
    due_date: str | None = Field(default=None, description="截止时间")
    progress: int = Field(default=0, ge=0, le=100, description="进度百分比")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    template: str | None = Field(default=None, description="创建时使用的模板")
    tags: list[str] = Field(default_factory=list, description="标签，保持顺序")
    settings: ProjectSettings = Field(
        default_factory=ProjectSettings,
        description="项目设置",
    )
