"""Team Domain Model"""

from pydantic import Field

from .base import DomainModel


class Team(DomainModel):
    """Team 数据模型，leader_id 属于 member_ids 仅为约定"""

    id: str = Field(description="唯一标识")
    name: str = Field(description="团队名称")
    description: str = Field(default="", description="团队描述")
    member_ids: list[str] = Field(default_factory=list, description="成员（集合语义）")
    leader_id: str = Field(description="负责人 User ID")
    created_at: str = Field(description="创建时间")
    color: str = Field(default="", description="展示颜色")
    department: str | None = Field(default=None, description="所属部门")
