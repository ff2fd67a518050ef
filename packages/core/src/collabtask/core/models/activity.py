"""Activity Domain Model

活动流 append-only，本模块不提供修改或删除。
"""

from pydantic import Field

from .base import DomainModel
from .enums import ActivityType

MetadataValue = str | int | float | bool


class Activity(DomainModel):
    """Activity 数据模型"""

    id: str = Field(description="唯一标识")
    type: ActivityType = Field(description="活动类型")
    user_id: str = Field(description="操作者 User ID")
    project_id: str | None = Field(default=None, description="关联 Project ID")
    task_id: str | None = Field(default=None, description="关联 Task ID")
    description: str = Field(default="", description="描述")
    created_at: str = Field(description="发生时间")
    metadata: dict[str, MetadataValue] | None = Field(default=None, description="附加信息")
