"""Notification Domain Model

投递、持久化与已读状态变更由外部协作方负责，此处只定义形态。
"""

from pydantic import Field

from .base import DomainModel
from .enums import NotificationType, RelatedType


class Notification(DomainModel):
    """Notification 数据模型"""

    id: str = Field(description="唯一标识")
    type: NotificationType = Field(description="通知类型")
    title: str = Field(description="标题")
    message: str = Field(default="", description="正文")
    user_id: str = Field(description="接收者 User ID")
    read: bool = Field(default=False, description="是否已读")
    created_at: str = Field(description="创建时间")
    updated_at: str | None = Field(default=None, description="更新时间")
    related_id: str | None = Field(default=None, description="关联对象 ID")
    related_type: RelatedType | None = Field(default=None, description="关联对象类型")
    action_url: str | None = Field(default=None, description="跳转地址")
