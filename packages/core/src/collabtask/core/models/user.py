"""User Domain Model

email 全局唯一由外部存储保证，本模块仅作假设。
"""

from pydantic import Field

from .base import DomainModel
from .enums import UserRole, UserStatus


class User(DomainModel):
    """User 数据模型"""

    id: str = Field(description="唯一标识")
    name: str = Field(description="显示名称")
    email: str = Field(description="邮箱，全局唯一")
    avatar: str | None = Field(default=None, description="头像 URL")
    role: UserRole = Field(default=UserRole.MEMBER, description="角色")
    status: UserStatus = Field(default=UserStatus.INVITED, description="状态")
    created_at: str = Field(description="创建时间，ISO-8601 UTC")
    last_active: str | None = Field(default=None, description="最近活跃时间")
    timezone: str | None = Field(default=None, description="时区")
    position: str | None = Field(default=None, description="职位")
    department: str | None = Field(default=None, description="部门")
