"""派生统计模型"""

from pydantic import Field

from .base import DomainModel


class ProjectStats(DomainModel):
    """项目统计"""

    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    total_members: int = 0
    total_hours: float = 0.0
    remaining_hours: float = 0.0


class UserStats(DomainModel):
    """用户统计"""

    total_tasks: int = 0
    completed_tasks: int = 0
    active_projects: int = 0
    completion_rate: int = Field(default=0, ge=0, le=100, description="完成率百分比")
