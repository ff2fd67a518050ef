"""配置模块 -- 可通过环境变量覆盖

包含分页、全局搜索条数上限等可配置项。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class QueryConfig(BaseModel):
    """查询引擎配置 -- 从环境变量加载

    环境变量:
        COLLABTASK_DEFAULT_PAGE_SIZE: 默认每页条数（默认 20）
        COLLABTASK_MAX_PAGE_SIZE: 每页条数上限（默认 100）
        COLLABTASK_SEARCH_LIMIT: 全局搜索每类条数（默认 10）
    """

    default_page_size: int = Field(default=20, ge=1, description="默认每页条数")
    max_page_size: int = Field(default=100, ge=1, description="每页条数上限")
    search_limit: int = Field(default=10, ge=1, description="全局搜索每类条数")


_ENV_FIELDS: dict[str, str] = {
    "COLLABTASK_DEFAULT_PAGE_SIZE": "default_page_size",
    "COLLABTASK_MAX_PAGE_SIZE": "max_page_size",
    "COLLABTASK_SEARCH_LIMIT": "search_limit",
}


def load_query_config() -> QueryConfig:
    """从环境变量加载查询配置

    非整数取值记录 warning 并回退到默认值，不阻塞调用。

    Returns:
        QueryConfig 实例
    """
    kwargs: dict = {}

    for env_var, field_name in _ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            kwargs[field_name] = int(val)
        except ValueError:
            log.warning(
                "invalid_query_config",
                env_var=env_var,
                value=val,
                fallback=QueryConfig.model_fields[field_name].default,
            )

    return QueryConfig(**kwargs)
