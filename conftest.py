"""全局 pytest 配置 -- 日志捕获与环境变量隔离"""

import pytest
import structlog
from structlog.testing import capture_logs

_ENV_VARS = (
    "COLLABTASK_DEFAULT_PAGE_SIZE",
    "COLLABTASK_MAX_PAGE_SIZE",
    "COLLABTASK_SEARCH_LIMIT",
    "COLLABTASK_LOG_FORMAT",
    "COLLABTASK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """清除 COLLABTASK_* 环境变量，避免宿主环境影响默认配置"""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def captured_logs():
    """捕获 structlog 事件（列表中每项为一条日志的 dict）"""
    with capture_logs() as logs:
        yield logs
    structlog.reset_defaults()
