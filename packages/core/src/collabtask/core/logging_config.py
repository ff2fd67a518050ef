"""structlog 配置模块

Core 自身从不调用 setup_logging()，由宿主进程（或 CLI 入口）在启动时调用一次。
日志统一写到 stderr，stdout 留给 CLI 的业务输出。
"""

import logging
import os
import sys

import structlog

_RENDERERS = {
    "json": lambda: structlog.processors.JSONRenderer(ensure_ascii=False),
    "dev": lambda: structlog.dev.ConsoleRenderer(),
}


def _shared_processors() -> list[structlog.types.Processor]:
    """structlog 事件与标准库日志共用的前置处理器"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json" 为结构化 JSON 输出，"dev" 为 pretty print；
            缺省读取 COLLABTASK_LOG_FORMAT（默认 dev），未知取值按 dev 处理
        log_level: 日志级别名；缺省读取 COLLABTASK_LOG_LEVEL（默认 INFO），
            无法识别时回退到 INFO
    """
    log_format = (log_format or os.environ.get("COLLABTASK_LOG_FORMAT", "dev")).lower()
    log_level = log_level or os.environ.get("COLLABTASK_LOG_LEVEL", "INFO")
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = _RENDERERS.get(log_format, _RENDERERS["dev"])()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)
    )

    # 重复调用只保留一个 handler
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(log_level))
