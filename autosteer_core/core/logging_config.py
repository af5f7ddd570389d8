"""
日志配置

各模块使用 logging.getLogger(__name__)，处理器和级别由应用层设置。
独立运行 (调参脚本、测试) 时可调用 configure_logging()。

日志级别:
    DEBUG    每周期的内部状态 (线段索引、积分值)
    INFO     低频事件 (配置加载、掉头完成、曲线走完)
    WARNING  失锁、退化线段、偏移结果为空、配置一致性警告

导航计算以 GNSS 定位频率 (~10 Hz) 运行，失锁一类的警告会每周期重复，
这类消息通过 ThrottledLogger 按原因节流。
"""
import logging
import sys
import time
from typing import Dict, Optional

DEFAULT_FORMAT = '[%(name)s] %(levelname)s: %(message)s'


def configure_logging(level: int = logging.INFO, format_str: str = DEFAULT_FORMAT) -> None:
    """配置 autosteer_core 命名空间的日志输出"""
    root = logging.getLogger('autosteer_core')
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_str))
        root.addHandler(handler)
    root.setLevel(level)


class ThrottledLogger:
    """
    按原因节流的日志器

    同一 key 在 min_interval 秒内只输出一次，期间被抑制的条数附在下一条消息后面。
    不带 key 的消息不节流。

    Example:
        >>> throttled = ThrottledLogger(logger, min_interval=5.0)
        >>> throttled.warning("stanley LOST_LOCK: curve too short", key='LOST_LOCK')
    """

    def __init__(self, logger: logging.Logger, min_interval: float = 1.0):
        self._logger = logger
        self._min_interval = min_interval
        self._last_emit: Dict[str, float] = {}
        self._suppressed: Dict[str, int] = {}

    def _emit(self, log_fn, msg: str, key: Optional[str]) -> None:
        if key is None:
            log_fn(msg)
            return

        now = time.monotonic()
        last = self._last_emit.get(key)
        if last is not None and now - last < self._min_interval:
            self._suppressed[key] = self._suppressed.get(key, 0) + 1
            return

        self._last_emit[key] = now
        skipped = self._suppressed.pop(key, 0)
        if skipped:
            msg = f"{msg} (suppressed {skipped} repeats)"
        log_fn(msg)

    def debug(self, msg: str, key: str = None) -> None:
        self._emit(self._logger.debug, msg, key)

    def info(self, msg: str, key: str = None) -> None:
        self._emit(self._logger.info, msg, key)

    def warning(self, msg: str, key: str = None) -> None:
        self._emit(self._logger.warning, msg, key)

    def suppressed_count(self, key: str) -> int:
        """当前窗口内被抑制的条数"""
        return self._suppressed.get(key, 0)

    def reset(self, key: str = None) -> None:
        """清除节流记录，key 为 None 时清除全部"""
        if key is None:
            self._last_emit.clear()
            self._suppressed.clear()
        else:
            self._last_emit.pop(key, None)
            self._suppressed.pop(key, None)


__all__ = ['configure_logging', 'ThrottledLogger', 'DEFAULT_FORMAT']
