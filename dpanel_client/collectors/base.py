"""
命令适配器

每个适配器声明一条远端命令、一个输出解析函数和一个默认值。
解析失败时返回默认值，执行失败由调用方（聚合器）决定如何降级。
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from ..errors import ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CommandAdapter(Generic[T]):
    name: str
    command: str
    parse: Callable[[str], T]
    default: Callable[[], T]

    def run(
        self,
        session,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """通过会话执行命令并解析输出（阻塞，运行在工作线程中）"""
        output = session.execute(self.command, timeout=timeout, cancel_event=cancel_event)
        return self.parse_output(output)

    def parse_output(self, output: str) -> T:
        try:
            return self.parse(output)
        except ParseError as e:
            logger.debug(f"{self.name}: unparsable output, using default ({e})")
            return self.default()
