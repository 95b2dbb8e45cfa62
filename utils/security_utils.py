"""
安全工具模块
提供滑动窗口限流器
"""

import time
import threading
from typing import Dict, List


class RateLimiter:
    """简单的内存限流器（线程安全）"""

    def __init__(self, max_requests: int = 100, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def is_allowed(self, identifier: str) -> bool:
        """检查是否允许请求，允许时记录本次请求"""
        with self._lock:
            current_time = time.time()
            window_start = current_time - self.window_seconds

            # 清理过期记录
            self.requests[identifier] = [
                req_time for req_time in self.requests.get(identifier, [])
                if req_time > window_start
            ]

            # 检查是否超过限制
            if len(self.requests[identifier]) >= self.max_requests:
                return False

            # 记录当前请求
            self.requests[identifier].append(current_time)
            return True

    def get_remaining_requests(self, identifier: str) -> int:
        """获取剩余请求次数"""
        with self._lock:
            if identifier not in self.requests:
                return self.max_requests

            window_start = time.time() - self.window_seconds
            active = [t for t in self.requests[identifier] if t > window_start]
            return max(0, self.max_requests - len(active))

    def reset(self, identifier: str = None):
        """重置限流记录"""
        with self._lock:
            if identifier is None:
                self.requests.clear()
            else:
                self.requests.pop(identifier, None)
