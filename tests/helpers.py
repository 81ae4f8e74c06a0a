"""Shared test doubles and row builders."""
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence

CHAT_ENDPOINT = "POST /v1/chat/completions"


class RecordingExecutor:
    """记录每次调用的假查询执行器"""

    def __init__(self, rows: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.rows = rows or []
        self.error = error
        self.calls: List[tuple] = []

    async def query(self, sql: str, params: Sequence[Any]) -> List[dict]:
        self.calls.append((sql, list(params)))
        if self.error is not None:
            raise self.error
        return self.rows


def make_log_row(index: int = 0, **overrides) -> dict:
    """构造一行日志查询结果 (snake_case 列名)"""
    row = {
        "timestamp": datetime(2024, 5, 1, 12, 0, 0) - timedelta(minutes=index),
        "success": 1,
        "model": "gpt-4o",
        "provider": "openai",
        "process_time": 1.5,
        "first_response_time": 0.25,
        "prompt_tokens": 10,
        "completion_tokens": 20,
        "total_tokens": 30,
        "text": f"request {index}",
    }
    row.update(overrides)
    return row
