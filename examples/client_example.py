"""
Usage Analytics 客户端使用示例

展示如何使用 Python 客户端查询用量统计
"""
import asyncio
from typing import AsyncGenerator, Optional

import httpx


class UsageAnalyticsClient:
    """Usage Analytics 客户端"""

    def __init__(self, base_url: str = "http://localhost:8000", api_key: str = ""):
        """
        初始化客户端

        Args:
            base_url: API 基础 URL
            api_key: 要查询的 API 密钥
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key

    async def _get(self, path: str, **params):
        query = {"apiKey": self.api_key}
        query.update({k: v for k, v in params.items() if v is not None})
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.get(f"{self.base_url}{path}", params=query)
            response.raise_for_status()
            return response.json()

    async def overview(self):
        """获取总览统计"""
        return await self._get("/api/stats/overview")

    async def channel_stats(self):
        """获取按渠道统计"""
        return await self._get("/api/stats/channels")

    async def model_stats(self):
        """获取按模型统计"""
        return await self._get("/api/stats/models")

    async def logs(
        self,
        page: int = 1,
        limit: int = 30,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        success: Optional[bool] = None,
    ):
        """获取一页请求日志"""
        status = None if success is None else str(success).lower()
        return await self._get(
            "/api/logs",
            page=page,
            limit=limit,
            model=model,
            provider=provider,
            status=status,
        )

    async def iter_logs(self, limit: int = 100, **filters) -> AsyncGenerator[dict, None]:
        """按页遍历所有日志, 直到 hasNextPage 为 false"""
        page = 1
        while True:
            data = await self.logs(page=page, limit=limit, **filters)
            for row in data["logs"]:
                yield row
            if not data["hasNextPage"]:
                break
            page += 1


async def example_overview(client: UsageAnalyticsClient):
    """示例1: 总览"""
    print("=== 示例1: 总览 ===\n")
    stats = await client.overview()
    print(f"请求数: {stats['requests']}")
    print(f"Token 总量: {stats['totalTokens']}")
    print(f"平均耗时: {stats['avgProcessTime']:.3f}s")
    print()


async def example_breakdown(client: UsageAnalyticsClient):
    """示例2: 按渠道和模型统计"""
    print("=== 示例2: 渠道 / 模型 ===\n")
    for row in await client.channel_stats():
        print(f"渠道 {row['provider']}: {row['requests']} 次, 成功率 {row['successRate']:.1%}")
    for row in await client.model_stats():
        print(f"模型 {row['model']}: {row['requests']} 次, 成功率 {row['successRate']:.1%}")
    print()


async def example_failed_logs(client: UsageAnalyticsClient):
    """示例3: 遍历失败请求"""
    print("=== 示例3: 失败请求 ===\n")
    count = 0
    async for row in client.iter_logs(limit=50, success=False):
        count += 1
        print(f"{row['timestamp']} {row['model']} via {row['provider']}")
    print(f"\n共 {count} 条失败请求\n")


async def main():
    """运行所有示例"""
    client = UsageAnalyticsClient(base_url="http://localhost:8000", api_key="sk-demo")

    try:
        await example_overview(client)
        await example_breakdown(client)
        await example_failed_logs(client)
    except httpx.HTTPStatusError as e:
        print(f"请求失败: {e.response.status_code} {e.response.text}")
    except httpx.ConnectError:
        print("无法连接到服务, 请先启动: uvicorn usage_analytics.main:app")


if __name__ == "__main__":
    asyncio.run(main())
