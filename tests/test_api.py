"""
API 路由测试
"""
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient

from usage_analytics.models import RequestStat, ChannelStat

from tests.helpers import CHAT_ENDPOINT, make_log_row

ANALYTICS_PATHS = [
    "/api/logs",
    "/api/stats/channels",
    "/api/stats/models",
    "/api/stats/overview",
]

ZERO_OVERVIEW = {
    "requests": 0,
    "totalTokens": 0,
    "promptTokens": 0,
    "completionTokens": 0,
    "avgProcessTime": 0,
    "avgFirstResponseTime": 0,
}


def request_stat(request_id, timestamp, model, provider, prompt, completion, process_time,
                 api_key="k1", endpoint=CHAT_ENDPOINT):
    return RequestStat(
        request_id=request_id,
        api_key=api_key,
        endpoint=endpoint,
        timestamp=timestamp,
        model=model,
        provider=provider,
        process_time=process_time,
        first_response_time=process_time / 10,
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=prompt + completion,
        text=f"text of {request_id}",
    )


@pytest_asyncio.fixture
async def seeded_session(test_session):
    """写入测试数据

    k1:
      r1 12:00 gpt-4o / openai     100 tokens  渠道结果 [成功]
      r2 11:00 gpt-4o / azure      200 tokens  渠道结果 [失败, 成功]
      r3 10:00 claude / anthropic   50 tokens  无渠道结果
    另有一条 k2 的记录和一条 k1 的其他 endpoint 记录, 都不应被统计
    """
    test_session.add_all([
        request_stat("r1", datetime(2024, 5, 1, 12), "gpt-4o", "openai", 40, 60, 1.0),
        request_stat("r2", datetime(2024, 5, 1, 11), "gpt-4o", "azure", 80, 120, 2.0),
        request_stat("r3", datetime(2024, 5, 1, 10), "claude", "anthropic", 20, 30, 3.0),
        request_stat("r4", datetime(2024, 5, 1, 13), "gpt-4o", "openai", 500, 500, 9.0, api_key="k2"),
        request_stat("r5", datetime(2024, 5, 1, 14), "gpt-4o", "openai", 500, 499, 9.0,
                     endpoint="POST /v1/embeddings"),
        ChannelStat(request_id="r1", provider="openai", success=True),
        ChannelStat(request_id="r2", provider="azure", success=False),
        ChannelStat(request_id="r2", provider="azure", success=True),
        ChannelStat(request_id="r4", provider="openai", success=True),
        ChannelStat(request_id="r5", provider="openai", success=True),
    ])
    await test_session.commit()
    return test_session


@pytest.mark.asyncio
class TestRootEndpoints:
    """基础端点测试"""

    async def test_health_check(self, fake_client: AsyncClient):
        """测试健康检查端点"""
        response = await fake_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_request_id_header(self, fake_client: AsyncClient):
        """测试响应包含请求 ID"""
        response = await fake_client.get("/health")
        assert response.headers.get("X-Request-ID")
        assert "X-Process-Time" in response.headers

    async def test_not_found(self, fake_client: AsyncClient):
        """测试 404 响应格式"""
        response = await fake_client.get("/api/unknown")
        assert response.status_code == 404
        assert response.json()["error"] == "Not found"


@pytest.mark.asyncio
class TestValidation:
    """参数校验测试"""

    @pytest.mark.parametrize("path", ANALYTICS_PATHS)
    async def test_missing_api_key(self, fake_client: AsyncClient, fake_executor, path):
        """测试缺少 apiKey 时返回 400 且不访问数据库"""
        response = await fake_client.get(path)

        assert response.status_code == 400
        assert response.json() == {"error": "API Key is required"}
        assert fake_executor.calls == []

    @pytest.mark.parametrize("path", ANALYTICS_PATHS)
    async def test_empty_api_key(self, fake_client: AsyncClient, fake_executor, path):
        """测试空 apiKey 视为缺失"""
        response = await fake_client.get(path, params={"apiKey": ""})

        assert response.status_code == 400
        assert fake_executor.calls == []


@pytest.mark.asyncio
class TestErrorTranslation:
    """错误转换测试"""

    @pytest.mark.parametrize("path", ANALYTICS_PATHS)
    async def test_database_failure(self, fake_client: AsyncClient, fake_executor, path):
        """测试数据库错误返回 500 和错误详情"""
        fake_executor.error = RuntimeError("connection refused")

        response = await fake_client.get(path, params={"apiKey": "k1"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Database query failed",
            "details": "connection refused",
        }
        assert len(fake_executor.calls) == 1

    async def test_unexpected_failure(self, fake_client: AsyncClient, fake_executor):
        """测试查询之外的异常返回通用 500"""
        fake_executor.rows = [{"unexpected": 1}]

        response = await fake_client.get("/api/stats/channels", params={"apiKey": "k1"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "provider" in body["details"]


@pytest.mark.asyncio
class TestLogsEndpointQueries:
    """日志端点查询参数测试 (假执行器)"""

    async def test_second_page(self, fake_client: AsyncClient, fake_executor):
        """测试 page=2&limit=10 查询 11 行、偏移 10"""
        fake_executor.rows = [make_log_row(i) for i in range(11)]

        response = await fake_client.get("/api/logs", params={"apiKey": "k1", "page": 2, "limit": 10})

        assert response.status_code == 200
        _, params = fake_executor.calls[0]
        assert params[-2:] == [11, 10]
        data = response.json()
        assert len(data["logs"]) == 10
        assert data["hasNextPage"] is True
        assert data["logs"][0]["text"] == "request 0"

    async def test_last_page(self, fake_client: AsyncClient, fake_executor):
        """测试结果不超过 limit 时没有下一页"""
        fake_executor.rows = [make_log_row(i) for i in range(10)]

        response = await fake_client.get("/api/logs", params={"apiKey": "k1", "limit": 10})

        data = response.json()
        assert len(data["logs"]) == 10
        assert data["hasNextPage"] is False

    @pytest.mark.parametrize(
        "limit, expected_fetch",
        [
            ("500", 101),
            ("0", 2),
            ("-5", 2),
            ("abc", 31),
            ("7", 8),
            ("9" * 5000, 101),
            ("\u0665", 31),
        ],
    )
    async def test_limit_clamped(self, fake_client: AsyncClient, fake_executor, limit, expected_fetch):
        """测试 limit 被限制在 1-100"""
        await fake_client.get("/api/logs", params={"apiKey": "k1", "limit": limit})

        _, params = fake_executor.calls[0]
        assert params[-2] == expected_fetch

    async def test_huge_page_is_served(self, fake_client: AsyncClient, fake_executor):
        """测试超长 page/limit 不会导致 500"""
        huge = "9" * 5000
        response = await fake_client.get("/api/logs", params={"apiKey": "k1", "page": huge, "limit": huge})

        assert response.status_code == 200
        _, params = fake_executor.calls[0]
        assert params[-2] == 101
        assert params[-1] < 2 ** 63

    async def test_filters_are_bound_in_order(self, fake_client: AsyncClient, fake_executor):
        """测试过滤参数按占位符顺序绑定"""
        await fake_client.get("/api/logs", params={
            "apiKey": "k1",
            "model": "gpt-4o",
            "provider": "openai",
            "status": "TRUE",
        })

        sql, params = fake_executor.calls[0]
        assert params == ["k1", CHAT_ENDPOINT, "gpt-4o", "openai", 1, 31, 0]
        assert "HAVING" in sql

    async def test_unknown_status_is_ignored(self, fake_client: AsyncClient, fake_executor):
        """测试无法识别的 status 不加过滤"""
        await fake_client.get("/api/logs", params={"apiKey": "k1", "status": "yes"})

        sql, params = fake_executor.calls[0]
        assert "HAVING" not in sql
        assert params == ["k1", CHAT_ENDPOINT, 31, 0]

    async def test_overview_without_rows(self, fake_client: AsyncClient, fake_executor):
        """测试总览无结果时返回全零"""
        response = await fake_client.get("/api/stats/overview", params={"apiKey": "k1"})

        assert response.status_code == 200
        assert response.json() == ZERO_OVERVIEW


@pytest.mark.asyncio
class TestLogsEndpoint:
    """日志端点测试 (SQLite)"""

    async def test_newest_first_with_success(self, test_client: AsyncClient, seeded_session):
        """测试按时间倒序, 成功状态为多次尝试的 OR"""
        response = await test_client.get("/api/logs", params={"apiKey": "k1"})

        assert response.status_code == 200
        data = response.json()
        assert data["hasNextPage"] is False
        assert [log["text"] for log in data["logs"]] == ["text of r1", "text of r2", "text of r3"]
        assert [log["success"] for log in data["logs"]] == [True, True, False]
        assert data["logs"][0]["totalTokens"] == 100
        assert data["logs"][0]["processTime"] == 1.0
        assert data["logs"][0]["timestamp"] == "2024-05-01T12:00:00"

    @pytest.mark.parametrize(
        "status, expected",
        [
            ("true", ["text of r1", "text of r2"]),
            ("false", ["text of r3"]),
            ("maybe", ["text of r1", "text of r2", "text of r3"]),
        ],
    )
    async def test_status_filter(self, test_client: AsyncClient, seeded_session, status, expected):
        """测试 status 过滤作用于请求级成功状态"""
        response = await test_client.get("/api/logs", params={"apiKey": "k1", "status": status})

        assert [log["text"] for log in response.json()["logs"]] == expected

    async def test_model_and_provider_filters(self, test_client: AsyncClient, seeded_session):
        """测试模型和渠道过滤"""
        by_model = await test_client.get("/api/logs", params={"apiKey": "k1", "model": "gpt-4o"})
        by_provider = await test_client.get("/api/logs", params={"apiKey": "k1", "provider": "azure"})

        assert [log["text"] for log in by_model.json()["logs"]] == ["text of r1", "text of r2"]
        assert [log["text"] for log in by_provider.json()["logs"]] == ["text of r2"]

    async def test_pagination(self, test_client: AsyncClient, seeded_session):
        """测试分页"""
        first = (await test_client.get("/api/logs", params={"apiKey": "k1", "limit": 2})).json()
        second = (await test_client.get("/api/logs", params={"apiKey": "k1", "limit": 2, "page": 2})).json()

        assert first["hasNextPage"] is True
        assert [log["text"] for log in first["logs"]] == ["text of r1", "text of r2"]
        assert second["hasNextPage"] is False
        assert [log["text"] for log in second["logs"]] == ["text of r3"]


@pytest.mark.asyncio
class TestStatsEndpoints:
    """统计端点测试 (SQLite)"""

    async def test_channel_stats(self, test_client: AsyncClient, seeded_session):
        """测试按渠道统计, 每次渠道尝试计一次请求"""
        response = await test_client.get("/api/stats/channels", params={"apiKey": "k1"})

        assert response.status_code == 200
        rows = response.json()
        assert rows[0]["provider"] == "azure"
        by_provider = {row["provider"]: row for row in rows}
        assert set(by_provider) == {"openai", "azure", "anthropic"}

        azure = by_provider["azure"]
        assert (azure["requests"], azure["successes"], azure["failures"]) == (2, 1, 1)
        assert azure["successRate"] == 0.5

        openai = by_provider["openai"]
        assert (openai["requests"], openai["successes"], openai["failures"]) == (1, 1, 0)
        assert openai["successRate"] == 1.0
        assert openai["totalTokens"] == 100

        anthropic = by_provider["anthropic"]
        assert (anthropic["requests"], anthropic["successes"], anthropic["failures"]) == (1, 0, 1)
        assert anthropic["successRate"] == 0.0

    async def test_model_stats(self, test_client: AsyncClient, seeded_session):
        """测试按模型统计, 请求数按去重请求计算"""
        response = await test_client.get("/api/stats/models", params={"apiKey": "k1"})

        rows = response.json()
        assert [row["model"] for row in rows] == ["gpt-4o", "claude"]

        gpt, claude = rows
        assert (gpt["requests"], gpt["successes"], gpt["failures"]) == (2, 2, 1)
        assert gpt["successRate"] == 1.0
        assert (claude["requests"], claude["successes"], claude["failures"]) == (1, 0, 1)
        assert claude["successRate"] == 0.0
        assert claude["totalTokens"] == 50
        assert claude["avgProcessTime"] == 3.0

    async def test_overview(self, test_client: AsyncClient, seeded_session):
        """测试总览统计"""
        response = await test_client.get("/api/stats/overview", params={"apiKey": "k1"})

        data = response.json()
        assert data["requests"] == 3
        assert data["totalTokens"] == 350
        assert data["promptTokens"] == 140
        assert data["completionTokens"] == 210
        assert data["avgProcessTime"] == pytest.approx(2.0)
        assert data["avgFirstResponseTime"] == pytest.approx(0.2)

    async def test_overview_two_records(self, test_client: AsyncClient, test_session):
        """测试两条记录 100 + 200 tokens"""
        test_session.add_all([
            request_stat("a", datetime(2024, 5, 1, 9), "gpt-4o", "openai", 50, 50, 1.0),
            request_stat("b", datetime(2024, 5, 1, 8), "gpt-4o", "openai", 100, 100, 1.0),
        ])
        await test_session.commit()

        response = await test_client.get("/api/stats/overview", params={"apiKey": "k1"})

        data = response.json()
        assert data["requests"] == 2
        assert data["totalTokens"] == 300

    async def test_unknown_key(self, test_client: AsyncClient, seeded_session):
        """测试没有记录的 API Key"""
        overview = await test_client.get("/api/stats/overview", params={"apiKey": "nobody"})
        channels = await test_client.get("/api/stats/channels", params={"apiKey": "nobody"})
        logs = await test_client.get("/api/logs", params={"apiKey": "nobody"})

        assert overview.json() == ZERO_OVERVIEW
        assert channels.json() == []
        assert logs.json() == {"logs": [], "hasNextPage": False}
