"""
数据库初始化脚本

用于在本地开发环境创建 request_stats / channel_stats 表并写入示例数据
"""
import argparse
import asyncio
import random
import sys
import uuid
from datetime import datetime, timedelta
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import inspect
from usage_analytics.core.config import settings
from usage_analytics.core.database import engine, AsyncSessionLocal, init_db, drop_db
from usage_analytics.core.logger import get_logger
from usage_analytics.models import RequestStat, ChannelStat

logger = get_logger(__name__)

SAMPLE_MODELS = ["gpt-4o", "gpt-4o-mini", "claude-3-5-sonnet"]
SAMPLE_PROVIDERS = ["openai", "azure", "anthropic"]


async def check_tables_exist():
    """检查数据库表是否存在"""
    async with engine.begin() as conn:
        def _check(connection):
            inspector = inspect(connection)
            return inspector.get_table_names()

        return await conn.run_sync(_check)


async def create_tables():
    """创建所有数据库表"""
    logger.info("开始创建数据库表...")

    try:
        await init_db()
        tables = await check_tables_exist()
        logger.info(f"创建后的表: {tables}")
        return True

    except Exception as e:
        logger.error(f"创建数据库表失败: {str(e)}", exc_info=True)
        return False


async def drop_tables():
    """删除所有数据库表 (危险操作!)"""
    logger.warning("警告: 即将删除所有数据库表!")

    try:
        await drop_db()
        logger.info("数据库表已删除")
        return True

    except Exception as e:
        logger.error(f"删除数据库表失败: {str(e)}", exc_info=True)
        return False


def build_sample_records(api_key: str, count: int):
    """生成示例请求记录及其渠道结果"""
    now = datetime.utcnow()
    requests = []
    outcomes = []

    for i in range(count):
        request_id = uuid.uuid4().hex
        prompt_tokens = random.randint(20, 800)
        completion_tokens = random.randint(10, 600)
        provider = random.choice(SAMPLE_PROVIDERS)

        requests.append(RequestStat(
            request_id=request_id,
            api_key=api_key,
            endpoint=settings.chat_endpoint,
            timestamp=now - timedelta(minutes=i * 7),
            model=random.choice(SAMPLE_MODELS),
            provider=provider,
            process_time=round(random.uniform(0.4, 12.0), 3),
            first_response_time=round(random.uniform(0.1, 2.0), 3),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            text=f"sample request #{i}",
        ))

        # 约 10% 的请求没有渠道记录, 约 20% 有一次失败重试
        roll = random.random()
        if roll < 0.1:
            continue
        if roll < 0.3:
            outcomes.append(ChannelStat(request_id=request_id, provider=provider, success=False))
        outcomes.append(ChannelStat(request_id=request_id, provider=provider, success=roll >= 0.15))

    return requests, outcomes


async def init_sample_data(api_key: str, count: int):
    """写入示例数据"""
    logger.info(f"开始写入示例数据: api_key={api_key}, count={count}")

    async with AsyncSessionLocal() as session:
        try:
            requests, outcomes = build_sample_records(api_key, count)
            session.add_all(requests)
            session.add_all(outcomes)
            await session.commit()
            logger.info(f"已写入 {len(requests)} 条请求记录, {len(outcomes)} 条渠道记录")
            return True

        except Exception as e:
            await session.rollback()
            logger.error(f"写入示例数据失败: {str(e)}", exc_info=True)
            return False


async def main():
    """主函数"""
    parser = argparse.ArgumentParser(description="Usage analytics 数据库管理工具")
    parser.add_argument(
        "action",
        choices=["create", "drop", "reset", "sample"],
        help="操作类型: create(创建表), drop(删除表), reset(重置), sample(示例数据)"
    )
    parser.add_argument("--force", action="store_true", help="跳过确认提示")
    parser.add_argument("--api-key", default="sk-demo", help="示例数据使用的 API Key")
    parser.add_argument("--count", type=int, default=200, help="示例请求数量")
    args = parser.parse_args()

    print(f"数据库: {settings.database_url}")

    if settings.database_type == "sqlite":
        # SQLite 不会自动创建数据文件所在目录
        Path("data").mkdir(parents=True, exist_ok=True)

    if args.action == "create":
        if await create_tables():
            print("\n✅ 数据库表创建成功")
            print("提示: 使用 'python scripts/init_db.py sample' 添加示例数据")
        else:
            print("\n❌ 数据库表创建失败")
            sys.exit(1)

    elif args.action in ("drop", "reset"):
        if not args.force:
            print("\n⚠️  警告: 此操作将删除所有数据!")
            confirm = input("确认继续? (输入 'yes' 确认): ")
            if confirm.lower() != "yes":
                print("操作已取消")
                return

        if not await drop_tables():
            print("\n❌ 删除数据库表失败")
            sys.exit(1)

        if args.action == "reset":
            if await create_tables():
                print("\n✅ 数据库已重置")
            else:
                print("\n❌ 数据库重置失败")
                sys.exit(1)
        else:
            print("\n✅ 数据库表已删除")

    elif args.action == "sample":
        tables = await check_tables_exist()
        if not tables:
            print("数据库表不存在,先创建表...")
            await create_tables()

        if await init_sample_data(args.api_key, args.count):
            print("\n✅ 示例数据已添加")
            print(f"试试: GET /api/stats/overview?apiKey={args.api_key}")
        else:
            print("\n❌ 示例数据添加失败")
            sys.exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n操作已取消")
    except Exception as e:
        logger.error(f"执行失败: {str(e)}", exc_info=True)
