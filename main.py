"""
Main entry point for the Quotes API.
Provides command-line interface and system initialization.
"""

import asyncio
import argparse
import sys

from utils import api_logger, db_logger, config_manager, initialize_logging, QuoteSystemError
from database import DatabaseManager, QuoteStore
from quote_manager import QuoteManager


class QuoteSystem:
    """语录系统主类"""

    def __init__(self):
        self.config = config_manager
        self.quote_manager = QuoteManager(
            QuoteStore(DatabaseManager()),
            self.config.get_quotes_config().random_fetch_size
        )

    def start_api_server(self, host: str = None, port: int = None):
        """启动API服务器"""
        from api.app import run_server

        api_config = self.config.get_api_config()
        final_host = host if host is not None else api_config.host
        final_port = port if port is not None else api_config.port

        api_logger.info(f"[Main] Starting API server on {final_host}:{final_port}...")
        run_server(host=final_host, port=final_port)

    async def init_database(self):
        """创建数据表"""
        try:
            await self.quote_manager.initialize()
            db_logger.info(f"[Main] Database ready at {self.quote_manager.store.db.safe_url}")
            print(f"Database initialized: {self.quote_manager.store.db.safe_url}")
        finally:
            await self.quote_manager.close()

    async def show_system_status(self):
        """显示系统状态"""
        try:
            await self.quote_manager.initialize()
            status = await self.quote_manager.get_system_status()
        finally:
            await self.quote_manager.close()

        db_status = status.get('database', {})
        auth_config = self.config.get_auth_config()

        print("\n" + "="*60)
        print("         QUOTES API STATUS")
        print("="*60)

        print(f"\n💾 Database: {db_status.get('database_url')}")
        print(f"   Quotes: {db_status.get('quotes', 0):,}")
        print(f"   Comments: {db_status.get('comments', 0):,}")
        print(f"   Users: {db_status.get('users', 0):,}")
        print(f"   Saved Quotes: {db_status.get('saved_quotes', 0):,}")

        print(f"\n🔑 Auth:")
        print(f"   JWKS URI: {auth_config.jwks_uri or 'N/A'}")
        print(f"   Key Cache: {auth_config.cache_keys}")
        print(f"   Refresh Limit: {auth_config.jwks_requests_per_minute}/min" if auth_config.rate_limit else "   Refresh Limit: off")

        print("\n" + "="*60)


def create_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description="Quotes API - 语录收藏与评论服务",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python main.py api --host 0.0.0.0 --port 8000  # 启动API服务器
  python main.py init-db                        # 创建数据表
  python main.py status                         # 显示系统状态
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # API服务器
    api_parser = subparsers.add_parser('api', help='启动API服务器')
    api_parser.add_argument('--host', default=None, help='监听地址 (默认读取配置)')
    api_parser.add_argument('--port', type=int, default=None, help='监听端口 (默认读取配置)')

    subparsers.add_parser('init-db', help='创建数据表')
    subparsers.add_parser('status', help='显示系统状态')

    return parser


def main(argv=None):
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    initialize_logging()

    try:
        system = QuoteSystem()

        if args.command == 'api':
            system.start_api_server(host=args.host, port=args.port)

        elif args.command == 'init-db':
            asyncio.run(system.init_database())

        elif args.command == 'status':
            asyncio.run(system.show_system_status())

        else:
            parser.print_help()

    except KeyboardInterrupt:
        api_logger.info("[Main] Received keyboard interrupt")
    except QuoteSystemError as e:
        api_logger.error(f"[Main] [{e.error_code}] {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
