"""
database operations for the quotes API.
Every mutation is a single atomic statement scoped to one owner.
"""

from datetime import datetime
from typing import List, Dict, Any, Optional, Iterable
from sqlalchemy import select, delete, insert, func, literal, DateTime
from sqlalchemy.dialects import sqlite, postgresql

from utils import db_logger, handle_exception, get_utc_time, ensure_utc

from .connection import DatabaseManager
from .models import (
    QuoteDB, QuoteCommentDB, UserDB, SavedQuoteDB,
    Quote, Comment, SavedQuoteRef, DatabaseStatistics, generate_object_id
)

# 支持 ON CONFLICT DO NOTHING 的方言
UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# 语录投影字段（不含评论）
QUOTE_COLUMNS = (QuoteDB.id, QuoteDB.quote, QuoteDB.author, QuoteDB.tags)


def _row_to_quote(row) -> Quote:
    return Quote(id=row.id, quote=row.quote, author=row.author, tags=list(row.tags or []))


class QuoteStore:
    """quote and user data access"""

    def __init__(self, db: DatabaseManager):
        self.db = db
        self.db_logger = db_logger

    async def initialize(self, create_tables: bool = True):
        """初始化数据库连接并建表"""
        self.db.initialize()
        if create_tables:
            await self.db.create_tables_async()
        self.db_logger.info("[Database] QuoteStore initialized successfully")

    async def close(self):
        await self.db.close()

    def get_async_session(self):
        """Get async database session"""
        return self.db.get_async_session()

    def _upsert_insert(self, table):
        insert_fn = UPSERT_INSERTS.get(self.db.dialect_name)
        if insert_fn is None:
            raise NotImplementedError(f"Unsupported database dialect: {self.db.dialect_name}")
        return insert_fn(table)

    # === Quote Operations ===

    @handle_exception
    async def insert_quotes(self, quotes: Iterable[Dict[str, Any]]) -> List[str]:
        """批量写入语录（导入与测试数据使用），返回写入的ID"""
        inserted_ids = []
        async with self.get_async_session() as session:
            for quote_data in quotes:
                quote_id = quote_data.get('id') or generate_object_id()
                session.add(QuoteDB(
                    id=quote_id,
                    quote=quote_data['quote'],
                    author=quote_data['author'],
                    tags=list(quote_data.get('tags') or [])
                ))
                inserted_ids.append(quote_id)
            await session.commit()

        self.db_logger.info(f"[Database] Inserted {len(inserted_ids)} quotes")
        return inserted_ids

    @handle_exception
    async def get_quotes_by_ids(self, quote_ids: List[str]) -> List[Quote]:
        """按ID批量获取语录（不含评论）"""
        if not quote_ids:
            return []

        async with self.get_async_session() as session:
            stmt = select(*QUOTE_COLUMNS).where(QuoteDB.id.in_(quote_ids))
            result = await session.execute(stmt)
            return [_row_to_quote(row) for row in result.all()]

    @handle_exception
    async def sample_quotes(self, size: int, exclude_saved_by: Optional[str] = None) -> List[Quote]:
        """随机抽取语录（不放回），可排除某用户已收藏的语录"""
        if size <= 0:
            return []

        async with self.get_async_session() as session:
            stmt = select(*QUOTE_COLUMNS)

            if exclude_saved_by:
                saved_ids = select(SavedQuoteDB.quote_id).where(SavedQuoteDB.sub == exclude_saved_by)
                stmt = stmt.where(QuoteDB.id.not_in(saved_ids))

            stmt = stmt.order_by(func.random()).limit(size)
            result = await session.execute(stmt)
            return [_row_to_quote(row) for row in result.all()]

    # === Saved Quote Operations ===

    @handle_exception
    async def get_saved_quote_refs(self, sub: str) -> List[SavedQuoteRef]:
        """获取用户收藏引用（按插入顺序）"""
        async with self.get_async_session() as session:
            stmt = select(SavedQuoteDB.quote_id, SavedQuoteDB.date_saved).where(
                SavedQuoteDB.sub == sub
            ).order_by(SavedQuoteDB.id)
            result = await session.execute(stmt)
            return [
                SavedQuoteRef(quote_id=row.quote_id, date_saved=ensure_utc(row.date_saved))
                for row in result.all()
            ]

    @handle_exception
    async def add_saved_quote_ref(self, sub: str, quote_id: str, date_saved: Optional[datetime] = None) -> bool:
        """幂等添加收藏引用，返回是否新增"""
        date_saved = date_saved or get_utc_time()

        async with self.get_async_session() as session:
            # 首次收藏时隐式创建用户
            await session.execute(
                self._upsert_insert(UserDB).values(sub=sub, created_at=date_saved)
                .on_conflict_do_nothing(index_elements=['sub'])
            )
            result = await session.execute(
                self._upsert_insert(SavedQuoteDB).values(sub=sub, quote_id=quote_id, date_saved=date_saved)
                .on_conflict_do_nothing(index_elements=['sub', 'quote_id'])
            )
            await session.commit()

        inserted = result.rowcount > 0
        self.db_logger.debug(f"[Database] Saved quote {quote_id} for {sub}: {'inserted' if inserted else 'already saved'}")
        return inserted

    @handle_exception
    async def remove_saved_quote_ref(self, sub: str, quote_id: str) -> bool:
        """删除收藏引用，返回是否删除了记录"""
        async with self.get_async_session() as session:
            result = await session.execute(
                delete(SavedQuoteDB).where(
                    SavedQuoteDB.sub == sub,
                    SavedQuoteDB.quote_id == quote_id
                )
            )
            await session.commit()

        return result.rowcount > 0

    # === Comment Operations ===

    @handle_exception
    async def append_comment(self, quote_id: str, sub: str, username: str, text: str,
                             created_at: Optional[datetime] = None) -> Optional[Comment]:
        """向语录追加评论；语录不存在时返回 None

        INSERT .. SELECT 以语录存在为条件，单条语句完成检查与写入。
        """
        comment_id = generate_object_id()
        created_at = created_at or get_utc_time()

        source = select(
            literal(comment_id),
            QuoteDB.id,
            literal(sub),
            literal(username),
            literal(text),
            literal(created_at, DateTime),
        ).where(QuoteDB.id == quote_id)

        stmt = insert(QuoteCommentDB).from_select(
            ['comment_id', 'quote_id', 'sub', 'username', 'text', 'created_at'],
            source
        )

        async with self.get_async_session() as session:
            result = await session.execute(stmt)
            await session.commit()

        if result.rowcount == 0:
            return None

        return Comment(
            comment_id=comment_id,
            sub=sub,
            username=username,
            text=text,
            created_at=created_at
        )

    @handle_exception
    async def get_quote_comments(self, quote_id: str) -> Optional[List[Comment]]:
        """获取语录评论（按插入顺序）；语录不存在时返回 None"""
        async with self.get_async_session() as session:
            exists = await session.execute(select(QuoteDB.id).where(QuoteDB.id == quote_id))
            if exists.scalar_one_or_none() is None:
                return None

            stmt = select(QuoteCommentDB).where(
                QuoteCommentDB.quote_id == quote_id
            ).order_by(QuoteCommentDB.seq)
            result = await session.execute(stmt)

            return [
                Comment(
                    comment_id=row.comment_id,
                    sub=row.sub,
                    username=row.username,
                    text=row.text,
                    created_at=ensure_utc(row.created_at)
                )
                for row in result.scalars().all()
            ]

    # === Maintenance ===

    @handle_exception
    async def get_database_statistics(self) -> DatabaseStatistics:
        """获取数据库统计信息"""
        async with self.get_async_session() as session:
            counts = {}
            for name, model in (('quotes', QuoteDB), ('comments', QuoteCommentDB),
                                ('users', UserDB), ('saved_quotes', SavedQuoteDB)):
                result = await session.execute(select(func.count()).select_from(model))
                counts[name] = result.scalar_one()

        return DatabaseStatistics(database_url=self.db.safe_url, **counts)
