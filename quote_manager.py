"""
Quote Manager for the quotes API.
Provides saved-quote lists, comment threads and random sampling on top of QuoteStore.
"""

from typing import List, Optional

from utils import (
    quote_logger, config_manager, log_execution,
    ValidationError, NotFoundError, ErrorCodes, get_utc_time
)
from database.operations import QuoteStore
from database.models import Quote, SavedQuote, CommentView


def _require(**fields) -> None:
    """所有字段都必须非空，否则抛出 ValidationError"""
    missing = [name for name, value in fields.items() if value is None or (isinstance(value, str) and not value.strip())]
    if missing:
        raise ValidationError(
            f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
            ErrorCodes.VALIDATION_MISSING_REQUIRED_FIELD,
            context={"missing": missing}
        )


class SavedQuotesManager:
    """用户收藏管理"""

    def __init__(self, store: QuoteStore):
        self.store = store

    @log_execution("QuoteManager", "save")
    async def save(self, subject: str, quote_id: str) -> bool:
        """幂等收藏，返回是否新增"""
        _require(subject=subject, quote_id=quote_id)
        return await self.store.add_saved_quote_ref(subject, quote_id, get_utc_time())

    @log_execution("QuoteManager", "forget")
    async def forget(self, subject: str, quote_id: str) -> bool:
        """取消收藏，不存在时不报错"""
        _require(subject=subject, quote_id=quote_id)
        return await self.store.remove_saved_quote_ref(subject, quote_id)

    @log_execution("QuoteManager", "list_saved")
    async def list_saved(self, subject: str) -> List[SavedQuote]:
        """按收藏时间倒序列出收藏的语录"""
        _require(subject=subject)

        refs = await self.store.get_saved_quote_refs(subject)
        if not refs:
            return []

        quotes = await self.store.get_quotes_by_ids([ref.quote_id for ref in refs])
        quotes_by_id = {quote.id: quote for quote in quotes}

        saved = []
        # sorted 是稳定排序，同一时间按插入顺序
        for ref in sorted(refs, key=lambda r: r.date_saved, reverse=True):
            quote = quotes_by_id.get(ref.quote_id)
            if quote is None:
                quote_logger.warning(f"[QuoteManager] Saved quote {ref.quote_id} of {subject} no longer exists, skipped")
                continue
            saved.append(SavedQuote(**quote.model_dump(), date_saved=ref.date_saved))

        return saved


class CommentThreadManager:
    """语录评论管理"""

    def __init__(self, store: QuoteStore):
        self.store = store

    @log_execution("QuoteManager", "add_comment")
    async def add_comment(self, subject: str, display_name: str, quote_id: str, text: str) -> None:
        _require(subject=subject, display_name=display_name, quote_id=quote_id, comment=text)

        comment = await self.store.append_comment(quote_id, subject, display_name, text)
        if comment is None:
            raise NotFoundError(f"Quote {quote_id} not found", ErrorCodes.QUOTE_NOT_FOUND)

    @log_execution("QuoteManager", "list_comments")
    async def list_comments(self, subject: Optional[str], quote_id: str) -> List[CommentView]:
        """列出评论并标记请求者自己的评论"""
        _require(quote_id=quote_id)

        comments = await self.store.get_quote_comments(quote_id)
        if comments is None:
            raise NotFoundError(f"Quote {quote_id} not found", ErrorCodes.QUOTE_NOT_FOUND)

        return [
            CommentView(
                text=comment.text,
                display_name=comment.username,
                is_owner=subject is not None and comment.sub == subject,
                created_at=comment.created_at
            )
            for comment in comments
        ]


class RandomQuoteSampler:
    """随机语录抽样"""

    def __init__(self, store: QuoteStore, default_size: Optional[int] = None):
        self.store = store
        self.default_size = default_size or config_manager.get_quotes_config().random_fetch_size

    @log_execution("QuoteManager", "random_quotes")
    async def random_quotes(self, subject: Optional[str] = None, sample_size: Optional[int] = None) -> List[Quote]:
        """抽取语录；已登录用户不会抽到自己收藏的语录"""
        size = sample_size if sample_size is not None else self.default_size
        return await self.store.sample_quotes(size, exclude_saved_by=subject)


class QuoteManager:
    """语录业务入口，组合各子管理器"""

    def __init__(self, store: QuoteStore, random_fetch_size: Optional[int] = None):
        self.store = store
        self.saved = SavedQuotesManager(store)
        self.comments = CommentThreadManager(store)
        self.sampler = RandomQuoteSampler(store, random_fetch_size)

    async def initialize(self) -> None:
        quote_logger.info("[QuoteManager] Initializing...")
        await self.store.initialize()
        quote_logger.info("[QuoteManager] Initialized successfully")

    async def close(self) -> None:
        await self.store.close()

    async def get_system_status(self) -> dict:
        stats = await self.store.get_database_statistics()
        return {"status": "healthy", "database": stats.model_dump()}
