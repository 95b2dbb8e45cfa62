"""
database models for the quotes API.
Quotes own their comment thread; users own their saved-quote references.
The two sides reference each other only by quote id.
"""

import secrets
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base

from utils import config_manager, get_utc_time

Base = declarative_base()

# 表名可配置，子表名由父表名派生
_db_config = config_manager.get_database_config()
QUOTES_TABLE = _db_config.quotes_table
USERS_TABLE = _db_config.users_table
COMMENTS_TABLE = f"{QUOTES_TABLE}_comments"
SAVED_QUOTES_TABLE = f"{USERS_TABLE}_saved_quotes"


def generate_object_id() -> str:
    """生成24位十六进制标识"""
    return secrets.token_hex(12)


class QuoteDB(Base):
    """database model for quotes"""
    __tablename__ = QUOTES_TABLE

    id = Column(String(64), primary_key=True, default=generate_object_id)
    quote = Column(Text, nullable=False)
    author = Column(String(256), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)


class QuoteCommentDB(Base):
    """Comment embedded in a quote's thread, ordered by seq"""
    __tablename__ = COMMENTS_TABLE

    seq = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(String(64), nullable=False, unique=True, default=generate_object_id)
    quote_id = Column(String(64), ForeignKey(f'{QUOTES_TABLE}.id', ondelete='CASCADE'), nullable=False)
    sub = Column(String(255), nullable=False)  # 评论者的 subject
    username = Column(String(255), nullable=False)  # 评论者显示名
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_time)

    __table_args__ = (
        Index(f'idx_{COMMENTS_TABLE}_quote_seq', 'quote_id', 'seq'),
    )


class UserDB(Base):
    """database model for users, keyed by claim subject"""
    __tablename__ = USERS_TABLE

    sub = Column(String(255), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_time)


class SavedQuoteDB(Base):
    """A user's reference to a saved quote"""
    __tablename__ = SAVED_QUOTES_TABLE

    id = Column(Integer, primary_key=True, autoincrement=True)
    sub = Column(String(255), ForeignKey(f'{USERS_TABLE}.sub', ondelete='CASCADE'), nullable=False)
    quote_id = Column(String(64), nullable=False)
    date_saved = Column(DateTime(timezone=True), nullable=False, default=get_utc_time)

    __table_args__ = (
        # 同一用户同一语录只保留一条
        UniqueConstraint('sub', 'quote_id', name=f'uq_{SAVED_QUOTES_TABLE}_sub_quote'),
        Index(f'idx_{SAVED_QUOTES_TABLE}_sub_date', 'sub', 'date_saved'),
    )


# Pydantic models for data validation

class Quote(BaseModel):
    """语录（不含评论）"""
    id: str
    quote: str
    author: str
    tags: List[str] = Field(default_factory=list)


class Comment(BaseModel):
    """评论"""
    comment_id: str
    sub: str
    username: str
    text: str
    created_at: datetime


class SavedQuoteRef(BaseModel):
    """收藏引用"""
    quote_id: str
    date_saved: datetime


class SavedQuote(Quote):
    """收藏的语录，附带收藏时间"""
    date_saved: datetime


class CommentView(BaseModel):
    """评论公开视图"""
    text: str
    display_name: str
    is_owner: bool
    created_at: datetime


class DatabaseStatistics(BaseModel):
    """数据库统计"""
    quotes: int = 0
    comments: int = 0
    users: int = 0
    saved_quotes: int = 0
    database_url: Optional[str] = None
