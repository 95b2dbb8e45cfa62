"""
API data models for the quotes API.
Pydantic request/response models using the wire field names clients expect.
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class QuoteResponse(BaseModel):
    """语录响应模型（不含评论）"""
    id: str = Field(..., alias="_id", description="语录ID")
    quote: str = Field(..., description="语录内容")
    author: str = Field(..., description="作者")
    tags: List[str] = Field(default_factory=list, description="标签")

    class Config:
        from_attributes = True
        populate_by_name = True


class SavedQuoteResponse(QuoteResponse):
    """收藏语录响应模型"""
    date_saved: datetime = Field(..., alias="dateSaved", description="收藏时间（UTC）")


class CommentResponse(BaseModel):
    """评论响应模型"""
    text: str = Field(..., description="评论内容")
    display_name: str = Field(..., alias="displayName", description="评论者显示名")
    is_owner: bool = Field(..., alias="isOwner", description="是否为请求者本人的评论")
    created_at: datetime = Field(..., alias="createdAt", description="评论时间（UTC）")

    class Config:
        from_attributes = True
        populate_by_name = True


class AddCommentRequest(BaseModel):
    """添加评论请求模型"""
    comment: Optional[str] = Field(None, description="评论内容")


class MessageResponse(BaseModel):
    """错误消息响应模型"""
    message: str
