"""
API routes for the quotes API.
Random quotes, saved-quote lists and comment threads.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Response

from auth import AuthOutcome, ClaimSet
from quote_manager import QuoteManager
from .dependencies import get_quote_manager, require_claims, optional_auth
from .models import QuoteResponse, SavedQuoteResponse, CommentResponse, AddCommentRequest, MessageResponse

router = APIRouter()

# 文档中声明的错误响应体
UNAUTHORIZED = {401: {"model": MessageResponse, "description": "令牌缺失或无效"}}
BAD_REQUEST = {400: {"model": MessageResponse, "description": "请求参数缺失或格式错误"}}


@router.get("/random", response_model=List[QuoteResponse], tags=["Quotes"], responses=UNAUTHORIZED)
async def get_random_quotes(
    auth: AuthOutcome = Depends(optional_auth),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """随机获取语录；已登录时排除自己收藏的语录"""
    quotes = await manager.sampler.random_quotes(subject=auth.subject)
    return [QuoteResponse(**quote.model_dump()) for quote in quotes]


@router.post("/save/{quote_id}", tags=["Saved Quotes"], responses=UNAUTHORIZED)
async def save_quote(
    quote_id: str,
    claims: ClaimSet = Depends(require_claims),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """收藏语录（幂等）"""
    await manager.saved.save(subject=claims.subject, quote_id=quote_id)
    return Response(status_code=200)


@router.get("/saved", response_model=List[SavedQuoteResponse], tags=["Saved Quotes"], responses=UNAUTHORIZED)
async def get_saved_quotes(
    claims: ClaimSet = Depends(require_claims),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """获取收藏的语录，按收藏时间倒序"""
    saved = await manager.saved.list_saved(subject=claims.subject)
    return [SavedQuoteResponse(**quote.model_dump()) for quote in saved]


@router.delete("/forget/{quote_id}", tags=["Saved Quotes"], responses=UNAUTHORIZED)
async def forget_quote(
    quote_id: str,
    claims: ClaimSet = Depends(require_claims),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """取消收藏；未收藏时同样返回成功"""
    await manager.saved.forget(subject=claims.subject, quote_id=quote_id)
    return Response(status_code=200)


@router.post("/addComment/{quote_id}", tags=["Comments"], responses={**UNAUTHORIZED, **BAD_REQUEST})
async def add_comment(
    quote_id: str,
    payload: Optional[AddCommentRequest] = Body(None),
    claims: ClaimSet = Depends(require_claims),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """为语录添加评论"""
    await manager.comments.add_comment(
        subject=claims.subject,
        display_name=claims.display_name,
        quote_id=quote_id,
        text=payload.comment if payload else None
    )
    return Response(status_code=200)


@router.get("/comments/{quote_id}", response_model=List[CommentResponse], tags=["Comments"], responses=UNAUTHORIZED)
async def get_comments(
    quote_id: str,
    auth: AuthOutcome = Depends(optional_auth),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """获取语录评论，标记请求者本人的评论"""
    comments = await manager.comments.list_comments(subject=auth.subject, quote_id=quote_id)
    return [CommentResponse(**comment.model_dump()) for comment in comments]
