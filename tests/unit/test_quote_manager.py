"""
Unit tests for QuoteManager
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from database.models import SavedQuoteRef
from quote_manager import QuoteManager, RandomQuoteSampler
from tests.factories import SAMPLE_QUOTES, QUOTE_IDS, ALICE, BOB
from utils.exceptions import ValidationError, NotFoundError


@pytest.mark.unit
class TestSavedQuotesManager:
    """Test cases for saving and listing quotes"""

    @pytest.mark.asyncio
    async def test_save_is_idempotent(self, quote_manager):
        await quote_manager.saved.save(subject=ALICE, quote_id=QUOTE_IDS[0])
        await quote_manager.saved.save(subject=ALICE, quote_id=QUOTE_IDS[0])

        saved = await quote_manager.saved.list_saved(subject=ALICE)
        assert [q.id for q in saved] == [QUOTE_IDS[0]]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subject, quote_id", [("", QUOTE_IDS[0]), (ALICE, ""), (None, QUOTE_IDS[0])])
    async def test_save_requires_subject_and_quote(self, quote_manager, subject, quote_id):
        with pytest.raises(ValidationError):
            await quote_manager.saved.save(subject=subject, quote_id=quote_id)

    @pytest.mark.asyncio
    async def test_forget_unsaved_is_noop(self, quote_manager):
        assert await quote_manager.saved.forget(subject=ALICE, quote_id=QUOTE_IDS[1]) is False

    @pytest.mark.asyncio
    async def test_forget_requires_quote(self, quote_manager):
        with pytest.raises(ValidationError):
            await quote_manager.saved.forget(subject=ALICE, quote_id=" ")

    @pytest.mark.asyncio
    async def test_list_saved_empty(self, quote_manager):
        assert await quote_manager.saved.list_saved(subject=ALICE) == []

    @pytest.mark.asyncio
    async def test_list_saved_newest_first(self, quote_manager, quote_store):
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        await quote_store.add_saved_quote_ref(ALICE, QUOTE_IDS[0], base)
        await quote_store.add_saved_quote_ref(ALICE, QUOTE_IDS[1], base + timedelta(hours=2))
        await quote_store.add_saved_quote_ref(ALICE, QUOTE_IDS[2], base + timedelta(hours=1))

        saved = await quote_manager.saved.list_saved(subject=ALICE)

        assert [q.id for q in saved] == [QUOTE_IDS[1], QUOTE_IDS[2], QUOTE_IDS[0]]
        assert saved[0].date_saved == base + timedelta(hours=2)
        assert saved[0].quote == SAMPLE_QUOTES[1]["quote"]

    @pytest.mark.asyncio
    async def test_list_saved_skips_missing_quotes(self, quote_manager, quote_store):
        await quote_store.add_saved_quote_ref(ALICE, "000000000000000000000000")
        await quote_store.add_saved_quote_ref(ALICE, QUOTE_IDS[3])

        saved = await quote_manager.saved.list_saved(subject=ALICE)
        assert [q.id for q in saved] == [QUOTE_IDS[3]]

    @pytest.mark.asyncio
    async def test_list_saved_fetches_quotes_in_one_batch(self):
        store = AsyncMock()
        now = datetime.now(timezone.utc)
        store.get_saved_quote_refs.return_value = [
            SavedQuoteRef(quote_id=QUOTE_IDS[0], date_saved=now),
            SavedQuoteRef(quote_id=QUOTE_IDS[1], date_saved=now),
        ]
        store.get_quotes_by_ids.return_value = []

        manager = QuoteManager(store, random_fetch_size=5)
        assert await manager.saved.list_saved(subject=ALICE) == []
        store.get_quotes_by_ids.assert_awaited_once_with([QUOTE_IDS[0], QUOTE_IDS[1]])


@pytest.mark.unit
class TestCommentThreadManager:
    """Test cases for comment threads"""

    @pytest.mark.asyncio
    async def test_add_and_list_comments(self, quote_manager):
        await quote_manager.comments.add_comment(
            subject=ALICE, display_name="alice", quote_id=QUOTE_IDS[0], text="Love it")
        await quote_manager.comments.add_comment(
            subject=BOB, display_name="bob", quote_id=QUOTE_IDS[0], text="Same")

        comments = await quote_manager.comments.list_comments(subject=ALICE, quote_id=QUOTE_IDS[0])

        assert [c.text for c in comments] == ["Love it", "Same"]
        assert [c.display_name for c in comments] == ["alice", "bob"]
        assert [c.is_owner for c in comments] == [True, False]

    @pytest.mark.asyncio
    async def test_anonymous_requester_owns_nothing(self, quote_manager):
        await quote_manager.comments.add_comment(
            subject=ALICE, display_name="alice", quote_id=QUOTE_IDS[0], text="Hi")

        comments = await quote_manager.comments.list_comments(subject=None, quote_id=QUOTE_IDS[0])
        assert [c.is_owner for c in comments] == [False]

    @pytest.mark.asyncio
    async def test_list_comments_empty(self, quote_manager):
        assert await quote_manager.comments.list_comments(subject=None, quote_id=QUOTE_IDS[2]) == []

    @pytest.mark.asyncio
    async def test_list_comments_missing_quote(self, quote_manager):
        with pytest.raises(NotFoundError):
            await quote_manager.comments.list_comments(subject=ALICE, quote_id="missing")

    @pytest.mark.asyncio
    async def test_add_comment_missing_quote(self, quote_manager):
        with pytest.raises(NotFoundError):
            await quote_manager.comments.add_comment(
                subject=ALICE, display_name="alice", quote_id="missing", text="Hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("display_name, text", [("alice", ""), ("alice", None), (None, "Hello"), ("", "Hello")])
    async def test_add_comment_requires_fields(self, quote_manager, display_name, text):
        with pytest.raises(ValidationError):
            await quote_manager.comments.add_comment(
                subject=ALICE, display_name=display_name, quote_id=QUOTE_IDS[0], text=text)


@pytest.mark.unit
class TestRandomQuoteSampler:
    """Test cases for random sampling"""

    @pytest.mark.asyncio
    async def test_default_sample_size(self, quote_store):
        sampler = RandomQuoteSampler(quote_store, default_size=2)
        quotes = await sampler.random_quotes()
        assert len(quotes) == 2

    @pytest.mark.asyncio
    async def test_anonymous_sees_saved_quotes(self, quote_manager, quote_store):
        for quote_id in QUOTE_IDS:
            await quote_store.add_saved_quote_ref(ALICE, quote_id)

        assert len(await quote_manager.sampler.random_quotes(subject=None)) == len(QUOTE_IDS)

    @pytest.mark.asyncio
    async def test_authenticated_excludes_own_saved(self, quote_manager, quote_store):
        for quote_id in QUOTE_IDS[:3]:
            await quote_store.add_saved_quote_ref(ALICE, quote_id)

        quotes = await quote_manager.sampler.random_quotes(subject=ALICE)
        assert [q.id for q in quotes] == [QUOTE_IDS[3]]

    @pytest.mark.asyncio
    async def test_get_system_status(self, quote_manager):
        status = await quote_manager.get_system_status()
        assert status["status"] == "healthy"
        assert status["database"]["quotes"] == len(SAMPLE_QUOTES)
