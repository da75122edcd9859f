
import asyncio
import logging
import math
from typing import List, Optional

from .conversation_store import RedisConversationStore
from .errors import ValidationError
from .gateway import AIGateway
from .models import ChatResponse, ConversationRecord, MessagesPage
from .prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)


class ChatOrchestrator:
    """
    reply -> summary -> (email) -> persist, all or nothing.

    Any provider failure aborts before the record is written.
    """

    def __init__(
        self,
        gateway: AIGateway,
        store: RedisConversationStore,
        builder: Optional[PromptBuilder] = None,
        parallel: bool = False,
    ):
        self.gateway = gateway
        self.store = store
        self.builder = builder or PromptBuilder()
        self.parallel = parallel

    async def handle(self, user_msg: str, want_email: bool = False,
                     skip_cache: bool = False) -> ChatResponse:
        if not user_msg or not user_msg.strip():
            raise ValidationError("Please enter a message.")

        prompts = self.builder.build(user_msg, with_email=want_email)
        calls = [prompts.reply, prompts.summary]
        if prompts.email is not None:
            calls.append(prompts.email)

        if self.parallel:
            results = await self._run_concurrently(calls, skip_cache)
        else:
            results = []
            for prompt in calls:
                results.append(await self.gateway.get_reply(prompt, skip_cache))

        bot_reply, summary = results[0], results[1]
        email_reply = results[2] if want_email else None

        record = await self.store.insert(
            ConversationRecord(
                user_message=user_msg,
                bot_reply=bot_reply,
                summary=summary,
                email_reply=email_reply,
            )
        )
        return ChatResponse(
            user_message=record.user_message,
            bot_reply=record.bot_reply,
            summary=record.summary,
            email_reply=record.email_reply,
        )

    async def _run_concurrently(self, prompts: List[str], skip_cache: bool) -> List[str]:
        """First failure wins; the calls still in flight are cancelled before it propagates."""
        tasks = [asyncio.create_task(self.gateway.get_reply(p, skip_cache)) for p in prompts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


class HistoryService:
    def __init__(self, store: RedisConversationStore):
        self.store = store

    async def page(self, page: int, limit: int) -> MessagesPage:
        page = max(page, 1)
        limit = max(limit, 1)
        total = await self.store.count()
        total_pages = math.ceil(total / limit)

        if page > total_pages:
            return MessagesPage(
                total_messages=total,
                current_page=page,
                total_pages=total_pages,
                messages=[],
            )

        messages = await self.store.page((page - 1) * limit, limit)
        return MessagesPage(
            total_messages=total,
            current_page=page,
            total_pages=total_pages,
            messages=messages,
        )
