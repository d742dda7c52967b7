from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from app.bot.conversation import ConversationFlow, ConversationState, Reply, SearchRequest
from app.contracts.profile_search import CandidateProfile, ProfileSearchOutput
from app.services.profile_export import export_filename, profiles_to_csv
from app.services.profile_search_operations import execute_profile_search
from app.services.search_history import SearchHistory

logger = logging.getLogger(__name__)

_API_BASE_URL = "https://api.telegram.org"
_POLL_TIMEOUT_SECONDS = 30
_POLL_RETRY_DELAY_SECONDS = 5.0

DOWNLOAD_CSV = "download_csv"
NEW_SEARCH = "new_search"

SEARCH_ERROR_TEXT = "❌ An error occurred during the search. Please try again later or contact support."
NO_RESULTS_TEXT = (
    "❌ No CTOs found with your criteria. Try adjusting your search parameters and use /start to search again."
)
CSV_ERROR_TEXT = "❌ Failed to generate CSV file. The search results are still available above."

SearchRunner = Callable[..., Awaitable[dict[str, Any]]]


class TelegramApiError(Exception):
    def __init__(self, method: str, description: str, status_code: int | None = None):
        self.method = method
        self.status_code = status_code
        super().__init__(f"Telegram {method} failed: {description}")


class TelegramClient:
    """Minimal Bot API client over httpx. The token only ever lives in request URLs."""

    def __init__(self, token: str, *, client: httpx.AsyncClient | None = None):
        self._base_url = f"{_API_BASE_URL}/bot{token}"
        self._client = client or httpx.AsyncClient(timeout=_POLL_TIMEOUT_SECONDS + 10)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(
        self,
        method: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._client.post(f"{self._base_url}/{method}", json=json, data=data, files=files)
        try:
            body = response.json()
        except ValueError:
            raise TelegramApiError(method, "malformed response body", response.status_code) from None
        if response.status_code >= 400 or not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise TelegramApiError(method, description or f"HTTP {response.status_code}", response.status_code)
        return body.get("result")

    async def get_updates(self, offset: int | None = None, timeout: int = _POLL_TIMEOUT_SECONDS) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message", "callback_query"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", json=payload)
        return result if isinstance(result, list) else []

    async def send_message(self, chat_id: int, text: str, keyboard: list[list[tuple[str, str]]] | None = None) -> None:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if keyboard:
            payload["reply_markup"] = {
                "inline_keyboard": [
                    [{"text": label, "callback_data": data} for label, data in row] for row in keyboard
                ]
            }
        await self._call("sendMessage", json=payload)

    async def answer_callback_query(self, callback_query_id: str, text: str | None = None) -> None:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", json=payload)

    async def send_document(self, chat_id: int, filename: str, content: bytes, caption: str | None = None) -> None:
        data: dict[str, Any] = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        await self._call("sendDocument", data=data, files={"document": (filename, content, "text/csv")})


def format_top_results(profiles: list[CandidateProfile]) -> str:
    lines = []
    for index, profile in enumerate(profiles, 1):
        role = " at ".join(part for part in (profile.job_title, profile.company) if part) or "Role unknown"
        lines.append(f"{index}. {profile.name}\n   {role}\n   🔗 {profile.profile_url}\n")
    return "\n".join(lines)


class ProfileSearchBot:
    def __init__(
        self,
        client: TelegramClient,
        flow: ConversationFlow,
        *,
        history: SearchHistory | None = None,
        search: SearchRunner = execute_profile_search,
    ):
        self.client = client
        self.flow = flow
        self.history = history
        self._search = search
        self._searches: set[asyncio.Task[None]] = set()

    @property
    def pending_searches(self) -> int:
        return len(self._searches)

    async def _send(self, chat_id: int, reply: Reply) -> None:
        await self.client.send_message(chat_id, reply.text, reply.keyboard or None)
        if reply.search is not None:
            self._start_search(chat_id, reply.search)

    def _start_search(self, chat_id: int, request: SearchRequest) -> None:
        # Searches run in the background so other chats keep getting answers.
        task = asyncio.create_task(self._run_search(chat_id, request))
        self._searches.add(task)
        task.add_done_callback(self._search_finished)

    def _search_finished(self, task: asyncio.Task[None]) -> None:
        self._searches.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background search task failed", exc_info=exc)

    async def wait_for_searches(self) -> None:
        while self._searches:
            await asyncio.gather(*list(self._searches), return_exceptions=True)

    async def cancel_searches(self) -> None:
        pending = list(self._searches)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def handle_update(self, update: dict[str, Any]) -> None:
        callback_query = update.get("callback_query")
        if isinstance(callback_query, dict):
            await self._handle_callback(callback_query)
            return

        message = update.get("message")
        if not isinstance(message, dict):
            return
        chat_id = (message.get("chat") or {}).get("id")
        text = message.get("text")
        if chat_id is None or not isinstance(text, str):
            return

        if text.startswith("/"):
            command = text.split()[0].split("@")[0].lower()
            if command == "/start":
                await self._send(chat_id, self.flow.start(chat_id))
            elif command == "/help":
                await self.client.send_message(chat_id, self.flow.help_text())
            elif command == "/reset":
                await self._send(chat_id, self.flow.reset(chat_id))
            return

        await self._send(chat_id, self.flow.handle_text(chat_id, text))

    async def _handle_callback(self, callback_query: dict[str, Any]) -> None:
        message = callback_query.get("message") or {}
        chat_id = (message.get("chat") or {}).get("id")
        callback_id = callback_query.get("id")
        data = callback_query.get("data") or ""
        if chat_id is None or not callback_id:
            return

        session = self.flow.store.get(chat_id)
        if session is None and data != NEW_SEARCH:
            await self.client.answer_callback_query(callback_id, "Session expired. Please use /start")
            return
        await self.client.answer_callback_query(callback_id)

        if data == NEW_SEARCH:
            await self._send(chat_id, self.flow.start(chat_id))
        elif data == DOWNLOAD_CSV and session is not None and session.state == ConversationState.RESULTS_READY:
            await self._send_csv(chat_id, session.results, self.flow.build_request(session))
        else:
            await self._send(chat_id, self.flow.handle_callback(chat_id, data))

    async def _run_search(self, chat_id: int, request: SearchRequest) -> None:
        try:
            result = await self._search(filters=request.filters, backend=request.backend, history=self.history)
        except Exception:  # noqa: BLE001
            logger.exception("Bot search raised", extra={"chat_id": chat_id})
            result = {"status": "failed", "error": {"code": "search_error"}}

        if result.get("status") == "failed":
            logger.warning("Bot search failed", extra={"chat_id": chat_id, "error": result.get("error")})
            self.flow.complete(chat_id, [])
            await self.client.send_message(chat_id, SEARCH_ERROR_TEXT)
            return

        profiles = ProfileSearchOutput.model_validate(result["output"]).profiles
        self.flow.complete(chat_id, profiles)
        if not profiles:
            await self.client.send_message(chat_id, NO_RESULTS_TEXT)
            return

        await self.client.send_message(
            chat_id,
            f"✅ Search completed!\n\n📊 Found {len(profiles)} CTO profiles\n\n"
            f"🔝 Top 3 Results:\n{format_top_results(profiles[:3])}",
            [[("📥 Download Full Results (CSV)", DOWNLOAD_CSV)], [("🔄 New Search", NEW_SEARCH)]],
        )
        await self._send_csv(chat_id, profiles, request)

    async def _send_csv(self, chat_id: int, profiles: list[CandidateProfile], request: SearchRequest) -> None:
        session = self.flow.store.get(chat_id)
        criteria = self.flow.summary(session) if session is not None else ""
        try:
            content = profiles_to_csv(profiles, request.filters).encode("utf-8")
            await self.client.send_document(
                chat_id,
                export_filename(),
                content,
                caption=f"📊 Your CTO search results ({len(profiles)} profiles)\n\n🔍 Search criteria:\n{criteria}",
            )
        except (httpx.HTTPError, TelegramApiError):
            logger.exception("CSV delivery failed", extra={"chat_id": chat_id})
            await self.client.send_message(chat_id, CSV_ERROR_TEXT)

    async def run_polling(self, *, stop: asyncio.Event | None = None) -> None:
        """Long-poll for updates until ``stop`` is set.

        Handler failures are logged per update and never end the loop.
        Searches still running when polling stops are cancelled.
        """
        logger.info("Telegram CTO Finder Bot started")
        offset: int | None = None
        try:
            while stop is None or not stop.is_set():
                try:
                    updates = await self.client.get_updates(offset)
                except (httpx.HTTPError, TelegramApiError) as exc:
                    logger.warning("Polling failed, retrying", extra={"error": type(exc).__name__})
                    await asyncio.sleep(_POLL_RETRY_DELAY_SECONDS)
                    continue

                for update in updates:
                    update_id = update.get("update_id") if isinstance(update, dict) else None
                    if isinstance(update_id, int):
                        offset = update_id + 1
                    try:
                        await self.handle_update(update)
                    except Exception:  # noqa: BLE001
                        logger.exception("Failed to handle update", extra={"update_id": update_id})
                self.flow.store.purge_expired()
        finally:
            await self.cancel_searches()
        logger.info("Telegram CTO Finder Bot stopped")
