"""Chat conversation that collects search filters one step at a time.

The flow is driven by an ordered list of ``FilterStep`` values; the same
interpreter serves the variant with a job-title question and the one
without it. Sessions are keyed by chat id and expire after a fixed idle TTL.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from app.contracts.profile_search import CandidateProfile, SearchFilters, SourceBackend

SKIP_TOKEN = "__skip__"
NOT_SPECIFIED = "Not specified"


class ConversationState(str, Enum):
    AWAITING_TITLE = "awaiting_title"
    AWAITING_REGION = "awaiting_region"
    AWAITING_SECTOR = "awaiting_sector"
    AWAITING_TYPE = "awaiting_type"
    AWAITING_SIZE = "awaiting_size"
    AWAITING_METHOD = "awaiting_method"
    SEARCHING = "searching"
    RESULTS_READY = "results_ready"


@dataclass(frozen=True)
class StepOption:
    label: str
    value: str


@dataclass(frozen=True)
class FilterStep:
    state: ConversationState
    field: str
    label: str
    prompt: str
    options: tuple[StepOption, ...]
    skip_label: str | None = None
    free_text: bool = False

    def callback_data(self, value: str) -> str:
        return f"{self.field}:{value}"

    def accepts(self, value: str) -> bool:
        if value == SKIP_TOKEN:
            return self.skip_label is not None
        return any(option.value == value for option in self.options)

    def display(self, value: str | None) -> str:
        for option in self.options:
            if option.value == value:
                return option.label
        return value or NOT_SPECIFIED


TITLE_STEP = FilterStep(
    state=ConversationState.AWAITING_TITLE,
    field="job_title",
    label="👔 Job Title",
    prompt="👔 Which role are you looking for? Pick one or type a title:",
    options=(
        StepOption("CTO", "CTO"),
        StepOption("CEO", "CEO"),
        StepOption("CFO", "CFO"),
        StepOption("COO", "COO"),
        StepOption("CMO", "CMO"),
        StepOption("CPO", "CPO"),
    ),
    skip_label="⏭️ Skip Job Title",
    free_text=True,
)

REGION_STEP = FilterStep(
    state=ConversationState.AWAITING_REGION,
    field="region",
    label="🌍 Region",
    prompt="🌍 Select your target region:",
    options=(
        StepOption("🇺🇸 United States", "United States"),
        StepOption("🇪🇺 Europe", "Europe"),
        StepOption("🌏 Asia", "Asia"),
        StepOption("🇨🇦 Canada", "Canada"),
        StepOption("🇦🇺 Australia", "Australia"),
    ),
    skip_label="🌍 Global / Skip Region",
)

SECTOR_STEP = FilterStep(
    state=ConversationState.AWAITING_SECTOR,
    field="company_sector",
    label="🏢 Sector",
    prompt="🏢 Now, select the company sector:",
    options=(
        StepOption("💻 Software/SaaS", "software"),
        StepOption("💰 Fintech", "fintech"),
        StepOption("🏥 Healthcare", "healthcare"),
        StepOption("🛒 E-commerce", "e-commerce"),
        StepOption("🤖 AI/ML", "AI/ML"),
        StepOption("🔒 Cybersecurity", "cybersecurity"),
        StepOption("⛓️ Blockchain", "blockchain"),
        StepOption("🌐 IoT", "IoT"),
        StepOption("🎮 Gaming", "gaming"),
    ),
    skip_label="⏭️ Skip Sector",
)

TYPE_STEP = FilterStep(
    state=ConversationState.AWAITING_TYPE,
    field="company_type",
    label="🏭 Company Type",
    prompt="🏭 Now, select the company type:",
    options=(
        StepOption("🚀 Startup", "startup"),
        StepOption("🏢 SME (Small-Medium Enterprise)", "SME"),
        StepOption("🏛️ Enterprise", "enterprise"),
        StepOption("🦄 Unicorn", "unicorn"),
        StepOption("📈 Public Company", "public"),
    ),
    skip_label="⏭️ Skip Company Type",
)

SIZE_STEP = FilterStep(
    state=ConversationState.AWAITING_SIZE,
    field="company_size",
    label="👥 Company Size",
    prompt="👥 Now, select the company size:",
    options=(
        StepOption("🤏 1-10 employees", "1-10"),
        StepOption("👥 11-50 employees", "11-50"),
        StepOption("👨‍👩‍👧‍👦 51-200 employees", "51-200"),
        StepOption("🏢 201-1000 employees", "201-1000"),
        StepOption("🏭 1000+ employees", "1000+"),
    ),
    skip_label="⏭️ Skip Company Size",
)

METHOD_STEP = FilterStep(
    state=ConversationState.AWAITING_METHOD,
    field="backend",
    label="🔍 Search Method",
    prompt="🔍 Finally, choose your search method:",
    options=(
        StepOption("🔍 Google Search (Free)", SourceBackend.PRIMARY.value),
        StepOption("⚡ SerpAPI (Premium)", SourceBackend.ALTERNATE.value),
    ),
)


def build_steps(include_job_title: bool = False) -> tuple[FilterStep, ...]:
    steps = (REGION_STEP, SECTOR_STEP, TYPE_STEP, SIZE_STEP, METHOD_STEP)
    return (TITLE_STEP, *steps) if include_job_title else steps


WELCOME_TEXT = (
    "🔍 Welcome to LinkedIn CTO Finder Bot!\n\n"
    "I'll help you find CTOs and technology executives based on your criteria."
)
GREETING_TEXT = "👋 Hi! Use /start to begin searching for CTOs, or /help for more information."
RESET_TEXT = "🔄 Session reset! Use /start to begin a new search."
EXPIRED_TEXT = "Session expired. Please use /start"
USE_BUTTONS_TEXT = (
    "🤖 Please use the buttons provided to navigate through the search process. "
    "If you're stuck, use /reset to start over or /help for assistance."
)
BUSY_TEXT = "⏳ A search is already running. Please wait for the results."


@dataclass(frozen=True)
class SearchRequest:
    filters: SearchFilters
    backend: SourceBackend


@dataclass
class Reply:
    text: str
    keyboard: list[list[tuple[str, str]]] = field(default_factory=list)
    search: SearchRequest | None = None


@dataclass
class ChatSession:
    chat_id: int
    state: ConversationState
    updated_at: float
    answers: dict[str, str] = field(default_factory=dict)
    results: list[CandidateProfile] = field(default_factory=list)


class SessionStore:
    def __init__(self, ttl_seconds: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[int, ChatSession] = {}

    def create(self, chat_id: int, state: ConversationState) -> ChatSession:
        session = ChatSession(chat_id=chat_id, state=state, updated_at=self._clock())
        self._sessions[chat_id] = session
        return session

    def get(self, chat_id: int) -> ChatSession | None:
        session = self._sessions.get(chat_id)
        if session is None:
            return None
        if self._clock() - session.updated_at > self.ttl_seconds:
            del self._sessions[chat_id]
            return None
        return session

    def touch(self, session: ChatSession) -> None:
        session.updated_at = self._clock()

    def discard(self, chat_id: int) -> None:
        self._sessions.pop(chat_id, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [chat_id for chat_id, s in self._sessions.items() if now - s.updated_at > self.ttl_seconds]
        for chat_id in expired:
            del self._sessions[chat_id]
        return len(expired)


class ConversationFlow:
    def __init__(self, steps: tuple[FilterStep, ...], store: SessionStore):
        if not steps or steps[-1].field != "backend":
            raise ValueError("conversation steps must end with the search method step")
        self.steps = steps
        self.store = store
        self._by_state = {step.state: step for step in steps}

    def _step_index(self, state: ConversationState) -> int:
        return next(index for index, step in enumerate(self.steps) if step.state == state)

    def _prompt(self, step: FilterStep, preface: str = "") -> Reply:
        rows = [[(option.label, step.callback_data(option.value))] for option in step.options]
        if step.skip_label:
            rows.append([(step.skip_label, step.callback_data(SKIP_TOKEN))])
        text = f"{preface}\n\n{step.prompt}" if preface else step.prompt
        return Reply(text=text, keyboard=rows)

    def help_text(self) -> str:
        lines = [
            "🤖 LinkedIn CTO Finder Bot Help",
            "",
            "📋 Available Commands:",
            "/start - Start a new search",
            "/help - Show this help message",
            "/reset - Reset current search session",
            "",
            "🔍 How it works:",
        ]
        lines.extend(f"{index}. Choose {step.label.split(' ', 1)[-1].lower()}" for index, step in enumerate(self.steps, 1))
        lines.append(f"{len(self.steps) + 1}. Get results and download CSV")
        lines.extend(["", "💡 Tips:", "- You can skip any optional step", "- Use /reset to start over anytime"])
        return "\n".join(lines)

    def start(self, chat_id: int) -> Reply:
        first = self.steps[0]
        self.store.create(chat_id, first.state)
        return self._prompt(first, WELCOME_TEXT)

    def reset(self, chat_id: int) -> Reply:
        self.store.discard(chat_id)
        return Reply(text=RESET_TEXT)

    def summary(self, session: ChatSession) -> str:
        lines = ["📋 Search Criteria:"]
        for step in self.steps:
            lines.append(f"{step.label}: {step.display(session.answers.get(step.field))}")
        return "\n".join(lines)

    def _advance(self, session: ChatSession, step: FilterStep) -> Reply:
        chosen = step.display(session.answers.get(step.field))
        confirmation = f"✅ {step.label.split(' ', 1)[-1]} selected: {chosen}"
        index = self._step_index(step.state)
        if index + 1 < len(self.steps):
            next_step = self.steps[index + 1]
            session.state = next_step.state
            self.store.touch(session)
            return self._prompt(next_step, confirmation)

        session.state = ConversationState.SEARCHING
        self.store.touch(session)
        return Reply(
            text=(
                f"🔍 Starting search with the following criteria:\n\n{self.summary(session)}\n\n"
                "⏳ Please wait while I search for CTOs..."
            ),
            search=self.build_request(session),
        )

    def _record(self, session: ChatSession, step: FilterStep, value: str) -> Reply:
        if value == SKIP_TOKEN:
            session.answers.pop(step.field, None)
        else:
            session.answers[step.field] = value
        return self._advance(session, step)

    def handle_callback(self, chat_id: int, data: str) -> Reply:
        session = self.store.get(chat_id)
        if session is None:
            return Reply(text=EXPIRED_TEXT)
        if session.state == ConversationState.SEARCHING:
            return Reply(text=BUSY_TEXT)

        step = self._by_state.get(session.state)
        field_name, _, value = data.partition(":")
        if step is None or field_name != step.field or not step.accepts(value):
            return Reply(text=USE_BUTTONS_TEXT)
        return self._record(session, step, value)

    def handle_text(self, chat_id: int, text: str) -> Reply:
        session = self.store.get(chat_id)
        if session is None:
            return Reply(text=GREETING_TEXT)

        step = self._by_state.get(session.state)
        cleaned = text.strip()
        if step is not None and step.free_text and cleaned:
            return self._record(session, step, cleaned[:100])
        return Reply(text=USE_BUTTONS_TEXT)

    def build_request(self, session: ChatSession) -> SearchRequest:
        answers = session.answers
        return SearchRequest(
            filters=SearchFilters(
                job_title=answers.get("job_title"),
                region=answers.get("region"),
                company_sector=answers.get("company_sector"),
                company_type=answers.get("company_type"),
                company_size=answers.get("company_size"),
            ),
            backend=SourceBackend(answers.get("backend", SourceBackend.PRIMARY.value)),
        )

    def complete(self, chat_id: int, profiles: list[CandidateProfile]) -> ChatSession | None:
        session = self.store.get(chat_id)
        if session is None:
            return None
        session.state = ConversationState.RESULTS_READY
        session.results = list(profiles)
        self.store.touch(session)
        return session
