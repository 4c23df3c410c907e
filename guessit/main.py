'''
GuessIt API

Endpoints:
GET  /round                        -> active round (created on first call)
GET  /round/state                  -> just the active round's state
POST /round/guess                  -> submit a guess
POST /round/reset                  -> abandon the active round, start a new one
POST /round/notes/{digit}/toggle   -> cycle one digit on the deduction board
POST /round/notes/reset            -> clear the deduction board
GET  /round/hint                   -> strategy tip (never the answer)

History:
GET  /rounds                       -> finished rounds, newest first
GET  /rounds/{round_id}            -> one round in detail

Daily challenge:
GET  /daily                        -> today's challenge id and code length
POST /daily/guess                  -> evaluate a guess against a day's code

Diagnostics (only when GUESSIT_DEBUG is set):
GET  /round/debug-secret
'''

import logging
import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .bootstrap_db import create_all     # dev-only: create tables
from .constants import DAILY_CHALLENGE_LENGTH
from .daily import evaluate_daily_guess, generate_daily, today_utc
from .db import make_engine, make_session_factory
from .engine import is_win
from .errors import (
    GuessItError,
    GuessValidationError,
    HintError,
    HintUnavailableError,
    PersistenceError,
    RoundNotActiveError,
    RoundNotFoundError,
)
from .hints import HintEngine, HintService
from .orchestrator import GameOrchestrator
from .random_client import default_secret_factory
from .repository import DBRoundRepository
from .types import Code
from .schemas import (
    DailyChallengeOut,
    DailyGuessOut,
    DailyGuessRequest,
    DigitNoteOut,
    ErrorOut,
    FeedbackOut,
    GuessRequest,
    HintOut,
    RoundOut,
    RoundStateOut,
    RoundSummaryOut,
    SubmitResultOut,
)

APP_ENV = os.getenv("APP_ENV", "local")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").lower() in ("1", "true", "yes")


# Most specific class wins (looked up along the exception's MRO)
ERROR_STATUS = {
    GuessValidationError: 400,
    RoundNotFoundError: 404,
    RoundNotActiveError: 409,
    HintUnavailableError: 503,
    HintError: 502,
    PersistenceError: 503,
}


def status_for(exc: GuessItError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


async def guessit_error_handler(request: Request, exc: GuessItError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500 and not isinstance(exc, (PersistenceError, HintError)):
        # Contract violations: a bug, not a player mistake
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.kind)
        body = ErrorOut(detail="Something went wrong on our side.", kind=exc.kind)
    else:
        body = ErrorOut(detail=exc.message, kind=exc.kind)
    return JSONResponse(status_code=status, content=body.model_dump())


# Per-app orchestrator (one lock for every request)
def get_orchestrator(request: Request) -> GameOrchestrator:
    return request.app.state.orchestrator


def get_hint_service(request: Request) -> HintService:
    return request.app.state.hint_service


# ---------------- Routes ----------------

router = APIRouter()


@router.get("/round", response_model=RoundOut, summary="Get the active round")
async def get_round(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> RoundOut:
    return RoundOut.from_detail(await orchestrator.active_round())


@router.get("/round/state", response_model=RoundStateOut, summary="Get the active round's state")
async def get_round_state(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> RoundStateOut:
    state = await orchestrator.current_state()
    return RoundStateOut(state=state.value)


@router.post("/round/guess", response_model=SubmitResultOut, summary="Submit a guess")
async def submit_guess(
    payload: GuessRequest,
    orchestrator: GameOrchestrator = Depends(get_orchestrator),
) -> SubmitResultOut:
    result = await orchestrator.submit_guess(payload.guess)
    return SubmitResultOut.from_result(result)


@router.post("/round/reset", response_model=RoundOut, summary="Start over with a new round")
async def reset_round(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> RoundOut:
    await orchestrator.reset_round()
    return RoundOut.from_detail(await orchestrator.active_round())


@router.post("/round/notes/{digit}/toggle", response_model=DigitNoteOut, summary="Cycle a digit's mark")
async def toggle_note(digit: int, orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> DigitNoteOut:
    return DigitNoteOut.from_snapshot(await orchestrator.toggle_digit_mark(digit))


@router.post("/round/notes/reset", summary="Clear the deduction board")
async def reset_notes(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> dict:
    await orchestrator.reset_digit_marks()
    return {"message": "Notes reset."}


@router.get("/round/hint", response_model=HintOut, summary="Get a strategy tip")
async def get_hint(
    orchestrator: GameOrchestrator = Depends(get_orchestrator),
    hints: HintService = Depends(get_hint_service),
) -> HintOut:
    request, secret = await orchestrator.hint_request()
    output = await hints.generate_hint(request, secret)
    return HintOut(text=output.text, engine=output.engine)


@router.get("/rounds", response_model=list[RoundSummaryOut], summary="Finished rounds, newest first")
async def list_rounds(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> list[RoundSummaryOut]:
    return [RoundSummaryOut.from_summary(s) for s in await orchestrator.round_summaries()]


@router.get("/rounds/{round_id}", response_model=RoundOut, summary="One round in detail")
async def get_round_detail(
    round_id: str,
    orchestrator: GameOrchestrator = Depends(get_orchestrator),
) -> RoundOut:
    return RoundOut.from_detail(await orchestrator.round_detail(round_id))


@router.get("/daily", response_model=DailyChallengeOut, summary="Today's challenge")
def get_daily() -> DailyChallengeOut:
    return DailyChallengeOut(challenge_id=today_utc().isoformat(), length=DAILY_CHALLENGE_LENGTH)


@router.post("/daily/guess", response_model=DailyGuessOut, summary="Check a daily-challenge guess")
def daily_guess(payload: DailyGuessRequest) -> DailyGuessOut:
    day = payload.day or today_utc()
    result = evaluate_daily_guess(payload.guess, day)
    return DailyGuessOut(
        challenge_id=generate_daily(day).challenge_id,
        guess=payload.guess,
        feedback=FeedbackOut.from_result(result),
        solved=is_win(result, DAILY_CHALLENGE_LENGTH),
    )


debug_router = APIRouter()


@debug_router.get("/round/debug-secret", summary="Diagnostics: reveal the active secret")
async def debug_secret(orchestrator: GameOrchestrator = Depends(get_orchestrator)) -> dict:
    return {"secret": await orchestrator.debug_secret()}


# ---------------- App factory ----------------

def create_app(
    database_url: Optional[str] = None,
    secret_factory: Optional[Callable[[], Code]] = None,
    hint_engine: Optional[HintEngine] = None,
    create_tables: Optional[bool] = None,
    debug_routes: Optional[bool] = None,
) -> FastAPI:
    if create_tables is None:
        create_tables = APP_ENV == "local"
    if debug_routes is None:
        debug_routes = _env_flag("GUESSIT_DEBUG")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = make_engine(database_url)
        if create_tables:
            await create_all(engine)
        repository = DBRoundRepository(
            make_session_factory(engine),
            secret_factory=secret_factory or default_secret_factory(),
        )
        app.state.orchestrator = GameOrchestrator(repository)
        app.state.hint_service = HintService(hint_engine)
        logger.info("GuessIt started (env=%s)", APP_ENV)
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("GuessIt stopped")

    app = FastAPI(title="GuessIt API", version="1.0.0", lifespan=lifespan)

    # Allow everything in dev so the docs and a local front-end work easily
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GuessItError, guessit_error_handler)

    app.include_router(router)
    if debug_routes:
        logger.warning("Debug routes enabled: the active secret is exposed at /round/debug-secret")
        app.include_router(debug_router)

    return app


app = create_app()
