"""
Coaching Intake API
Business sophistication classification, routing and daily challenges
"""
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()

logger = structlog.get_logger()

from challenges import ChallengeProof, ChallengeSelector, InMemoryChallengeTracker, UserChallengeContext
from classifiers import BusinessClassifier
from core import CoachingError, RequestContext, RequestContextManager, load_settings
from graphs import AssessmentDependencies, compile_assessment_graph

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Coaching Intake API")

    settings = load_settings()
    app.state.settings = settings
    app.state.classifier = BusinessClassifier(settings)
    app.state.assessment_graph = compile_assessment_graph(
        dependencies=AssessmentDependencies(settings=settings)
    )
    app.state.selector = ChallengeSelector(settings.challenges)
    app.state.tracker = InMemoryChallengeTracker(settings.challenges)

    yield

    logger.info("Shutting down Coaching Intake API")


# API Models
class ClassifyRequest(BaseModel):
    answers: Dict[str, Any] = Field(default_factory=dict, description="Flat form answers")
    user_id: Optional[str] = Field(None, description="User identifier")
    explicit_constraint: Optional[str] = Field(None, description="Constraint chosen by the user")


class ChallengeContextRequest(BaseModel):
    user_id: str
    business_tier: str = "level0"
    primary_constraint: Optional[str] = None
    current_streak: Optional[int] = Field(None, ge=0, description="Defaults to the tracked streak")
    completed_challenges: Optional[List[str]] = Field(None, description="Defaults to tracked completions")
    monthly_revenue: Optional[float] = None
    preferred_difficulty: Optional[str] = None
    preferred_types: List[str] = Field(default_factory=list)
    timezone: Optional[str] = None


class BeatYesterdayRequest(ChallengeContextRequest):
    yesterday_revenue: float = Field(..., ge=0)


class ProofPayload(BaseModel):
    type: str
    value: Any = None
    verified: bool = False


class CompleteChallengeRequest(BaseModel):
    user_id: Optional[str] = None
    proof: Optional[ProofPayload] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    environment: str


app = FastAPI(
    title="Coaching Intake API",
    description="Classifies business sophistication and issues daily coaching challenges",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    async with RequestContextManager(RequestContext(request_id=request_id)):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(CoachingError)
async def coaching_error_handler(request: Request, exc: CoachingError):
    logger.warning("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


async def _challenge_context(request: Request, payload: ChallengeContextRequest) -> UserChallengeContext:
    tracker = request.app.state.tracker
    data = payload.model_dump()
    if payload.current_streak is None:
        data["current_streak"] = await tracker.current_streak(payload.user_id)
    if payload.completed_challenges is None:
        data["completed_challenges"] = await tracker.recent_challenge_ids(payload.user_id)
    return UserChallengeContext.from_mapping(data)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=API_VERSION,
        environment=os.getenv("APP_ENV", "development"),
    )


@app.post("/onboarding/classify")
async def classify_onboarding(payload: ClassifyRequest, request: Request):
    """Classify onboarding wizard answers"""
    logger.info("Classifying onboarding answers", user_id=payload.user_id)
    result = request.app.state.classifier.classify_answers(
        payload.answers, explicit_constraint=payload.explicit_constraint
    )
    return result.to_dict()


@app.post("/assessment/classify")
async def classify_assessment(payload: ClassifyRequest, request: Request):
    """Classify constraint assessment answers through the assessment graph"""
    logger.info("Classifying assessment answers", user_id=payload.user_id)
    state = await request.app.state.assessment_graph.ainvoke(
        {"answers": dict(payload.answers), "explicit_constraint": payload.explicit_constraint}
    )
    return state["decision"]


@app.post("/challenges/daily")
async def daily_challenge(payload: ChallengeContextRequest, request: Request):
    """Generate today's challenge for a user"""
    context = await _challenge_context(request, payload)
    challenge = request.app.state.selector.select(context)
    await request.app.state.tracker.record_issued(context.user_id, challenge)
    return challenge.to_dict()


@app.post("/challenges/beat-yesterday")
async def beat_yesterday(payload: BeatYesterdayRequest, request: Request):
    """Generate a revenue challenge against yesterday's figure"""
    context = await _challenge_context(request, payload)
    challenge = request.app.state.selector.beat_yesterday_challenge(context, payload.yesterday_revenue)
    await request.app.state.tracker.record_issued(context.user_id, challenge)
    return challenge.to_dict()


@app.post("/challenges/{challenge_id}/complete")
async def complete_challenge(challenge_id: str, payload: CompleteChallengeRequest, request: Request):
    """Mark a challenge complete"""
    proof = None
    if payload.proof is not None:
        proof = ChallengeProof(
            type=payload.proof.type,
            value=payload.proof.value,
            verified=payload.proof.verified,
        )
    challenge = await request.app.state.tracker.complete_challenge(
        challenge_id, user_id=payload.user_id, proof=proof
    )
    return challenge.to_dict()


@app.get("/users/{user_id}/progress")
async def user_progress(user_id: str, request: Request):
    """XP, level and streak for a user"""
    snapshot = await request.app.state.tracker.progress(user_id)
    return snapshot.to_dict()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Coaching Intake API",
        "version": API_VERSION,
        "endpoints": {
            "health": "GET /health",
            "onboarding": "POST /onboarding/classify",
            "assessment": "POST /assessment/classify",
            "daily_challenge": "POST /challenges/daily",
            "beat_yesterday": "POST /challenges/beat-yesterday",
            "complete": "POST /challenges/{challenge_id}/complete",
            "progress": "GET /users/{user_id}/progress",
        },
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
