import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from engagement_engine.errors import EngineError
from engagement_engine.logging_config import configure_logging

from engagement_engine.routes.recruiter.event import router as recruiter_event_router
from engagement_engine.routes.recruiter.question import router as recruiter_question_router
from engagement_engine.routes.recruiter.quiz_submission import router as recruiter_quiz_submission_router
from engagement_engine.routes.recruiter.assignment_submission import router as recruiter_assignment_submission_router
from engagement_engine.routes.recruiter.registration import router as recruiter_registration_router

from engagement_engine.routes.candidate.event import router as candidate_event_router
from engagement_engine.routes.candidate.quiz_session import router as candidate_quiz_router
from engagement_engine.routes.candidate.assignment_submission import router as candidate_assignment_router
from engagement_engine.routes.candidate.webinar_registration import router as candidate_webinar_router


configure_logging()
logger = logging.getLogger(__name__)


app=FastAPI(
    title="Timed Engagement & Assessment Engine"
)

@app.get("/")
def root():
    return {
        "message":"Engagement Engine is Running!"
        }


# ---------------------------
# Error kinds -> JSON responses
# ---------------------------
@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal", "detail": "Internal server error"},
    )


app.include_router(recruiter_event_router)
app.include_router(recruiter_question_router)
app.include_router(recruiter_quiz_submission_router)
app.include_router(recruiter_assignment_submission_router)
app.include_router(recruiter_registration_router)

app.include_router(candidate_event_router)
app.include_router(candidate_quiz_router)
app.include_router(candidate_assignment_router)
app.include_router(candidate_webinar_router)
