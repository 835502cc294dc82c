import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from app.routes import admin_users, ai_jobs, auth, courses, feeds, mcqs, pages, subscriptions, videos
from app.db.base import Base
from app.db.sessions import engine
from app.core.config import settings
from app.core.errors import register_exception_handlers

# Import all models to ensure they're registered with Base
import app.models

logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Medical exam study platform: study content, subscriptions and AI tooling"
)

# CORS configuration; also answers OPTIONS pre-flight requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

register_exception_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(pages.router)
app.include_router(courses.router)
app.include_router(videos.router)
app.include_router(mcqs.router)
app.include_router(ai_jobs.router)
app.include_router(subscriptions.router)
app.include_router(admin_users.router)
app.include_router(feeds.router)


@app.on_event("startup")
async def startup_event():
    logger.info("%s v%s starting...", settings.APP_NAME, settings.APP_VERSION)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def answer_plain_options(request: Request, call_next):
    # OPTIONS without an Origin header is not a preflight; CORSMiddleware handles the rest
    if request.method == "OPTIONS" and "origin" not in request.headers:
        return Response(status_code=204)
    return await call_next(request)
