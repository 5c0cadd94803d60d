import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedrank.config import Settings
from feedrank.database import create_tables, init_db
from feedrank.experiments.service import ExperimentAssigner
from feedrank.feed.candidates import SqlCandidateSource
from feedrank.feed.exposure import ExposureLogger
from feedrank.feed.router import router as feed_router
from feedrank.feed.service import RankingService
from feedrank.interests.router import router as interests_router
from feedrank.interests.service import InterestAccumulator
from feedrank.interests.store import SqlInterestStore
from feedrank.middleware import error_envelope_middleware, request_id_middleware
from feedrank.redis_client import get_redis_client
from feedrank.topics.classifier import TopicClassifier
from feedrank.topics.router import router as topics_router

logger = logging.getLogger(__name__)

# Swagger tag groups displayed in the OpenAPI docs sidebar
_OPENAPI_TAGS = [
    {
        "name": "Feed",
        "description": (
            "Personalised ranked feed over a bounded window of recent posts. "
            "Each item carries its score breakdown and the algorithm variant used. "
            "Variant assignment is deterministic (SHA-256 hash) and sticky for 24 h."
        ),
    },
    {
        "name": "Interests",
        "description": (
            "Per-topic affinity bookkeeping: interaction events and author follows "
            "nudge scores clamped to [-10, 50]. Updates run after the response."
        ),
    },
    {
        "name": "Topics",
        "description": "Keyword / hashtag / phrase topic classification for free text.",
    },
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
]


def get_settings() -> Settings:
    return Settings()


def build_services(app: FastAPI, settings: Settings, session_factory, redis_client) -> None:
    """Wire the long-lived domain objects onto ``app.state``."""
    candidates = SqlCandidateSource(session_factory)
    store = SqlInterestStore(session_factory)
    exposure = ExposureLogger(
        redis_client,
        max_len=settings.exposure_list_max_len,
        timeout_s=settings.storage_timeout_s,
    )

    app.state.redis = redis_client
    app.state.exposure = exposure
    app.state.classifier = TopicClassifier(cache_size=settings.classifier_cache_size)
    app.state.accumulator = InterestAccumulator(
        store, candidates, timeout_s=settings.storage_timeout_s
    )
    app.state.ranking_service = RankingService(
        candidates,
        store,
        ExperimentAssigner(redis_client, ttl_s=settings.experiment_assignment_ttl_s),
        redis_client,
        exposure,
        candidate_window=settings.candidate_window,
        cache_ttl_s=settings.feed_cache_ttl_s,
        timeout_s=settings.storage_timeout_s,
        experiment_key=settings.experiment_key,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    session_factory = init_db(settings.database_url)
    if settings.create_tables_on_startup:
        await create_tables(session_factory)
    redis_client = get_redis_client(
        settings.redis_url,
        socket_timeout=settings.storage_timeout_s,
        socket_connect_timeout=settings.storage_timeout_s,
    )
    build_services(app, settings, session_factory, redis_client)
    logger.info("feedrank started (env=%s)", settings.env_name)

    yield

    await app.state.exposure.drain()
    await redis_client.aclose()
    await session_factory.kw["bind"].dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s: %(message)s",
    )
    app = FastAPI(
        title="feedrank",
        description=(
            "Personalised feed ranking: topic classification, per-user topic "
            "affinities learned from interactions, and a weighted multi-signal "
            "scorer with A/B algorithm variants."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # CORS must be registered first (runs last in middleware stack)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    app.include_router(feed_router, prefix="/api/v1")
    app.include_router(interests_router, prefix="/api/v1")
    app.include_router(topics_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Lightweight liveness probe. Does not hit the database."""
        return {"status": "ok", "service": "feedrank"}

    return app


app = create_app()
