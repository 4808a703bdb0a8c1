import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ringside.config import settings
from ringside.database import init_db
from ringside.routes import brackets, schedule

logger = logging.getLogger(__name__)

app = FastAPI(title="Ringside Bracket Engine API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_origins.extend(settings.cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(brackets.router, prefix="/api", tags=["brackets"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info(
        "Ringside started (max bracket size %s, carnival group size %s, number pending bouts %s)",
        settings.max_bracket_size or "uncapped",
        settings.carnival_max_group_size,
        settings.number_pending_bouts,
    )


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify the service is up"""
    return {"app_name": "Ringside Bracket Engine API", "status": "healthy"}
