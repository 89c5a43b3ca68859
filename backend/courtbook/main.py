import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from courtbook.database import engine, init_db
from courtbook.db_schema_patch import ensure_reservation_constraints
from courtbook.routes import courts, reservations, users

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Courtbook Reservation API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_ROUTERS = {
    "users": users.router,
    "courts": courts.router,
    "reservations": reservations.router,
}

# Include routers
for _tag, _router in API_ROUTERS.items():
    app.include_router(_router, prefix="/api", tags=[_tag])


def api_route_count() -> int:
    return sum(len(router.routes) for router in API_ROUTERS.values())


@app.on_event("startup")
def on_startup():
    init_db()
    ensure_reservation_constraints(engine)

    logger.info(f"Courtbook API started with {api_route_count()} API routes on {engine.url.get_backend_name()}")


@app.get("/health")
def health():
    return {"status": "healthy"}
