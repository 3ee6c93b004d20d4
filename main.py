from config.logging import setup_logging

# Logging first, so import-time messages use the configured handlers
logger = setup_logging()

from contextlib import asynccontextmanager

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from config.database import Base, engine
from config.settings import CORS_ORIGINS

# Model modules register their tables on Base
from app.models import auth_models, child_model, event_model  # noqa: F401

from app.api.endpoints.auth_credentials import router as auth_cred_routes
from app.routes.child_routes import router as child_routes
from app.routes.event_routes import router as event_routes
from app.routes.report_routes import router as report_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)
    logger.info("Baby Log API started")
    yield
    logger.info("Baby Log API stopped")


# FastAPI instance
app = FastAPI(
    title="Baby Log API",
    version="0.1.0",
    description="Backend for logging and reporting on babies' daily events",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Main router with the /api prefix
routerAPI = APIRouter(prefix="/api")

routerAPI.include_router(auth_cred_routes)
routerAPI.include_router(child_routes)
routerAPI.include_router(event_routes)
routerAPI.include_router(report_routes)
app.include_router(routerAPI)


@app.get("/", tags=["Root"])
async def read_root():
    return {"status": "Baby Log API is up!"}


@app.get("/health", tags=["Root"])
async def health():
    return {"status": "ok"}
