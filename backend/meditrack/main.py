import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meditrack.config import Settings, get_settings
from meditrack.db.store import RecordStore
from meditrack.exceptions import MediTrackError, ValidationError
from meditrack.seed import seed_admin, seed_demo_patients
from meditrack.services.activity_service import ActivityLogService
from meditrack.services.auth_service import AuthService
from meditrack.services.patient_service import PatientService
from meditrack.services.sessions import SessionRegistry
from meditrack.api.routes import auth, patients, activity_logs, dashboard

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None, store: RecordStore = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Core components, wired explicitly so each app gets its own store
    store = store or RecordStore(settings.DATABASE_URL, echo=settings.DEBUG)
    sessions = SessionRegistry()
    activity_service = ActivityLogService(store, sessions)
    auth_service = AuthService(store, activity_service, sessions)
    patient_service = PatientService(store, activity_service, sessions)

    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions
    app.state.activity_service = activity_service
    app.state.auth_service = auth_service
    app.state.patient_service = patient_service

    admin = seed_admin(auth_service, settings)
    if settings.SEED_DEMO_PATIENTS > 0:
        seed_demo_patients(store, admin.id, settings.SEED_DEMO_PATIENTS)

    @app.exception_handler(MediTrackError)
    async def meditrack_error_handler(request: Request, exc: MediTrackError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError.from_pydantic(exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # API routes
    app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Auth"])
    app.include_router(patients.router, prefix=settings.API_PREFIX, tags=["Patients"])
    app.include_router(activity_logs.router, prefix=settings.API_PREFIX, tags=["Activity Logs"])
    app.include_router(dashboard.router, prefix=settings.API_PREFIX, tags=["Dashboard"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": settings.APP_NAME}

    logger.info("%s %s ready", settings.APP_NAME, settings.APP_VERSION)
    return app


app = create_app()
