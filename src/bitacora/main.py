import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from bitacora import __version__
from bitacora.config import get_settings
from bitacora.create_tables import create_tables
from bitacora.database import SessionLocal
from bitacora.modules.auth.services.auth_service import AuthService
from bitacora.modules.documents.models import User
from bitacora.modules.photos.models import ControlPoint
from bitacora.permissions import AppRole
from bitacora.modules.auth.controllers.auth_controller import router as auth_router
from bitacora.modules.notifications.controllers.notification_controller import router as notification_router
from bitacora.modules.signatures.controllers.user_signature_controller import router as user_signature_router
from bitacora.modules.photos.controllers.control_point_controller import router as control_point_router
from bitacora.modules.documents.controllers.document_controller import router as document_router
from bitacora.modules.documents.controllers.signature_controller import router as signature_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("Gestor de Proyecto", "gestor@bitacora.cl", "gestor123", AppRole.ADMIN, "Jefe de Proyecto"),
    ("Juan Pérez", "juan@bitacora.cl", "juan123", AppRole.EDITOR, "Inspector Técnico"),
    ("Ana García", "ana@bitacora.cl", "ana123", AppRole.EDITOR, "Supervisora"),
    ("Carlos López", "carlos@bitacora.cl", "carlos123", AppRole.VIEWER, "Mandante"),
]


def seed_demo_data(session: Session):
    """Crea usuarios de prueba y un punto de control si la base está vacía."""
    if session.query(User).count() > 0:
        logger.info("Datos de prueba ya existen")
        return

    for full_name, email, password, app_role, project_role in DEMO_USERS:
        session.add(User(
            full_name=full_name,
            email=email,
            password_hash=AuthService.get_password_hash(password),
            app_role=app_role,
            project_role=project_role,
            is_active=True,
        ))
    session.add(ControlPoint(name="PC-01 Fundaciones", description="Avance de fundaciones", location="Eje A"))
    session.commit()
    logger.info("Datos de prueba creados: %s", ", ".join(email for _, email, *_ in DEMO_USERS))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Iniciando aplicación...")
    create_tables()
    if settings.seed_demo_data:
        with SessionLocal() as session:
            seed_demo_data(session)
    yield
    logger.info("Aplicación detenida")


app = FastAPI(
    title="Bitácora de Proyecto",
    description="API de actas e informes versionados con firma y consentimiento",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Accept", "Content-Type", "X-User-Id", "X-Requested-With", "Origin"],
    max_age=86400,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        body = {"message": detail.get("message", ""), "code": detail.get("code"), "details": detail.get("details")}
    else:
        body = {"message": str(detail), "code": None, "details": None}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "message": "Datos de entrada inválidos",
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(exc.errors()),
        },
    )


# Routers
app.include_router(auth_router)
app.include_router(notification_router, prefix="/notifications", tags=["notifications"])
app.include_router(user_signature_router)
app.include_router(control_point_router)
# /{kind}/{id} captura cualquier ruta de dos segmentos: va al final
app.include_router(document_router, tags=["documents"])
app.include_router(signature_router, tags=["documents"])


if __name__ == "__main__":
    uvicorn.run("bitacora.main:app", host="0.0.0.0", port=8000, reload=True)
