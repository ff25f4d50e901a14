import asyncio
import os
import threading
from datetime import date, timedelta

os.environ.setdefault("BITACORA_DATABASE_URL", "sqlite://")
os.environ.setdefault("BITACORA_SEED_DEMO_DATA", "false")
os.environ.setdefault("BITACORA_SIGNATURE_KDF_ITERATIONS", "1000")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bitacora.client.api import BitacoraApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.http import ApiClient
from bitacora.client.notices import NoticeBoard
from bitacora.create_tables import create_tables
from bitacora.database import Base, get_db
from bitacora.main import app, seed_demo_data
from bitacora.modules.documents.models import DocumentKind, User
from bitacora.modules.documents.models.schemas import CommitmentCreate, DocumentCreate
from bitacora.modules.documents.services import DocumentService
from bitacora.modules.photos.services.photo_service import PhotoService

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

# Usuarios de prueba (ids en orden de creación)
GESTOR, JUAN, ANA, CARLOS = 1, 2, 3, 4
PASSWORDS = {GESTOR: "gestor123", JUAN: "juan123", ANA: "ana123", CARLOS: "carlos123"}


class RecordingTransport(httpx.AsyncBaseTransport):
    """Registra cada petición y permite simular que no hay red."""

    def __init__(self, inner: httpx.AsyncBaseTransport):
        self.inner = inner
        self.requests = []
        self.offline = False
        self.gate = None

    async def handle_async_request(self, request):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.offline:
            raise httpx.ConnectError("sin conexión", request=request)
        return await self.inner.handle_async_request(request)

    def calls(self, method=None):
        return [(r.method, r.url.path) for r in self.requests if method is None or r.method == method]

    def hold(self):
        self.gate = asyncio.Event()
        return self.gate

    async def wait_for(self, count):
        while len(self.requests) < count:
            await asyncio.sleep(0)


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    create_tables(engine)
    session = TestingSessionLocal()
    seed_demo_data(session)
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def users(db_session):
    return {u.id: u for u in db_session.query(User).all()}


@pytest.fixture
def client_app(db_session):
    # Una sola conexión SQLite: las peticiones no pueden usarla a la vez
    lock = threading.Lock()

    def override_get_db():
        with lock:
            db = TestingSessionLocal()
            try:
                yield db
            finally:
                db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def connect(client_app):
    """Crea un BitacoraApi autenticado como ``user_id``; returns (api, transport)."""
    opened = []

    def factory(user_id):
        transport = RecordingTransport(httpx.ASGITransport(app=client_app))
        api = BitacoraApi(ApiClient(base_url="http://testserver", user_id=user_id, transport=transport))
        opened.append(api)
        return api, transport

    yield factory
    for api in opened:
        await api.aclose()


@pytest.fixture
def notices():
    return NoticeBoard()


def capabilities_for(user: User, read_only: bool = False) -> Capabilities:
    return Capabilities(user.id, user.app_role, read_only=read_only)


def make_acta(session, author, signatory_ids=(GESTOR, JUAN, ANA), commitments=4):
    today = date.today()
    data = DocumentCreate(
        number="ACTA-007",
        title="Reunión de coordinación semanal",
        summary="Revisión de avance de obra gruesa",
        required_signatory_ids=list(signatory_ids),
        commitments=[
            CommitmentCreate(
                description=f"Compromiso {i + 1}",
                responsible_id=JUAN if i % 2 else ANA,
                due_date=today + timedelta(days=2 * i - 1),
            )
            for i in range(commitments)
        ],
    )
    return DocumentService.create_document(session, DocumentKind.ACTA, author, data)


def make_report(session, author, number="INF-015", summary="Avance mensual de obra", signatory_ids=(JUAN,)):
    data = DocumentCreate(
        number=number,
        title="Informe mensual",
        period="2024-05",
        summary=summary,
        required_signatory_ids=list(signatory_ids),
    )
    return DocumentService.create_document(session, DocumentKind.REPORT, author, data)


def make_control_point(session, author, photos=5):
    point = PhotoService.create_control_point(session, "PC-02 Losa", "Hormigonado de losa", "Eje B")
    files = [(f"foto{i}.png", "image/png", PNG) for i in range(photos)]
    return PhotoService.add_photos(session, point, author.id, files)
