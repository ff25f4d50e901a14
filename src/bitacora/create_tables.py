import logging

from bitacora.database import engine, Base
# Importa todos los modelos para que se registren con Base
from bitacora.modules.documents.models import User, Document, Signatory, Signature, Commitment  # noqa: F401
from bitacora.modules.notifications.models.notification import Notification  # noqa: F401
from bitacora.modules.signatures.models import UserSignature  # noqa: F401
from bitacora.modules.photos.models import ControlPoint, PhotoEntry  # noqa: F401

logger = logging.getLogger(__name__)


def create_tables(bind=None):
    """Crea todas las tablas en la base de datos"""
    logger.info("Tablas a crear: %s", list(Base.metadata.tables.keys()))
    Base.metadata.create_all(bind=bind or engine)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
