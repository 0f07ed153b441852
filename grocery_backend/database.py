# Configuración de base de datos usando SQLAlchemy.
#
# - DESARROLLO LOCAL: SQLite local (grocery.db) por defecto
# - PRODUCCIÓN: la base configurada en DATABASE_URL
#
# Las direcciones de cada cliente viven como un único documento JSON en la
# fila del cliente, así que reemplazar la libreta completa es un solo UPDATE.

import logging
from pathlib import Path
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import get_settings

logger = logging.getLogger(__name__)

backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = get_settings().database_url


def build_engine(database_url: str):
    """Crea un engine; para SQLite permite compartir conexiones entre threads."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

if DATABASE_URL.startswith("sqlite"):
    logger.info("[INFO] Usando SQLite local para desarrollo")
else:
    logger.info("[INFO] Usando base de datos externa configurada en DATABASE_URL")


def get_db():
    """
    Dependencia para inyectar la sesión de DB en los endpoints de FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
