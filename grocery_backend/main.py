import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .database import Base, engine
from .errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from .routers import addresses, customers, realtime

# Configurar logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Importar todos los modelos para que SQLAlchemy los registre antes de create_all()
from .models.customer import Customer  # noqa: F401,E402

app_settings = get_settings()

app = FastAPI(title=app_settings.app_name, version="0.1.0", redirect_slashes=False)

allowed_origins = [
    "http://localhost:3000",
]

# Permitir múltiples orígenes separados por coma
for origin in (origin.strip() for origin in app_settings.cors_origin.split(",")):
    if origin and origin not in allowed_origins:
        allowed_origins.append(origin)

if app_settings.environment == "production" and not app_settings.cors_origin:
    logger.warning("⚠️ CORS_ORIGIN no configurado en producción, permitiendo todos los orígenes")
    allowed_origins = ["*"]

logger.info(f"🌐 Orígenes CORS permitidos: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)


def create_tables():
    """Crea las tablas en la base de datos si no existen."""
    logger.info("Creando tablas en la base de datos...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"✅ Tablas verificadas: {', '.join(Base.metadata.tables.keys())}")


# Crear tablas al iniciar (no bloquear el inicio si falla)
try:
    create_tables()
except Exception as e:
    logger.error(f"❌ Error al crear tablas al iniciar: {str(e)}", exc_info=True)
    logger.warning("⚠️ El servidor continuará iniciando, pero algunas funcionalidades pueden no estar disponibles")

app.include_router(customers.router, prefix="/api")
app.include_router(addresses.router, prefix="/api")
app.include_router(realtime.router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    return {"message": "Grocery backend running"}


@app.get("/api/health", tags=["health"])
async def health():
    logger.info("💓 Health check recibido")
    return {"status": "ok", "server": "alive"}
