import os


class Settings:
    """Configuración de la aplicación que lee variables de entorno dinámicamente."""

    @property
    def app_name(self) -> str:
        return "Grocery Backend"

    @property
    def environment(self) -> str:
        env = os.getenv("ENV", "").lower()
        if env == "production" or os.getenv("PORT"):
            return "production"
        return "development"

    @property
    def cors_origin(self) -> str:
        # Orígenes extra separados por coma; localhost:3000 siempre está permitido
        return os.getenv("CORS_ORIGIN", "").strip()

    @property
    def database_url(self) -> str:
        # Sin DATABASE_URL usamos SQLite local
        return os.getenv("DATABASE_URL", "").strip() or "sqlite:///./grocery.db"

    @property
    def address_commit_retries(self) -> int:
        try:
            return max(1, int(os.getenv("ADDRESS_COMMIT_RETRIES", "3")))
        except ValueError:
            return 3

    @property
    def room_send_timeout(self) -> float:
        try:
            return float(os.getenv("ROOM_SEND_TIMEOUT", "5.0"))
        except ValueError:
            return 5.0


_settings_instance = None


def get_settings() -> Settings:
    """Retorna la instancia de Settings. Lee variables de entorno dinámicamente."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
