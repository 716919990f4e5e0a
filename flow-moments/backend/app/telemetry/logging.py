"""
Configuración de logging estructurado.
- Nivel INFO por defecto; DEBUG en desarrollo.
- Formato con timestamps y nombre del logger.
- Integra con Uvicorn (hereda handlers) para no duplicar.
- Nunca se loguean access tokens, aserciones ni tokens FCM completos.
"""
import logging
import os

def setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # Ajusta loggers de uvicorn para no duplicar formato
    for uv_logger in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uv_logger).setLevel(level)
    # httpx loguea cada request con la URL completa en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
