"""
====================================================
🎯 CONFIGURACIÓN DEL SISTEMA - POKER CASHIER
====================================================

Parámetros de logging y observabilidad.
"""

import os
from typing import Literal

from dotenv import load_dotenv

load_dotenv()

# =====================================================
# 🧾 LOGGING
# =====================================================

_ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}
_ALLOWED_FORMATS = {"console", "json"}


def _get_log_level(default: str) -> str:
    value = os.getenv("LOG_LEVEL")
    if value:
        normalized = value.strip().upper()
        if normalized not in _ALLOWED_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL: {value}. Must be one of {_ALLOWED_LEVELS}")
        return normalized
    return default


def _get_log_format(default: Literal["console", "json"]) -> Literal["console", "json"]:
    value = os.getenv("LOG_FORMAT")
    if value:
        normalized = value.strip().lower()
        if normalized not in _ALLOWED_FORMATS:
            raise ValueError(f"Invalid LOG_FORMAT: {value}. Must be one of {_ALLOWED_FORMATS}")
        return normalized  # type: ignore[return-value]
    return default


LOG_LEVEL = _get_log_level("INFO")
LOG_FORMAT: Literal["console", "json"] = _get_log_format("console")

# Archivo de log (cadena vacía = sin archivo)
LOG_FILE = os.getenv("LOG_FILE", "cashier.log")


# =====================================================
# 📊 MÉTRICAS
# =====================================================

# 0 = servidor de métricas deshabilitado
METRICS_PORT = int(os.getenv("METRICS_PORT", "0") or 0)
METRICS_HOST = os.getenv("METRICS_HOST", "0.0.0.0")
