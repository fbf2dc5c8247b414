"""CORS configuration for the admin panel and the public storefronts.

- Development: allows all origins (*)
- Production: restricts to CORS_ORIGINS plus STOREFRONT_ORIGINS
"""

from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_cors_origins() -> List[str]:
    """Obtém lista de origens permitidas para CORS baseado no ambiente.

    Em produção, ``CORS_ORIGINS`` (painel administrativo) é obrigatório e
    ``STOREFRONT_ORIGINS`` (domínios das lojas) é somado a ele.

    Raises:
        ValueError: Se em produção e CORS_ORIGINS não estiver configurado
    """
    environment = os.getenv("ENVIRONMENT", os.getenv("ENV", "development")).lower()

    if environment not in ("production", "prod"):
        return ["*"]

    origins = _split_origins(os.getenv("CORS_ORIGINS", ""))
    if not origins:
        raise ValueError(
            "CORS_ORIGINS must be set in production. "
            "Configure allowed domains separated by commas, e.g.: "
            "CORS_ORIGINS=https://admin.example.com"
        )

    for origin in _split_origins(os.getenv("STOREFRONT_ORIGINS", "")):
        if origin not in origins:
            origins.append(origin)
    return origins


def configure_cors(app: FastAPI) -> None:
    """Configura middleware CORS no app FastAPI baseado no ambiente."""
    origins = get_cors_origins()

    allow_credentials = os.getenv("CORS_ALLOW_CREDENTIALS", "false").lower() == "true"
    # com "*" o navegador rejeita credentials
    if origins == ["*"]:
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=int(os.getenv("CORS_MAX_AGE", "600")),
    )
