"""
===============================================================================
TARJETA CRC - interfaces/api/http/router.py (Router raíz v1)
===============================================================================

Responsabilidades:
  - Componer los routers por feature en un único APIRouter.

Colaboradores:
  - routers.compliance (declara sus propias respuestas RFC7807)

Notas:
  - api/main.py lo monta con prefix="/v1".
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from .routers.compliance import router as compliance_router


def build_router() -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(compliance_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
