from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from skystatus.core.storage import diagnose_storage
from skystatus.modules.imports.api import router as imports_router
from skystatus.modules.members.api import router as members_router

router = APIRouter()

router.include_router(members_router, prefix="/api")
router.include_router(imports_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/storage")
def healthz_storage(*, write_test: bool = False) -> JSONResponse:
    result = diagnose_storage(write_test=write_test)
    status_code = 200 if result.get("ok") else 503
    return JSONResponse(status_code=status_code, content=result)
