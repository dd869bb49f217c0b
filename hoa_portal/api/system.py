from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..core.version import get_version_info

router = APIRouter()


@router.get("/version")
def read_version() -> Dict[str, str]:
    return get_version_info()


@router.get("/health")
def health(db: Session = Depends(get_db)) -> Dict[str, str]:
    db.execute(text("SELECT 1"))
    return {"status": "ok"}
