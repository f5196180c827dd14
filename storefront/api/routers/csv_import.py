# storefront/api/routers/csv_import.py
import json
from typing import Dict, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import ImportNotFoundError
from storefront.domain.schemas import CsvImportOut, ImportPreviewOut, ImportResult
from storefront.services.csv_import_service import CsvImportService
from storefront.utils.settings import CSV_IMPORT_HISTORY_LIMIT

router = APIRouter(prefix="/admin/csv-import", tags=["admin"])


def _column_mapping(raw: str | None) -> Dict[str, str] | None:
    if not raw:
        return None
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="column_mapping must be a JSON object")
    if not isinstance(mapping, dict):
        raise HTTPException(status_code=400, detail="column_mapping must be a JSON object")
    return {str(k): str(v) for k, v in mapping.items() if v}


@router.get("/template", response_class=PlainTextResponse)
def download_template():
    template = CsvImportService.generate_template()
    return PlainTextResponse(
        template["csv"],
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=card-import-template.csv"},
    )


@router.post("/preview", response_model=ImportPreviewOut)
def preview_import(
    file: UploadFile = File(...),
    column_mapping: str | None = Form(None),
    db: Session = Depends(get_db),
):
    mapping = _column_mapping(column_mapping)
    try:
        return CsvImportService(db).preview(file.file, mapping)
    except (UnicodeDecodeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Could not read CSV: {e}")


@router.post("/execute", response_model=ImportResult)
def execute_import(
    file: UploadFile = File(...),
    user_id: int | None = Form(None),
    duplicate_action: str = Form("skip"),
    column_mapping: str | None = Form(None),
    db: Session = Depends(get_db),
):
    mapping = _column_mapping(column_mapping)
    try:
        return CsvImportService(db).run_import(
            file.file,
            user_id,
            file.filename or "upload.csv",
            column_mapping=mapping,
            duplicate_action=duplicate_action,
        )
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Could not read CSV: {e}")


@router.get("/history", response_model=List[CsvImportOut])
def import_history(db: Session = Depends(get_db)):
    return CsvImportService(db).get_import_history(CSV_IMPORT_HISTORY_LIMIT)


@router.get("/{import_id}", response_model=CsvImportOut)
def get_import(import_id: int, db: Session = Depends(get_db)):
    try:
        return CsvImportService(db).get_import(import_id)
    except ImportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
