# storefront/repos/csv_import_repo.py
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.csv_import import CsvImportModel


class CsvImportRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_run(self, user_id: int | None, filename: str, total_rows: int) -> CsvImportModel:
        run = CsvImportModel(
            user_id=user_id,
            filename=filename,
            total_rows=total_rows,
            status="processing",
            error_log=[],
        )
        self.db.add(run)
        self.db.flush()
        return run

    def get_run(self, import_id: int) -> CsvImportModel | None:
        return self.db.get(CsvImportModel, import_id)

    def history(self, limit: int = 20) -> List[CsvImportModel]:
        return list(
            self.db.execute(
                select(CsvImportModel)
                .order_by(CsvImportModel.created_at.desc(), CsvImportModel.id.desc())
                .limit(limit)
            ).scalars()
        )

    def finalize(
        self,
        run: CsvImportModel,
        successful: int,
        failed: int,
        skipped: int,
        error_log: List[Dict[str, Any]],
    ) -> CsvImportModel:
        run.successful_rows = successful
        run.failed_rows = failed
        run.duplicates_skipped = skipped
        run.error_log = list(error_log)
        run.status = "completed"
        self.db.flush()
        return run

    def mark_failed(self, run: CsvImportModel, error: str) -> CsvImportModel:
        run.status = "failed"
        run.error_log = [{"error": error}]
        self.db.flush()
        return run

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
