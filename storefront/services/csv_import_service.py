# storefront/services/csv_import_service.py
import csv
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, IO, List

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.card import CardModel
from storefront.data.models.csv_import import CsvImportModel
from storefront.domain.errors import ImportNotFoundError
from storefront.domain.schemas import ImportResult
from storefront.repos.card_repo import CardRepo
from storefront.repos.csv_import_repo import CsvImportRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

FIELDS = (
    "card_name",
    "set_name",
    "card_number",
    "year",
    "sport_type",
    "condition",
    "price",
    "quantity",
    "description",
    "player_name",
    "rarity",
    "graded",
    "grade_company",
    "grade_value",
)

VALID_CONDITIONS = ("mint", "near_mint", "excellent", "good", "played")
GRADED_TRUE = ("true", "yes", "1")
GRADED_TOKENS = GRADED_TRUE + ("false", "no", "0")

DUPLICATE_ACTIONS = ("skip", "update", "merge")

# Numeric(10, 2)
MAX_PRICE = Decimal("99999999.99")

# pola tekstowe przepisywane 1:1 do kolumn cards
_TEXT_FIELDS = (
    "set_name",
    "card_number",
    "sport_type",
    "description",
    "player_name",
    "rarity",
    "grade_company",
    "grade_value",
)


@dataclass
class ParseResult:
    rows: List[Dict[str, str]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0


@dataclass
class Duplicate:
    row: Dict[str, str]
    existing: CardModel


@dataclass
class DuplicateResult:
    duplicates: List[Duplicate] = field(default_factory=list)
    unique: List[Dict[str, str]] = field(default_factory=list)


def _open_text(stream) -> tuple[IO[str], io.TextIOWrapper | None]:
    if isinstance(stream, (bytes, bytearray)):
        return io.StringIO(stream.decode("utf-8-sig")), None
    if isinstance(stream, str):
        return io.StringIO(stream), None
    if isinstance(stream.read(0), bytes):
        wrapper = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
        return wrapper, wrapper
    return stream, None


def map_row(row: Dict[str, str], column_mapping: Dict[str, str] | None = None) -> Dict[str, str]:
    """
    Kolumny źródłowe -> pola docelowe. Pole bez mapowania czyta kolumnę
    o tej samej nazwie, puste wartości są pomijane.
    """
    column_mapping = column_mapping or {}
    mapped = {}

    for dest in FIELDS:
        source = column_mapping.get(dest) or dest
        value = row.get(source)
        if value is not None and value != "":
            mapped[dest] = value

    return mapped


def _parse_int(value: str) -> int | None:
    # tylko cyfry ASCII - bez "1_0", znaku i cyfr spoza ASCII
    if not value.isascii() or not value.isdigit():
        return None
    return int(value)


def validate_row(row: Dict[str, str]) -> List[str]:
    errors = []

    if not row.get("card_name") or not row["card_name"].strip():
        errors.append("Card name is required")

    if row.get("year"):
        max_year = datetime.now(timezone.utc).year + 1
        year = _parse_int(row["year"])
        if year is None or year < 1800 or year > max_year:
            errors.append(f"Invalid year: {row['year']}")

    if row.get("price"):
        try:
            price = Decimal(row["price"])
        except InvalidOperation:
            price = None
        if price is None or not price.is_finite() or price < 0 or price > MAX_PRICE:
            errors.append(f"Invalid price: {row['price']}")

    if row.get("quantity"):
        qty = _parse_int(row["quantity"])
        if qty is None:
            errors.append(f"Invalid quantity: {row['quantity']}")

    if row.get("condition") and row["condition"].lower() not in VALID_CONDITIONS:
        errors.append(
            f"Invalid condition: {row['condition']}. Must be one of: {', '.join(VALID_CONDITIONS)}"
        )

    if row.get("graded") and row["graded"].lower() not in GRADED_TOKENS:
        errors.append(f"Invalid graded value: {row['graded']}")

    return errors


def card_values(row: Dict[str, str], for_insert: bool = True) -> Dict[str, Any]:
    """Zwalidowany wiersz CSV -> wartości kolumn cards."""
    values: Dict[str, Any] = {"card_name": row["card_name"].strip()}

    for name in _TEXT_FIELDS:
        if name in row:
            values[name] = row[name]

    if "year" in row:
        values["year"] = int(row["year"])
    if "condition" in row:
        values["condition"] = row["condition"].lower()
    if "price" in row:
        values["price_nzd"] = Decimal(row["price"]).quantize(Decimal("0.01"))
    if "quantity" in row:
        values["quantity"] = int(row["quantity"])
    if "graded" in row:
        values["graded"] = row["graded"].lower() in GRADED_TRUE

    if for_insert:
        values.setdefault("quantity", 1)
        values.setdefault("graded", False)
        values["available"] = True

    return values


def _is_fatal(error: Exception) -> bool:
    # utrata połączenia itp. - kończy cały import
    if isinstance(error, OperationalError):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


class CsvImportService:
    """
    Import kart z CSV:
    parse -> walidacja wierszy -> wykrywanie duplikatów -> zapis (skip/update/merge)
    z rekordem audytowym w csv_imports.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cards = CardRepo(db)
        self.imports = CsvImportRepo(db)

    def parse_csv(self, stream, column_mapping: Dict[str, str] | None = None) -> ParseResult:
        result = ParseResult()
        text, wrapper = _open_text(stream)

        try:
            reader = csv.DictReader(text)
            if reader.fieldnames:
                reader.fieldnames = [name.strip() for name in reader.fieldnames]

            for raw in reader:
                result.total_rows += 1
                row = {
                    key: (value or "").strip()
                    for key, value in raw.items()
                    if key is not None and not isinstance(value, list)
                }

                mapped = map_row(row, column_mapping)
                errors = validate_row(mapped)

                if errors:
                    result.errors.append({"row": result.total_rows, "data": row, "errors": errors})
                else:
                    result.rows.append(mapped)
        finally:
            # strumień należy do wywołującego - nie zamykamy go
            if wrapper is not None:
                wrapper.detach()

        logger.info(
            f"Parsed CSV: {result.total_rows} rows, {len(result.rows)} valid, {len(result.errors)} invalid"
        )
        return result

    def detect_duplicates(self, rows: List[Dict[str, str]]) -> DuplicateResult:
        result = DuplicateResult()

        for row in rows:
            try:
                with self.db.begin_nested():
                    existing = self.cards.find_duplicate(
                        row["card_name"],
                        row.get("set_name"),
                        row.get("card_number"),
                    )
            except SQLAlchemyError as e:
                # fail-open: bez pewności traktujemy wiersz jako nowy
                logger.warning(f"Duplicate check failed for '{row.get('card_name')}', treating as unique: {e}")
                result.unique.append(row)
                continue

            if existing is not None:
                result.duplicates.append(Duplicate(row=row, existing=existing))
            else:
                result.unique.append(row)

        return result

    def import_cards(
        self,
        rows: List[Dict[str, str]],
        user_id: int | None,
        filename: str,
        duplicate_action: str = "skip",
        rejected: List[Dict[str, Any]] | None = None,
        total_rows: int | None = None,
    ) -> ImportResult:
        """
        Zapisuje zwalidowane wiersze. Rekord csv_imports jest commitowany
        od razu, żeby status "failed" przetrwał rollback reszty importu.
        Wiersze odrzucone przy walidacji (rejected) liczą się jako failed.
        """
        rejected = rejected or []
        total = total_rows if total_rows is not None else len(rows) + len(rejected)

        run = self.imports.create_run(user_id, filename, total)
        self.imports.commit()
        logger.info(f"CSV import {run.id} started: {filename}, {total} rows, duplicates -> {duplicate_action}")

        successful = 0
        failed = len(rejected)
        skipped = 0
        error_log: List[Dict[str, Any]] = [
            {"row": r["row"], "errors": r["errors"]} for r in rejected
        ]

        try:
            detection = self.detect_duplicates(rows)

            for row in detection.unique:
                try:
                    with self.db.begin_nested():
                        self.cards.insert_card(card_values(row))
                    successful += 1
                except (SQLAlchemyError, ValueError, ArithmeticError) as e:
                    if _is_fatal(e):
                        raise
                    failed += 1
                    error_log.append({"card_name": row.get("card_name"), "error": str(e)})

            for dup in detection.duplicates:
                if duplicate_action == "skip":
                    skipped += 1
                    continue

                if duplicate_action not in DUPLICATE_ACTIONS:
                    continue

                try:
                    with self.db.begin_nested():
                        if duplicate_action == "update":
                            self.cards.update_card(dup.existing.id, card_values(dup.row, for_insert=False))
                        else:
                            self.cards.add_quantity(dup.existing.id, int(dup.row.get("quantity") or 1))
                    successful += 1
                except (SQLAlchemyError, ValueError, ArithmeticError) as e:
                    if _is_fatal(e):
                        raise
                    failed += 1
                    error_log.append({"card_name": dup.row.get("card_name"), "error": str(e)})

            self.imports.finalize(run, successful, failed, skipped, error_log)
            self.imports.commit()

        except Exception as e:
            self.imports.rollback()
            logger.error(f"CSV import {run.id} failed: {e}")
            try:
                self.imports.mark_failed(run, str(e))
                self.imports.commit()
            except SQLAlchemyError as mark_error:
                self.imports.rollback()
                logger.error(f"Could not mark CSV import {run.id} as failed: {mark_error}")
            raise

        logger.info(
            f"CSV import {run.id} completed: {successful} ok, {failed} failed, {skipped} skipped"
        )

        return ImportResult(
            import_id=run.id,
            successful=successful,
            failed=failed,
            skipped=skipped,
            total_rows=total,
            errors=error_log,
        )

    def run_import(
        self,
        stream,
        user_id: int | None,
        filename: str,
        column_mapping: Dict[str, str] | None = None,
        duplicate_action: str = "skip",
    ) -> ImportResult:
        parsed = self.parse_csv(stream, column_mapping)
        return self.import_cards(
            parsed.rows,
            user_id,
            filename,
            duplicate_action=duplicate_action,
            rejected=parsed.errors,
            total_rows=parsed.total_rows,
        )

    def preview(self, stream, column_mapping: Dict[str, str] | None = None) -> Dict[str, Any]:
        """Parse + duplikaty bez zapisu - do podglądu przed importem."""
        parsed = self.parse_csv(stream, column_mapping)
        detection = self.detect_duplicates(parsed.rows)

        return {
            "total_rows": parsed.total_rows,
            "valid_rows": len(parsed.rows),
            "error_rows": len(parsed.errors),
            "duplicates": len(detection.duplicates),
            "unique": len(detection.unique),
            "errors": parsed.errors,
            "duplicate_list": [
                {
                    "row": dup.row,
                    "existing": {
                        "id": dup.existing.id,
                        "card_name": dup.existing.card_name,
                        "set_name": dup.existing.set_name,
                        "card_number": dup.existing.card_number,
                        "price_nzd": dup.existing.price_nzd,
                        "quantity": dup.existing.quantity,
                    },
                }
                for dup in detection.duplicates[:10]
            ],
            "sample_rows": parsed.rows[:5],
        }

    def get_import_history(self, limit: int = 20) -> List[CsvImportModel]:
        return self.imports.history(limit)

    def get_import(self, import_id: int) -> CsvImportModel:
        run = self.imports.get_run(import_id)
        if not run:
            raise ImportNotFoundError(f"CSV import {import_id} not found")
        return run

    @staticmethod
    def generate_template() -> Dict[str, Any]:
        headers = [
            "card_name",
            "set_name",
            "card_number",
            "year",
            "sport_type",
            "player_name",
            "condition",
            "price",
            "quantity",
            "rarity",
            "graded",
            "grade_company",
            "grade_value",
            "description",
        ]
        sample = [
            "Michael Jordan Rookie",
            "1986 Fleer",
            "57",
            "1986",
            "basketball",
            "Michael Jordan",
            "near_mint",
            "125.00",
            "1",
            "rare",
            "yes",
            "PSA",
            "8",
            "Iconic rookie card in excellent condition",
        ]

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(headers)
        writer.writerow(sample)

        return {"headers": headers, "sample": sample, "csv": buf.getvalue()}
