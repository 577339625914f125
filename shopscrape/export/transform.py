"""Serialize product records to CSV, JSON or an xlsx workbook."""
import logging
from io import BytesIO
from typing import Any, Union

import orjson
from openpyxl import Workbook

from shopscrape.errors import ExportError, UnsupportedFormatError
from shopscrape.parse.models import ProductRecord

logger = logging.getLogger(__name__)

FORMATS = ("csv", "xlsx", "json")
LIST_SEPARATOR = "|"
SHEET_TITLE = "Products"

CONTENT_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def flatten_value(value: Any) -> str:
    """Lists become pipe-joined strings; None becomes empty."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(str(item) for item in value)
    return str(value)


def _csv_cell(record: ProductRecord, name: str) -> str:
    if name not in record or record[name] is None:
        return ""
    text = flatten_value(record[name])
    return '"' + text.replace('"', '""') + '"'


def filename_for(fmt: str) -> str:
    return f"products.{fmt}"


class Exporter:
    """
    Converts a record list into a download payload.
    Spreadsheet support is decided by the caller at construction.
    """

    def __init__(self, spreadsheet_enabled: bool = True):
        self.spreadsheet_enabled = spreadsheet_enabled

    def check_format(self, fmt: str) -> None:
        """Raise before any work is done if ``fmt`` cannot be produced."""
        if fmt not in FORMATS:
            raise UnsupportedFormatError(fmt)
        if fmt == "xlsx" and not self.spreadsheet_enabled:
            raise ExportError("Spreadsheet export is not available")

    def to_csv(self, records: list[ProductRecord], fields: list[str]) -> str:
        lines = [",".join(fields)]
        for record in records:
            lines.append(",".join(_csv_cell(record, name) for name in fields))
        return "\n".join(lines)

    def to_json(self, records: list[ProductRecord]) -> str:
        return orjson.dumps(records, option=orjson.OPT_INDENT_2).decode()

    def to_xlsx(self, records: list[ProductRecord], fields: list[str]) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE
        sheet.append(list(fields))
        for record in records:
            sheet.append([flatten_value(record.get(name)) for name in fields])

        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    def to_format(self, records: list[ProductRecord], fields: list[str], fmt: str) -> Union[str, bytes]:
        self.check_format(fmt)
        logger.debug(f"Exporting {len(records)} records as {fmt}")
        if fmt == "csv":
            return self.to_csv(records, fields)
        if fmt == "json":
            return self.to_json(records)
        return self.to_xlsx(records, fields)
