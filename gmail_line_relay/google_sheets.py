from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

# CSS color names used by the header styling, as Sheets API RGB fractions.
NAMED_COLORS: Dict[str, Dict[str, float]] = {
    "black": {"red": 0.0, "green": 0.0, "blue": 0.0},
    "white": {"red": 1.0, "green": 1.0, "blue": 1.0},
    "lightblue": {"red": 173 / 255, "green": 216 / 255, "blue": 230 / 255},
    "lightgreen": {"red": 144 / 255, "green": 238 / 255, "blue": 144 / 255},
    "lightyellow": {"red": 1.0, "green": 1.0, "blue": 224 / 255},
}


def column_letter(column: int) -> str:
    """1 -> A, 27 -> AA."""
    if column < 1:
        raise ValueError(f"column must be >= 1: {column}")
    letters = ""
    while column:
        column, rem = divmod(column - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def a1_range(sheet_name: str, row: int, column: int, num_rows: int, num_columns: int) -> str:
    start = f"{column_letter(column)}{row}"
    end = f"{column_letter(column + num_columns - 1)}{row + num_rows - 1}"
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{start}:{end}"


def to_color(name: str) -> Dict[str, float]:
    try:
        return NAMED_COLORS[name.lower()]
    except KeyError as exc:
        raise ValueError(f"Unsupported color name: {name}") from exc


class GoogleSheetStore:
    """Google Sheets API wrapper exposing one tab as a 1-based grid."""

    def __init__(self, creds, spreadsheet_id: str, sheet_name: str, service: Any = None) -> None:
        self.service = service or build("sheets", "v4", credentials=creds, cache_discovery=False)
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    def get_values(self, row: int, column: int, num_rows: int, num_columns: int) -> List[List[Any]]:
        range_name = a1_range(self.sheet_name, row, column, num_rows, num_columns)
        result = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=range_name)
            .execute()
        )
        values = result.get("values", [])
        logger.info("Read %s row(s) from %s", len(values), range_name)
        return values

    def set_values(self, row: int, column: int, values: Sequence[Sequence[Any]]) -> None:
        if not values:
            return
        num_columns = max(len(r) for r in values)
        range_name = a1_range(self.sheet_name, row, column, len(values), num_columns)
        (
            self.service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="RAW",
                body={"values": [list(r) for r in values]},
            )
            .execute()
        )
        logger.info("Wrote %s row(s) to %s", len(values), range_name)

    def rename(self, name: str) -> None:
        sheet_id = self._sheet_id()
        if self.sheet_name == name and sheet_id is not None:
            return
        if sheet_id is None:
            sheet_id = self._first_sheet_id()
        self._batch_update(
            [
                {
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "title": name},
                        "fields": "title",
                    }
                }
            ]
        )
        logger.info("Renamed sheet id=%s to %s", sheet_id, name)
        self.sheet_name = name

    def format_header(
        self,
        *,
        num_columns: int,
        token_color: str,
        label_color: str,
        num_rows: int,
        border_color: str,
    ) -> None:
        sheet_id = self._sheet_id()
        if sheet_id is None:
            raise ValueError(f"Sheet not found: {self.sheet_name}")
        border = {"style": "SOLID", "color": to_color(border_color)}
        requests = [
            _header_cell_request(sheet_id, 0, 1, token_color),
            _header_cell_request(sheet_id, 1, num_columns, label_color),
            {
                "updateBorders": {
                    "range": {
                        "sheetId": sheet_id,
                        "startRowIndex": 0,
                        "endRowIndex": num_rows,
                        "startColumnIndex": 0,
                        "endColumnIndex": num_columns,
                    },
                    "top": border,
                    "bottom": border,
                    "left": border,
                    "right": border,
                    "innerHorizontal": border,
                    "innerVertical": border,
                }
            },
            {
                "autoResizeDimensions": {
                    "dimensions": {
                        "sheetId": sheet_id,
                        "dimension": "COLUMNS",
                        "startIndex": 0,
                        "endIndex": num_columns,
                    }
                }
            },
        ]
        self._batch_update(requests)

    def _sheet_properties(self) -> List[Dict[str, Any]]:
        result = (
            self.service.spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties")
            .execute()
        )
        return [s.get("properties", {}) for s in result.get("sheets", [])]

    def _sheet_id(self) -> Optional[int]:
        for props in self._sheet_properties():
            if props.get("title") == self.sheet_name:
                return props.get("sheetId")
        return None

    def _first_sheet_id(self) -> int:
        sheets = self._sheet_properties()
        if not sheets:
            raise ValueError(f"Spreadsheet {self.spreadsheet_id} has no sheets.")
        return sheets[0].get("sheetId", 0)

    def _batch_update(self, requests: List[Dict[str, Any]]) -> None:
        (
            self.service.spreadsheets()
            .batchUpdate(spreadsheetId=self.spreadsheet_id, body={"requests": requests})
            .execute()
        )


def _header_cell_request(sheet_id: int, start_column: int, end_column: int, color: str) -> Dict[str, Any]:
    return {
        "repeatCell": {
            "range": {
                "sheetId": sheet_id,
                "startRowIndex": 0,
                "endRowIndex": 1,
                "startColumnIndex": start_column,
                "endColumnIndex": end_column,
            },
            "cell": {
                "userEnteredFormat": {
                    "backgroundColor": to_color(color),
                    "textFormat": {"bold": True},
                }
            },
            "fields": "userEnteredFormat(backgroundColor,textFormat)",
        }
    }
