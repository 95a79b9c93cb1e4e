# grid_columns.py
# -------------------------------
# Column definitions for the lottery grid (AG Grid on the front end).
# Pure data: header labels, field keys, widths, filters and the *names* of
# the cell renderers. Renderers are owned by the grid; nothing here calls them.
# -------------------------------

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class CellRenderer(str, Enum):
    """Renderer components the grid knows by name."""
    CURRENCY = "CurrencyRenderer"
    REGISTRANTS = "Registrants"
    LOCAL_REGISTRANTS = "LocalRegistrants"
    REGISTRATION = "Registration"


@dataclass(frozen=True)
class ColumnDef:
    min_width: int
    max_width: int
    field: Optional[str] = None
    header_name: Optional[str] = None
    filter: Optional[str] = None
    cell_renderer: Optional[CellRenderer] = None
    sortable: Optional[bool] = None
    resizable: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Grid-style camelCase keys; unset options are left out."""
        out: Dict[str, Any] = {
            "field": self.field,
            "headerName": self.header_name,
            "minWidth": self.min_width,
            "maxWidth": self.max_width,
            "filter": self.filter,
            "cellRenderer": self.cell_renderer.value if self.cell_renderer else None,
            "sortable": self.sortable,
            "resizable": self.resizable,
        }
        return {k: v for k, v in out.items() if v is not None}


def get_column_defs() -> List[ColumnDef]:
    return [
        ColumnDef(field="LotteryNumber", header_name="הגרלה", min_width=85, max_width=85),
        ColumnDef(field="ProjectNumber", header_name="מתחם", min_width=85, max_width=85),
        ColumnDef(field="CityDescription", header_name="עיר", min_width=120, max_width=120,
                  filter="agTextColumnFilter"),
        ColumnDef(field="ProjectName", header_name="פרויקט", min_width=90, max_width=200,
                  resizable=True),
        ColumnDef(field="ContractorDescription", header_name="קבלן", min_width=90, max_width=300,
                  resizable=True),
        ColumnDef(field="PricePerUnit", header_name='מחיר למ"ר', min_width=120, max_width=120,
                  cell_renderer=CellRenderer.CURRENCY),
        ColumnDef(field="GrantSize", header_name="מענק", min_width=120, max_width=120,
                  cell_renderer=CellRenderer.CURRENCY),
        ColumnDef(field="LotteryApparmentsNum", header_name="דירות", min_width=100, max_width=100),
        ColumnDef(field="LocalHousing", header_name="לבני מקום", min_width=110, max_width=110),
        ColumnDef(field="_registrants", header_name="נרשמו", min_width=90, max_width=90,
                  cell_renderer=CellRenderer.REGISTRANTS),
        ColumnDef(field="_localRegistrants", header_name="בני מקום", min_width=110, max_width=110,
                  cell_renderer=CellRenderer.LOCAL_REGISTRANTS),
        # Action column: link to the registration page, no data field.
        ColumnDef(min_width=150, max_width=150, cell_renderer=CellRenderer.REGISTRATION,
                  sortable=False, resizable=False),
    ]
