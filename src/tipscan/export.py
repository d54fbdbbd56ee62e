"""Excel export of batch scan results and review items."""

import logging
from typing import List, Dict, Any, Optional
from pathlib import Path
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

from .parsers import ExtractedData
from .review import ReviewItem

logger = logging.getLogger(__name__)

HEADERS = ["File Name", "Amount", "Confidence", "Candidates", "Source",
           "Review Status", "Review Reason", "Alternatives", "Raw Snippet"]
COLUMN_WIDTHS = [30, 12, 12, 12, 12, 14, 50, 30, 60]
HEADER_FILL = PatternFill(start_color="E6E6E6", end_color="E6E6E6", fill_type="solid")


class ExcelExporter:
    """Export scan results and review items to Excel."""

    def __init__(self, output_path: Path):
        """
        Initialize Excel exporter.

        Args:
            output_path: Path for the output Excel file
        """
        self.output_path = output_path
        self.workbook = Workbook()

    def export_results(self,
                       results: List[Dict[str, Any]],
                       review_items: List[ReviewItem],
                       include_summary: bool = False):
        """
        Export scan results with review status to a single sheet.

        Args:
            results: Result dictionaries from create_result_dict
            review_items: Items needing review
            include_summary: Whether to add a summary section on top
        """
        try:
            if "Sheet" in self.workbook.sheetnames:
                self.workbook.remove(self.workbook["Sheet"])

            ws = self.workbook.create_sheet("Scan Results")
            current_row = 1

            if include_summary:
                current_row = self._add_summary_section(ws, results, current_row)
                current_row += 2

            self._add_results_section(ws, results, review_items, current_row)

            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(str(self.output_path))

            logger.info(f"Excel file exported to: {self.output_path}")

        except Exception as e:
            logger.error(f"Failed to export Excel file: {e}")
            raise

    def _add_results_section(self, ws, results: List[Dict[str, Any]],
                             review_items: List[ReviewItem], start_row: int):
        """Write one row per scanned file, confirmed results first."""
        review_lookup = {Path(item.file_path).name: item for item in review_items}

        ws.cell(row=start_row, column=1, value="SCAN RESULTS").font = Font(bold=True, size=14)
        current_row = start_row + 2

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=current_row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center")
        current_row += 1

        # OK rows first, then REVIEW rows
        ordered = sorted(results, key=lambda r: r.get('file_name', '') in review_lookup)
        for result in ordered:
            review_item = review_lookup.get(result.get('file_name', ''))
            amount = result.get('amount') or 0

            ws.cell(row=current_row, column=1, value=result.get('file_name', ''))
            ws.cell(row=current_row, column=2, value=amount if amount > 0 else None)
            ws.cell(row=current_row, column=3, value=round(result.get('confidence', 0.0), 2))
            ws.cell(row=current_row, column=4, value=result.get('candidates', 0))
            ws.cell(row=current_row, column=5, value=result.get('source', ''))

            if review_item:
                ws.cell(row=current_row, column=6, value="REVIEW")
                ws.cell(row=current_row, column=7, value=review_item.reason)
                ws.cell(row=current_row, column=8,
                        value=", ".join(f"{value:.2f}" for value in review_item.alternatives))
                ws.cell(row=current_row, column=9, value=review_item.raw_snippet)
            else:
                ws.cell(row=current_row, column=6, value="OK")

            ws.cell(row=current_row, column=2).number_format = '#,##0.00'
            current_row += 1

        for i, width in enumerate(COLUMN_WIDTHS, 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        logger.info(f"Wrote {len(results)} results and {len(review_items)} review items")

    def _add_summary_section(self, ws, results: List[Dict[str, Any]], start_row: int) -> int:
        """Add summary statistics to the top of the sheet."""
        if not results:
            ws.cell(row=start_row, column=1, value="No results to summarize")
            return start_row + 1

        df = pd.DataFrame(results)
        found = df[df['amount'] > 0]

        ws.cell(row=start_row, column=1, value="SCAN SUMMARY").font = Font(bold=True, size=14)
        current_row = start_row + 2

        stats = [
            ("Receipts Scanned:", len(df)),
            ("Totals Found:", len(found)),
            ("Sum of Totals:", round(float(found['amount'].sum()), 2)),
            ("Average Confidence:", round(float(df['confidence'].mean()), 2)),
        ]
        for label, value in stats:
            ws.cell(row=current_row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=current_row, column=2, value=value)
            current_row += 1

        if 'source' in df.columns:
            current_row += 1
            ws.cell(row=current_row, column=1, value="By Source:").font = Font(bold=True)
            current_row += 1
            for source, count in df.groupby('source').size().items():
                ws.cell(row=current_row, column=1, value=source)
                ws.cell(row=current_row, column=2, value=int(count))
                current_row += 1

        return current_row

    @staticmethod
    def create_result_dict(file_path: str,
                           data: Optional[ExtractedData],
                           source: str,
                           error: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a result dictionary for one scanned file.

        Args:
            file_path: Source file path
            data: Extraction output, or None when scanning failed
            source: 'ocr' or 'embedded'
            error: Error message for failed scans

        Returns:
            Result dictionary
        """
        return {
            'file_name': Path(file_path).name,
            'file_path': str(file_path),
            'amount': data.amount if data else 0,
            'confidence': data.confidence if data else 0.0,
            'candidates': len(data.all_amounts) if data else 0,
            'source': source,
            'error': error,
        }
