"""Tests for the Excel report."""

from openpyxl import load_workbook
from tipscan.export import ExcelExporter
from tipscan.parsers import extract_amounts_from_text
from tipscan.review import ReviewQueue


class TestExcelExporter:
    """Test suite for ExcelExporter."""

    def setup_method(self):
        """Set up one confident, one uncertain and one failed scan."""
        self.queue = ReviewQueue()
        good = extract_amounts_from_text("SUBTOTAL 45.00\nTAX 4.50\nTIP 2.00\nTOTAL 51.50")
        unsure = extract_amounts_from_text("CASH 40.00\nCHANGE 12.50")

        self.results = [
            ExcelExporter.create_result_dict("in/unsure.jpg", unsure, 'ocr'),
            ExcelExporter.create_result_dict("in/good.pdf", good, 'embedded'),
            ExcelExporter.create_result_dict("in/broken.jpg", None, 'ocr', "Could not load image"),
        ]
        self.queue.add_from_extraction("in/unsure.jpg", unsure)
        self.queue.add_item(file_path="in/broken.jpg", reason="Processing failed")

    def test_create_result_dict(self):
        assert self.results[1] == {
            'file_name': "good.pdf",
            'file_path': "in/good.pdf",
            'amount': 51.5,
            'confidence': self.results[1]['confidence'],
            'candidates': 4,
            'source': 'embedded',
            'error': None,
        }
        assert self.results[2]['amount'] == 0
        assert self.results[2]['error'] == "Could not load image"

    def test_results_sheet(self, tmp_path):
        """Test that confirmed rows come before rows needing review."""
        output = tmp_path / "out" / "scan_results.xlsx"

        ExcelExporter(output).export_results(self.results, self.queue.items)

        ws = load_workbook(output)["Scan Results"]
        rows = [row for row in ws.iter_rows(min_row=4, values_only=True) if row[0]]
        assert [row[0] for row in rows] == ["good.pdf", "unsure.jpg", "broken.jpg"]
        assert rows[0][1] == 51.5
        assert rows[0][5] == "OK"
        assert rows[1][1] is None
        assert rows[1][5] == "REVIEW"
        assert rows[1][7] == "40.00, 12.50"

    def test_summary_section(self, tmp_path):
        output = tmp_path / "scan_results.xlsx"

        ExcelExporter(output).export_results(self.results, self.queue.items, include_summary=True)

        ws = load_workbook(output)["Scan Results"]
        values = {row[0]: row[1] for row in ws.iter_rows(values_only=True) if row[0]}
        assert values["Receipts Scanned:"] == 3
        assert values["Totals Found:"] == 1
        assert values["Sum of Totals:"] == 51.5
        assert values["ocr"] == 2
        assert values["embedded"] == 1
