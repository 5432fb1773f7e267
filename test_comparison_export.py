"""
Tests for forms/comparison_export.py: CSV text and PDF output.

    comparison_to_csv(comparison) -> str
    generate_comparison_pdf(path, comparison, bid_id=, bid_title=) -> {ok, path, pages}
"""
import csv
import io
import os

from baxterbids.forms.comparison_export import comparison_to_csv, generate_comparison_pdf
from baxterbids.quotes.comparison import build_quote_comparison
from baxterbids.quotes.models import QuoteItem, VendorQuote


def _csv_rows(text):
    return list(csv.reader(io.StringIO(text)))


# ═══════════════════════════════════════════════════════════════════════════════
# CSV
# ═══════════════════════════════════════════════════════════════════════════════

class TestComparisonCsv:

    def test_header(self, sample_quotes):
        rows = _csv_rows(comparison_to_csv(build_quote_comparison(sample_quotes)))
        assert rows[0] == ["Part Number", "Description", "Qty",
                           "Vendor A Unit", "Vendor A Extended",
                           "Vendor B Unit", "Vendor B Extended",
                           "Vendor C Unit", "Vendor C Extended"]

    def test_best_price_starred_and_absent_dashed(self, sample_quotes):
        rows = _csv_rows(comparison_to_csv(build_quote_comparison(sample_quotes)))
        p100 = rows[1]
        assert p100[0] == "P100"
        assert p100[3:5] == ["$10.00", "$20.00"]
        assert p100[5:7] == ["$9.00 *", "$18.00"]
        assert p100[7:9] == ["—", "—"]

    def test_totals_row_uses_effective_totals(self, sample_quotes):
        rows = _csv_rows(comparison_to_csv(build_quote_comparison(sample_quotes)))
        total = rows[2]
        assert total[0] == "Total"
        assert total[4] == "$25.00"
        assert total[6] == "$25.00"
        assert total[8] == "$50.00"

    def test_summary_and_markup_lines(self, sample_quotes):
        text = comparison_to_csv(build_quote_comparison(sample_quotes))
        assert "Lowest,$25.00" in text
        assert "Highest,$50.00" in text
        assert "Average,$33.33" in text
        assert "Bid @ 15% markup,$28.75" in text
        assert "Bid @ 25% markup,$31.25" in text

    def test_empty_comparison(self):
        rows = _csv_rows(comparison_to_csv(build_quote_comparison([])))
        assert rows[0] == ["Part Number", "Description", "Qty"]
        assert rows[1] == ["Total", "", ""]
        assert ["Lowest", "$0.00"] in rows


# ═══════════════════════════════════════════════════════════════════════════════
# PDF
# ═══════════════════════════════════════════════════════════════════════════════

class TestComparisonPdf:

    def test_writes_pdf(self, sample_quotes, temp_data_dir):
        path = os.path.join(temp_data_dir, "output", "cmp.pdf")
        result = generate_comparison_pdf(path, build_quote_comparison(sample_quotes),
                                         bid_id="BID-1", bid_title="Vehicle lifts")
        assert result["ok"] is True
        assert result["pages"] == 1
        assert os.path.exists(path)
        with open(path, "rb") as f:
            assert f.read(5) == b"%PDF-"

    def test_creates_missing_directory(self, sample_quotes, tmp_path):
        path = str(tmp_path / "nested" / "dir" / "cmp.pdf")
        generate_comparison_pdf(path, build_quote_comparison(sample_quotes))
        assert os.path.exists(path)

    def test_writes_to_buffer(self, sample_quotes):
        buf = io.BytesIO()
        result = generate_comparison_pdf(buf, build_quote_comparison(sample_quotes),
                                         bid_id="BID-1")
        assert result["ok"] is True
        assert result["path"] is None
        assert buf.getvalue()[:5] == b"%PDF-"

    def test_long_comparison_paginates(self, tmp_path):
        items = [QuoteItem(id=f"i{n}", line_number=n, part_number=f"P{n:03d}",
                           description="Replacement seal kit for hydraulic lift " * 2,
                           qty=n, unit_price=1.5 * n)
                 for n in range(1, 61)]
        quotes = [VendorQuote(id="q1", bid_id="B", vendor_name="Acme", items=items),
                  VendorQuote(id="q2", bid_id="B", vendor_name="Globex", items=items[:30])]
        result = generate_comparison_pdf(str(tmp_path / "long.pdf"),
                                         build_quote_comparison(quotes))
        assert result["pages"] >= 2

    def test_no_vendors(self, tmp_path):
        result = generate_comparison_pdf(str(tmp_path / "empty.pdf"),
                                         build_quote_comparison([]))
        assert result["ok"] is True
