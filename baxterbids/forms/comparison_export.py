"""
Vendor Quote Comparison Export
- CSV text for spreadsheets
- Landscape PDF: shared column grid with side borders, vendor columns
  sized from the remaining width, best-price cells shaded, totals row,
  summary + markup tiers below the table

Both take the plain dict produced by quotes.comparison.build_quote_comparison.
"""
import csv
import io
import logging
import os
from datetime import datetime

from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import landscape, letter
from reportlab.pdfgen import canvas

log = logging.getLogger("baxterbids.export")

HEADER_BG = HexColor("#b8c6e0")
BEST_BG = HexColor("#dff3e4")
BORDER_CLR = HexColor("#333333")
ROW_LINE_CLR = HexColor("#bbbbbb")
MUTED = HexColor("#777777")
PAD = 4
ABSENT = "—"

# Fixed leading columns as fractions of table width; vendors share the rest
LEAD_WIDTHS = [0.13, 0.27, 0.06]
LEAD_LABELS = ["PART #", "DESCRIPTION", "QTY"]


def _fmt(n) -> str:
    if n is None:
        return ABSENT
    return f"${n:,.2f}"


def _cell(row: dict, vendor_name: str):
    for cell in row.get("vendors", []):
        if cell.get("vendor_name") == vendor_name:
            return cell
    return None


def _totals_by_vendor(comparison: dict) -> dict:
    totals = {}
    for t in comparison.get("totals", []):
        totals.setdefault(t["vendor_name"], t)
    return totals


# ═══════════════════════════════════════════════════════════════
# CSV
# ═══════════════════════════════════════════════════════════════

def comparison_to_csv(comparison: dict) -> str:
    """Comparison matrix as CSV text. Best unit prices carry a trailing " *"."""
    vendors = comparison.get("vendors", [])
    out = io.StringIO()
    w = csv.writer(out, lineterminator="\n")

    header = ["Part Number", "Description", "Qty"]
    for v in vendors:
        header += [f"{v} Unit", f"{v} Extended"]
    w.writerow(header)

    for row in comparison.get("rows", []):
        line = [row.get("part_number", ""), row.get("description", ""), row.get("qty", 0)]
        for v in vendors:
            cell = _cell(row, v)
            if cell is None:
                line += [ABSENT, ABSENT]
                continue
            unit = _fmt(cell.get("unit_price"))
            if cell.get("is_best_price"):
                unit += " *"
            line += [unit, _fmt(cell.get("extended_price"))]
        w.writerow(line)

    totals = _totals_by_vendor(comparison)
    total_line = ["Total", "", ""]
    for v in vendors:
        t = totals.get(v)
        total_line += ["", _fmt(t["total"]) if t else ABSENT]
    w.writerow(total_line)

    summary = comparison.get("summary", {})
    w.writerow([])
    w.writerow(["Lowest", _fmt(summary.get("lowest", 0))])
    w.writerow(["Highest", _fmt(summary.get("highest", 0))])
    w.writerow(["Average", _fmt(summary.get("average", 0))])
    for rec in comparison.get("recommendation", []):
        w.writerow([f"Bid @ {rec['markup_pct'] * 100:.0f}% markup", _fmt(rec["price"])])
    return out.getvalue()


# ═══════════════════════════════════════════════════════════════
# PDF
# ═══════════════════════════════════════════════════════════════

def _col_edges(lm, tw, n_vendors):
    lead = [tw * p for p in LEAD_WIDTHS]
    rest = tw - sum(lead)
    vendor_w = rest / n_vendors if n_vendors else 0
    widths = lead + [vendor_w] * n_vendors
    edges = []; x = lm
    for wd in widths:
        edges.append(x); x += wd
    return edges, widths


def _wrap(text, n=50):
    words, lines, cur = text.split(), [], ""
    for word in words:
        t = cur + (" " if cur else "") + word
        if len(t) > n and cur:
            lines.append(cur); cur = word
        else:
            cur = t
    if cur:
        lines.append(cur)
    return lines or [""]


def _fit(c, text, width, font, size):
    """Trim text with an ellipsis so it fits a cell."""
    if c.stringWidth(text, font, size) <= width - 2 * PAD:
        return text
    while text and c.stringWidth(text + "…", font, size) > width - 2 * PAD:
        text = text[:-1]
    return text + "…"


def _draw_cell_text(c, text, x, w, y_mid, align="C", font="Helvetica", size=9):
    """Draw single-line text in a cell at vertical center."""
    c.setFont(font, size)
    text = _fit(c, text, w, font, size)
    if align == "L":   c.drawString(x + PAD, y_mid, text)
    elif align == "R": c.drawRightString(x + w - PAD, y_mid, text)
    else:              c.drawCentredString(x + w/2, y_mid, text)


def _draw_col_borders(c, edges, widths, y_top, y_bot, color=BORDER_CLR, width=0.3):
    """Draw vertical column dividers (side borders)."""
    c.setStrokeColor(color); c.setLineWidth(width)
    c.line(edges[0], y_top, edges[0], y_bot)
    rm = edges[-1] + widths[-1]
    c.line(rm, y_top, rm, y_bot)
    for i in range(1, len(edges)):
        c.line(edges[i], y_top, edges[i], y_bot)


def generate_comparison_pdf(output_path, comparison, bid_id="", bid_title="",
                            generated_at=None):
    """
    Draw the comparison matrix to output_path (a file path, or a binary
    file-like object such as io.BytesIO).
    Returns {"ok": True, "path": output_path (None for file-likes), "pages": n}.
    """
    vendors = comparison.get("vendors", [])
    rows = comparison.get("rows", [])
    summary = comparison.get("summary", {})
    totals = _totals_by_vendor(comparison)
    generated_at = generated_at or datetime.now()

    is_path = isinstance(output_path, str)
    if is_path:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    c = canvas.Canvas(output_path, pagesize=landscape(letter))
    W, H = landscape(letter); LM, RM = 36, W - 36; TW = RM - LM
    labels = LEAD_LABELS + [v.upper() for v in vendors]
    edges, widths = _col_edges(LM, TW, len(vendors))
    desc_chars = int(widths[1] / 4.6)

    # ─── Title block ─────────────────────────────────────────
    y = H - 45
    c.setFillColor(black); c.setFont("Helvetica-Bold", 20)
    c.drawString(LM, y, "VENDOR QUOTE COMPARISON")
    c.setFont("Helvetica", 10)
    c.drawRightString(RM, y, generated_at.strftime("%b %d, %Y"))
    y -= 18
    c.setFont("Helvetica-Bold", 11)
    c.drawString(LM, y, f"Bid {bid_id}" + (f" — {bid_title}" if bid_title else ""))
    y -= 14
    c.setFont("Helvetica", 9); c.setFillColor(MUTED)
    c.drawString(LM, y, f"{len(rows)} line items across {len(vendors)} "
                        f"vendor{'s' if len(vendors) != 1 else ''}")
    c.setFillColor(black)
    y -= 14

    def _draw_table_header(y_pos):
        hh = 20; hy = y_pos - hh
        c.setFillColor(HEADER_BG); c.rect(LM, hy, TW, hh, fill=1, stroke=0)
        c.setStrokeColor(black); c.setLineWidth(0.7)
        c.line(LM, hy, RM, hy); c.line(LM, hy + hh, RM, hy + hh)
        _draw_col_borders(c, edges, widths, hy + hh, hy, BORDER_CLR, 0.5)
        c.setFillColor(black)
        for i, label in enumerate(labels):
            _draw_cell_text(c, label, edges[i], widths[i], hy + 6, "C", "Helvetica-Bold", 8)
        return hy

    y = _draw_table_header(y)
    table_top = y + 20
    page_num = 1

    # ─── Data rows ────────────────────────────────────────────
    for row in rows:
        dl = _wrap((row.get("description") or "").replace("\n", " "), desc_chars)
        row_h = max(26, len(dl) * 11 + 10)
        ry = y - row_h

        # Page break
        if ry < 60:
            _draw_col_borders(c, edges, widths, table_top, y, BORDER_CLR, 0.5)
            c.setFont("Helvetica", 8); c.setFillColor(MUTED)
            c.drawRightString(RM, 25, f"Page {page_num}")
            c.showPage(); page_num += 1; y = H - 40
            y = _draw_table_header(y); table_top = y + 20
            ry = y - row_h

        y_mid = ry + row_h/2 - 3
        c.setFillColor(black)
        _draw_cell_text(c, row.get("part_number") or "", edges[0], widths[0], y_mid, "L")
        c.setFont("Helvetica", 8)
        ty = y - 10
        for ln in dl:
            c.drawString(edges[1] + PAD, ty, ln); ty -= 11
        _draw_cell_text(c, f"{row.get('qty', 0):g}" if isinstance(row.get("qty"), (int, float))
                        else str(row.get("qty", "")), edges[2], widths[2], y_mid, "C")

        for i, vendor in enumerate(vendors):
            x, wd = edges[3 + i], widths[3 + i]
            cell = _cell(row, vendor)
            if cell is None:
                c.setFillColor(MUTED)
                _draw_cell_text(c, ABSENT, x, wd, y_mid, "C")
                c.setFillColor(black)
                continue
            if cell.get("is_best_price"):
                c.setFillColor(BEST_BG); c.rect(x, ry, wd, row_h, fill=1, stroke=0)
                c.setFillColor(black)
            font = "Helvetica-Bold" if cell.get("is_best_price") else "Helvetica"
            _draw_cell_text(c, _fmt(cell.get("unit_price")), x, wd, y_mid + 5, "R", font, 9)
            c.setFillColor(MUTED)
            _draw_cell_text(c, f"ext {_fmt(cell.get('extended_price'))}",
                            x, wd, y_mid - 6, "R", "Helvetica", 7)
            c.setFillColor(black)

        c.setStrokeColor(ROW_LINE_CLR); c.setLineWidth(0.3)
        c.line(LM, ry, RM, ry)
        y = ry

    # ─── Totals row ───────────────────────────────────────────
    trh = 22; ty = y - trh
    c.setFillColor(HEADER_BG); c.rect(LM, ty, TW, trh, fill=1, stroke=0)
    c.setFillColor(black)
    _draw_cell_text(c, "TOTAL", edges[0], widths[0], ty + 7, "L", "Helvetica-Bold", 9)
    for i, vendor in enumerate(vendors):
        t = totals.get(vendor)
        _draw_cell_text(c, _fmt(t["total"]) if t else ABSENT,
                        edges[3 + i], widths[3 + i], ty + 7, "R", "Helvetica-Bold", 9)
    y = ty
    _draw_col_borders(c, edges, widths, table_top, y, BORDER_CLR, 0.5)
    c.setStrokeColor(black); c.setLineWidth(0.8)
    c.line(LM, y, RM, y)

    # ─── Summary + markup tiers ───────────────────────────────
    lines = [
        ("Lowest quote", _fmt(summary.get("lowest", 0))),
        ("Highest quote", _fmt(summary.get("highest", 0))),
        ("Average", _fmt(summary.get("average", 0))),
    ]
    for rec in comparison.get("recommendation", []):
        lines.append((f"Bid @ {rec['markup_pct'] * 100:.0f}% markup", _fmt(rec["price"])))

    if y - 16 * (len(lines) + 1) < 40:
        c.setFont("Helvetica", 8); c.setFillColor(MUTED)
        c.drawRightString(RM, 25, f"Page {page_num}")
        c.showPage(); page_num += 1; y = H - 40

    y -= 20
    for label, value in lines:
        c.setFillColor(black)
        c.setFont("Helvetica-Bold", 9); c.drawString(LM, y, label)
        c.setFont("Helvetica", 10); c.drawRightString(LM + 240, y, value)
        y -= 16

    c.setFont("Helvetica", 8); c.setFillColor(MUTED)
    c.drawRightString(RM, 25, f"Page {page_num}")
    c.save()
    log.info("Comparison PDF: %s (%d rows, %d vendors, %d pages)",
             output_path if is_path else "<memory>", len(rows), len(vendors), page_num,
             extra={"bid_id": bid_id})
    return {"ok": True, "path": output_path if is_path else None, "pages": page_num}
