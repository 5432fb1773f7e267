"""Comparison exports.

Key exports:
    comparison_to_csv()        — CSV text of the comparison matrix
    generate_comparison_pdf()  — Landscape PDF with best-price highlighting
"""
