#!/usr/bin/env python3
"""
TREC 20 Contract Validator — Entry Point
=========================================

Reviews a TREC 20 contract PDF and prints a compliance report.

Usage:
    python main.py                          # Built-in demo (scanned contract, canned OCR text)
    python main.py contract.pdf             # Review a fillable PDF
    OCR_ENABLED=1 python main.py scan.pdf   # Review a scanned PDF with Tesseract
    LOG_LEVEL=INFO python main.py ...       # Show pipeline logging
"""

from __future__ import annotations

import argparse
import io
import logging
import os
import sys
from pathlib import Path

from pypdf import PdfWriter

from contract_validator.config import load_settings
from contract_validator.exceptions import ContractCheckError
from contract_validator.models import ComplianceReport, Contract, Severity
from contract_validator.money import format_cents
from contract_validator.ocr import Recognizer, StaticTextRecognizer, TesseractRecognizer
from contract_validator.pipeline import ContractReviewPipeline

# ─── The Demo OCR Output ────────────────────────────────────────────

SAMPLE_OCR_TEXT = """\
TREC No. 20-18
Effective: 01/03/2025
ONE TO FOUR FAMILY RESIDENTIAL CONTRACT (RESALE)

Buyer: Jane Buyer
Seller: John Seller
Property: 123 Main St, Houston, TX 77002

Total Price: $300,000.00
Option Fee: $200.00
Option Period: 7 days
Closing Date: 02/01/2025

Special Provisions: Seller to leave fridge. Time is of the essence.

Page 1 of 12
"""


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72

_SEVERITY_COLORS = {
    Severity.CRITICAL: _RED,
    Severity.HIGH: _RED,
    Severity.MEDIUM: _YELLOW,
    Severity.LOW: _CYAN,
    Severity.INFO: _DIM,
}


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _blank_pdf() -> bytes:
    """A one-page PDF with no form fields, standing in for a scan."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _print_contract(contract: Contract) -> None:
    address = contract.property_address
    price = contract.sales_price
    print(f"  Buyer(s):    {', '.join(contract.buyer_names)}")
    print(f"  Seller(s):   {', '.join(contract.seller_names)}")
    print(f"  Property:    {address.street}, {address.city}, {address.state} {address.zip}")
    print(f"  Price:       {format_cents(price.total_cents)}")
    if price.cash_portion_cents is not None:
        print(f"    Cash:      {format_cents(price.cash_portion_cents)}")
    if price.financed_portion_cents is not None:
        print(f"    Financed:  {format_cents(price.financed_portion_cents)}")
    if contract.financing_type:
        print(f"  Financing:   {contract.financing_type.value}")
    print(f"  Effective:   {contract.effective_date or '—'}")
    print(f"  Closing:     {contract.closing_date or '—'}")
    if contract.option_fee_cents is not None:
        days = contract.option_period_days if contract.option_period_days is not None else "?"
        print(f"  Option:      {format_cents(contract.option_fee_cents)} for {days} day(s)")
    print(f"  Form:        TREC {contract.form_version or '(unknown version)'}")


def _print_issues(report: ComplianceReport) -> None:
    if not report.issues:
        return
    print()
    for severity in Severity:
        group = [issue for issue in report.issues if issue.severity == severity]
        if not group:
            continue
        color = _SEVERITY_COLORS[severity]
        print(f"  {color}{_BOLD}{severity.value.upper()} ({len(group)}){_RESET}")
        for issue in group:
            print(f"    {color}[{issue.id}]{_RESET} {issue.message}")
            if issue.cite:
                print(f"      {_DIM}{issue.cite}{_RESET}")
            snapshot = (issue.data or {}).get("debug")
            if snapshot:
                for key, value in snapshot.items():
                    print(f"      {_DIM}debug {key} = {value!r}{_RESET}")
        print()


def _print_provisions(report: ComplianceReport) -> None:
    provisions = report.provisions
    if provisions is None:
        return
    print(f"  {_BOLD}Special provisions:{_RESET} {provisions.classification.value}")
    for reason in provisions.reasons:
        print(f"    - {reason}")
    if provisions.summary:
        print(f"    {_DIM}{provisions.summary}{_RESET}")
    print()


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(report: ComplianceReport) -> int:
    """Pretty-print the compliance report with ANSI color codes.

    Returns:
        0 if the contract is compliant, 1 otherwise.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  TREC 20 CONTRACT REVIEW{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Audit Hash:  {_DIM}{report.document_hash[:16]}...{_RESET}")
    print(f"  Extraction:  {report.extraction.mode.value}")
    print(f"{'─' * _WIDTH}")
    _print_contract(report.contract)
    print(f"{'─' * _WIDTH}")

    _print_issues(report)
    _print_provisions(report)

    counts = report.severity_counts
    print(f"{'=' * _WIDTH}")
    if report.is_compliant:
        print(f"  {_GREEN}{_BOLD}NO BLOCKING ISSUES  --  {len(report.issues)} note(s){_RESET}")
    else:
        blocking = counts["critical"] + counts["high"]
        print(f"  {_RED}{_BOLD}NEEDS ATTENTION  --  {blocking} blocking issue(s){_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 0 if report.is_compliant else 1


# ─── Main ────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    """Review one contract (or the built-in demo) and print the report."""
    parser = argparse.ArgumentParser(description="Review a TREC 20 contract PDF.")
    parser.add_argument("pdf", nargs="?", type=Path, help="contract PDF (omit for the demo)")
    parser.add_argument("--debug", action="store_true", help="attach rule debug snapshots")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()

    recognizer: Recognizer | None
    if args.pdf is None:
        print("\n  Running demo: scanned TREC 20 with canned OCR text...")
        data = _blank_pdf()
        recognizer = StaticTextRecognizer(SAMPLE_OCR_TEXT)
    else:
        data = args.pdf.read_bytes()
        recognizer = (
            TesseractRecognizer(settings.ocr_language, settings.ocr_resolution)
            if settings.ocr_enabled
            else None
        )

    pipeline = ContractReviewPipeline(recognizer=recognizer, settings=settings)
    try:
        report = pipeline.run(data, include_debug=args.debug)
    except ContractCheckError as exc:
        print(f"\n  {_RED}{_BOLD}[{exc.code}]{_RESET} {exc.message}\n", file=sys.stderr)
        return 2

    return print_report(report)


if __name__ == "__main__":
    sys.exit(main())
