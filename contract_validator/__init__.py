"""
Contract Compliance Validator — rule-based review of TREC 20 purchase contracts.

Architecture: Dual-mode extraction (form fields / OCR fallback) → Normalization → Rules
Philosophy:  Extraction may be fuzzy. Normalization and rules never are.
"""

__version__ = "1.0.0"
