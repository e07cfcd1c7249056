"""Derived friendship graph cache."""
