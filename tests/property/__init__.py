"""
Property-based tests for CPEKit.

This package contains Hypothesis-based property tests that verify
invariants of date parsing, timeline reconciliation and credit rounding
across random inputs.
"""
