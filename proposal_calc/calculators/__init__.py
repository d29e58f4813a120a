"""
Deterministic quantity-and-pricing calculators.

Pure Python math over a read-only catalog snapshot.
Given a physical measurement and the priced compositions mapped to a proposal
type, produce an exact bill of materials with quantities, waste, whole-unit
roundups and totals.
"""
