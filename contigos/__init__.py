"""
Contigos - Source Package

A household budget-splitting calculator for two partners who share
a joint account (Gemeinschaftskonto).

DESIGN PRINCIPLES:
1. Costs are shared in proportion to income
2. The allocation engine is a pure function over an immutable snapshot
3. Validate before writing, never write then fix
4. Every transfer figure is cross-checked by an independent control total
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Contigos Team"
