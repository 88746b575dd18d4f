"""
Burnrate - Source Package

A personal monthly-burn tracker: log recurring and one-time expenses,
compare the normalized monthly total against a budget, and ask an AI
advisor for plans and briefings within a usage-credit allowance.

DESIGN PRINCIPLES:
1. The finance core is pure - no storage, no network, no exceptions
2. Bad data degrades to zero, it never crashes the dashboard
3. Every mutation is validated before it is stored
4. Every significant action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Burnrate Team"
