"""Rate calculation core.

Modules:
- arithmetic: restricted Decimal arithmetic evaluator
- formulas: formula slots and the never-raising formula evaluator
- numeric: lenient parsing of operator input
- engine: live fee calculations and the sandbox preview
"""
