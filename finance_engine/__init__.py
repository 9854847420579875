"""
Finance Engine - Source Package

The recurrence and financial projection core of a personal-finance
tracker: recurring-expense expansion, instance generation, planning math
and budget variance scoring.

DESIGN PRINCIPLES:
1. Pure computation: values in, values out
2. Every loop is bounded by a fixed safety cap
3. Zero rates and zero durations are explicit branches
4. Invalid input fails fast; nothing is silently clamped
5. No hidden calendar or timezone state
"""

__version__ = "1.0.0"
__author__ = "Finance Engine Team"
