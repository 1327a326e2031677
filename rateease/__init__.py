"""
RateEase - Source Package

Property rate and business operating permit (BOP) billing administration
for a local assembly.

DESIGN PRINCIPLES:
1. Spreadsheets are the source of truth for record shape
2. Bills are immutable snapshots
3. Every user action is logged
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "RateEase Team"
