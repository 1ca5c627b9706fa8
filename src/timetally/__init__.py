"""
TimeTally

Sequential task timer: named lists of timed tasks run one after another,
with beep and spoken notifications and persisted state.
"""

__version__ = "0.1.0"
