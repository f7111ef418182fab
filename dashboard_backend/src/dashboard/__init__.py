"""
Time dashboard backend package.

- timer_engine / ticker: countdown and stopwatch state machines and their sampling trigger
- repositories / storage: the persisted task store
- main: the FastAPI app exposing both, importable as dashboard.main:app
"""

__version__ = "0.1.0"
