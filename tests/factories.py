# tests/factories.py

from __future__ import annotations

from datetime import date

# A Monday; every service under test sees this as "today"
TODAY = date(2026, 3, 2)
