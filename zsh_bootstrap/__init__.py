"""zsh workstation bootstrap (Python-first, check-driven).

Core design goals:
- Idempotent checks: test live state, apply only the missing delta
- Explicit ordering between checks that depend on each other
- Per-check failures are reported, never fatal
- Platform differences live in one capability table
- Centralized logging
"""

__all__ = []
