"""
rate_limit.py — Per-endpoint limits for credential endpoints
============================================================
Uses slowapi to cap login attempts per remote address, on top of the
global fixed-window gate that every request already passes through.
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
