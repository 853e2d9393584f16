#!/usr/bin/env python3
"""BuySoft maintenance commands.

Usage:
  python scripts/manage.py create-admin --email admin@example.com --password strongpass [--name Admin]
  python scripts/manage.py ensure-platforms
  python scripts/manage.py unlock --email admin@example.com

Reads DATABASE_URL and SECRET_KEY from the environment (or .env), like the server.
"""
from __future__ import annotations

from buysoft.cli import main

if __name__ == "__main__":
    main()
