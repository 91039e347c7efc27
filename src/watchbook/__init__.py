# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
WatchBook
---------

A Python-based inventory and CRM application for luxury-watch resellers.
Watches are tracked through their lifecycle (incoming, received, servicing,
in stock, sold), buyers, sellers and dealers are kept as clients, and
business expenses are logged.

Main capabilities:
- a SQLite record store for watches, clients and expenses,
- a single fee composition rule applied by every view,
- a period filter on (month, year) selections,
- a metrics engine: revenue, COGS, fees, gross / net profit, margin, ROI,
  hold time, profit per day, brand breakdown, top / bottom performers,
- period-over-period comparison,
- monthly profit breakdown and quick deal estimates,
- a command-line interface with table and CSV output.

WatchBook separates computation (engine), configuration (TOML), storage
(SQLite) and presentation (CLI).


Version: 0.1.0

Usage:
    python -m watchbook.cli --help
"""

__all__ = ["engine", "comparison", "periods", "fees", "services", "views"]

__version__ = "0.1.0"
