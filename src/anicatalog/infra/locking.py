"""
Process-wide write lock for series state.

Series placement and series merging both read and rewrite series aggregates.
Holding this lock around each of those units keeps them from interleaving
inside one process; cross-process exclusion is an operational rule (pause the
importer while running a merge pass).
"""

from __future__ import annotations

import threading

catalog_write_lock = threading.RLock()
