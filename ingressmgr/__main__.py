"""Entry point for `python -m ingressmgr`.

Configuration comes entirely from INGRESSMGR_* environment variables, e.g.:

    INGRESSMGR_NAMESPACE=shop INGRESSMGR_WORKERS=2 python -m ingressmgr
"""

from __future__ import annotations

from ingressmgr.app import run

run()
