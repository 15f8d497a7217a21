from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

_initialized = False
_init_lock = threading.Lock()


def require_pymupdf() -> Any:
    try:
        import fitz  # type: ignore
    except Exception as exc:
        raise RuntimeError("PyMuPDF is required. Install with: pip install pymupdf") from exc
    return fitz


def ensure_initialized() -> bool:
    """One-time, process-wide PDF library setup. Returns True only for the call that did it."""
    global _initialized
    if _initialized:
        return False
    with _init_lock:
        if _initialized:
            return False
        fitz = require_pymupdf()
        # Errors are classified and surfaced by the decoder; keep MuPDF off stderr.
        fitz.TOOLS.mupdf_display_errors(False)
        _initialized = True
        logger.debug("PyMuPDF %s initialized", getattr(fitz, "VersionBind", "?"))
        return True


def is_initialized() -> bool:
    return _initialized
