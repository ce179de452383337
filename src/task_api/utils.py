from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .errors import StoreError, TaskError

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def error_envelope(message: str) -> Dict[str, Any]:
    """
    Build the failure envelope shared by every error response.

    Returns:
        Dict with keys: success (always False), error.
    """
    return {"success": False, "error": message}


# PUBLIC_INTERFACE
@contextmanager
def handler_boundary(failure_message: str) -> Iterator[None]:
    """
    Convert store and unexpected failures inside an HTTP handler into a
    StoreError carrying only ``failure_message``.

    ValidationError, NotFound, Conflict and other client-facing TaskErrors pass
    through untouched. The original exception is logged with its traceback and
    kept as ``__cause__``; its text never reaches the client.
    """
    try:
        yield
    except StoreError as exc:
        logger.error("%s: %s", failure_message, exc.message, exc_info=exc)
        raise StoreError(failure_message) from exc
    except TaskError:
        raise
    except Exception as exc:
        logger.exception(failure_message)
        raise StoreError(failure_message) from exc
