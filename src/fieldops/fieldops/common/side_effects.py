from __future__ import annotations

import logging
from typing import Callable

from ..core.exceptions import DownstreamError

logger = logging.getLogger(__name__)


def best_effort(what: str, action: Callable[[], None]) -> bool:
    """Run a notification/audit side effect; log and swallow its failure.

    The primary mutation has already been committed when this runs, so a
    failure here is reported as a ``DownstreamError`` in the log only.
    """
    try:
        action()
        return True
    except DownstreamError as e:
        logger.warning("%s failed: %s", what, e.message)
    except Exception as e:
        err = DownstreamError(f"{what} failed: {e}")
        logger.warning(err.message, exc_info=True)
    return False
