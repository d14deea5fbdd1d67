# src/tessbridge/variables.py
from __future__ import annotations

import logging
from typing import List, Mapping

from .engine.base import Handle, RecognitionEngine
from .exceptions import VariableError

logger = logging.getLogger("tessbridge")


def propagate_variables(engine: RecognitionEngine, handle: Handle,
                        variables: Mapping[str, str], strict: bool = False) -> List[str]:
    """
    Push every key/value pair into an initialized handle.

    A key the engine rejects is logged and skipped; the remaining keys are still
    applied. Returns the rejected keys. With strict=True a non-empty rejection
    list raises VariableError once every key has been tried.
    """
    rejected: List[str] = []
    for key, value in variables.items():
        if not engine.set_variable(handle, key, value):
            logger.warning("Engine rejected variable, %s=%s", key, value)
            rejected.append(key)

    if rejected and strict:
        raise VariableError(rejected)
    return rejected
