#!/usr/bin/env python3
"""
JSON serialization utilities for handling NumPy types and problematic float values.

Used to build stable guide appearance keys and to write composition metadata
next to rendered images.
"""

import json
import math
import logging
import numpy as np
from typing import Any


def convert_for_json_serialization(obj: Any) -> Any:
    """
    Convert numpy types and problematic float values to JSON-serializable types.

    Handles:
    - NumPy integers, floats, booleans, arrays
    - NaN values (converted to null)
    - Infinity values (converted to very large numbers)
    - Nested dictionaries, lists, tuples and sets

    Args:
        obj: Object to convert

    Returns:
        JSON-serializable version of the object
    """
    if isinstance(obj, np.integer):
        return int(obj)

    elif isinstance(obj, np.floating):
        return convert_for_json_serialization(float(obj))

    elif isinstance(obj, np.bool_):
        return bool(obj)

    elif isinstance(obj, np.ndarray):
        return [convert_for_json_serialization(item) for item in obj.tolist()]

    elif isinstance(obj, float):
        if math.isnan(obj):
            return None  # Convert NaN to null
        elif math.isinf(obj):
            return 1e308 if obj > 0 else -1e308
        return obj

    elif isinstance(obj, dict):
        # Keys must be strings for sort_keys to work on mixed key types
        return {str(convert_for_json_serialization(key)): convert_for_json_serialization(value)
                for key, value in obj.items()}

    elif isinstance(obj, (list, tuple)):
        return [convert_for_json_serialization(item) for item in obj]

    elif isinstance(obj, (set, frozenset)):
        return sorted(convert_for_json_serialization(item) for item in obj)

    else:
        return obj


def safe_json_dump(obj: Any, file_path: str, logger: logging.Logger = None, **kwargs) -> bool:
    """
    Safely dump an object to JSON with robust error handling.

    Args:
        obj: Object to serialize
        file_path: Path to save JSON file
        logger: Logger instance for error reporting
        **kwargs: Additional arguments passed to json.dump()

    Returns:
        True if successful, False if the object could not be serialized or written
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    converted_obj = convert_for_json_serialization(obj)

    try:
        payload = json.dumps(converted_obj, indent=kwargs.pop('indent', 2), **kwargs)
    except (TypeError, ValueError) as e:
        logger.error(f"JSON serialization failed: {e}")
        return False

    try:
        with open(file_path, "w") as f:
            f.write(payload)
        return True
    except OSError as e:
        logger.error(f"Failed to write JSON file {file_path}: {e}")
        return False
