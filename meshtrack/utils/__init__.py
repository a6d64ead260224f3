"""Utility functions for meshtrack."""

from meshtrack.utils.helpers import debounce, format_value, get_data_path, is_point_in_bounds, time_ago

__all__ = ["debounce", "format_value", "get_data_path", "is_point_in_bounds", "time_ago"]
