"""
Utilities package for shrink-ray.

Helper modules that are not specific to any one part of the conversion flow:

    - temp_names.py: allocates collision-free temporary file names.
    - format_utils.py: formats sizes, ratios and commands for display.
"""
