"""
Configuration package for shrink-ray.

Static settings live here so the rest of the application does not hard-code
tool names, argv fragments or timing constants:

- common.py: logging format, timing, temp naming and the optional user YAML file.
- tools.py: compressor names, output extensions and argv fragments.
"""
