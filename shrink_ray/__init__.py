"""
shrink-ray: shrink media files in place.

Each input is identified, converted by an external compressor (GraphicsMagick
for images, FFmpeg for videos) and swapped into place. Converted files carry
a `shrink-ray/<version>` marker so they are never converted twice.
"""

PRODUCT_NAME = "shrink-ray"
__version__ = "0.4.0"
