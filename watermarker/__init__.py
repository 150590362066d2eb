"""
watermarker - blend a watermark image into a base image, once or as a grid.
"""

__version__ = "0.1.0"
