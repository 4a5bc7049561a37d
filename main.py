"""
Main entry point for shrink-ray when run from a source checkout.

The installed `shrink-ray` console script calls the same `run` function.
"""
import sys

from shrink_ray.app import run


if __name__ == "__main__":
    sys.exit(run())
