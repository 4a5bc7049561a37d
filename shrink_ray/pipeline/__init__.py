"""
This package contains the batch pipeline of shrink-ray.

The pipeline drives a whole run: it owns the shared caches, the interrupt
channel and the statistics, converts the inputs one after another, and turns
each outcome into a report event and, finally, an exit code.
"""
