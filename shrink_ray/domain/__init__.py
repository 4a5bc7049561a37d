"""
Core domain models of shrink-ray.

Modules:
    exceptions.py: The exception hierarchy the pipeline dispatches on.
    marker.py: The `shrink-ray/<version>` idempotency marker codec.
    statistics.py: `Delta` size comparisons and run-wide `Statistics`.
    tools.py: The `ImageTool | VideoTool` variants and their argv contracts.
    job.py: `ConversionJob` and the output-path policy.
"""
