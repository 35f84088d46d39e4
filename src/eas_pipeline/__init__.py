"""
EAS Submission Pipeline.

Validates provider-submitted Earnings Adjustment Statement (EAS) files
against business rules and the provider's funding contracts, and builds
the valid rows into submission records keyed by collection period.

Basic usage:
    >>> import asyncio
    >>> from eas_pipeline.engine.pipeline import create_pipeline
    >>> from eas_pipeline.engine.loader import FileReferenceData
    >>>
    >>> pipeline = create_pipeline(reference_data=FileReferenceData("/path/to/reference"))
    >>> with open("EASDATA-10023139-20190201-120000.csv", newline="") as stream:
    ...     result = asyncio.run(pipeline.run(stream, context))
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
