"""
OpenAPI Partitioner - Split an OpenAPI specification into self-contained documents.

This package provides both CLI and SDK interfaces for partitioning an OpenAPI
specification per operation and per tag, keeping only the components each
partition references, plus an llms.txt overview.
"""

from .core import (
    COMPONENT_TYPES,
    HTTP_METHODS,
    OpenAPIPartitioner,
    OpenAPIPartitionerError,
    create_subset,
    derive_operation_id,
    find_referenced,
    partition,
)
from .flatten import dereference
from .overview import generate_llms_txt

__version__ = "1.0.0"
__author__ = "OpenAPI Partitioner Contributors"
__email__ = "support@example.com"

__all__ = [
    'COMPONENT_TYPES',
    'HTTP_METHODS',
    'OpenAPIPartitioner',
    'OpenAPIPartitionerError',
    'create_subset',
    'derive_operation_id',
    'dereference',
    'find_referenced',
    'generate_llms_txt',
    'partition',
    '__version__',
]
