"""Spec layer -- Swagger document to compiled, categorised operations.

    models.py      ParameterSpec, OperationDescriptor, SwaggerDocument
    normalizer.py  normalize_spec(): document → NormalizedSpec
    compiler.py    compile_operations(): NormalizedSpec → CompiledSpec
"""

from eveswag.spec.compiler import (
    EMPTY_SPEC,
    CompiledSpec,
    ListingEntry,
    OperationInvoker,
    compile_operations,
)
from eveswag.spec.models import (
    NormalizedSpec,
    OperationDescriptor,
    ParameterLocation,
    ParameterSpec,
    SwaggerDocument,
)
from eveswag.spec.normalizer import normalize_spec

__all__ = [
    "EMPTY_SPEC",
    "CompiledSpec",
    "ListingEntry",
    "OperationInvoker",
    "compile_operations",
    "NormalizedSpec",
    "OperationDescriptor",
    "ParameterLocation",
    "ParameterSpec",
    "SwaggerDocument",
    "normalize_spec",
]
