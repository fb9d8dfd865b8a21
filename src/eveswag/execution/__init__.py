"""Execution layer -- health gating, binding, retries and transports.

    models.py     RequestDescriptor, EsiResponse
    health.py     HealthMonitor, HealthStatus
    binding.py    bind_request(), normalize_scopes()
    lockout.py    ErrorLimitLockout
    retry.py      LinearBackoff, classify_failure()
    transport.py  ResilientTransport, HttpxTransport
    executor.py   CallExecutor, StatusTolerance
"""

from eveswag.execution.binding import bind_request, encode_value, normalize_scopes
from eveswag.execution.executor import CallExecutor, StatusTolerance
from eveswag.execution.health import HealthMonitor, HealthStatus, feed_operation_id
from eveswag.execution.lockout import ErrorLimitLockout
from eveswag.execution.models import EsiResponse, RequestDescriptor
from eveswag.execution.retry import FailureClass, LinearBackoff, classify_failure
from eveswag.execution.transport import HttpxTransport, ResilientTransport

__all__ = [
    "bind_request",
    "encode_value",
    "normalize_scopes",
    "CallExecutor",
    "StatusTolerance",
    "HealthMonitor",
    "HealthStatus",
    "feed_operation_id",
    "ErrorLimitLockout",
    "EsiResponse",
    "RequestDescriptor",
    "FailureClass",
    "LinearBackoff",
    "classify_failure",
    "HttpxTransport",
    "ResilientTransport",
]
