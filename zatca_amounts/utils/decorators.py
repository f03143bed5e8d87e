"""
Decorators for audit logging and performance monitoring of validation calls.
"""
import functools
import logging
import time
from collections.abc import Mapping
from datetime import datetime
from typing import Callable
from contextlib import contextmanager

# Configure audit logger separately from main app logger
audit_logger = logging.getLogger('zatca.audit')
perf_logger = logging.getLogger('zatca.performance')


def _document_id(args: tuple, kwargs: dict) -> str:
    """Best-effort invoice id from the call arguments"""
    candidates = list(args) + [kwargs.get('document')]
    if kwargs.get('document_id'):
        return str(kwargs['document_id'])
    for candidate in candidates:
        if isinstance(candidate, Mapping):
            doc_id = candidate.get('id')
        else:
            doc_id = getattr(candidate, 'id', None)
        if doc_id:
            return str(doc_id)
    return "N/A"


def audit_log(func: Callable) -> Callable:
    """
    Decorator that logs every validation call and its outcome.
    Failures are logged and re-raised unchanged.

    Usage:
        @audit_log
        def validate(self, document):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        func_name = func.__qualname__
        invoice_id = _document_id(args, kwargs)

        audit_logger.info(
            f"CALL | {func_name} | Invoice: {invoice_id} | "
            f"Timestamp: {datetime.now().isoformat()}"
        )

        try:
            result = func(*args, **kwargs)

            if hasattr(result, 'is_compliant'):
                status = "COMPLIANT" if result.is_compliant else "NON-COMPLIANT"
            else:
                status = "PASSED"
            audit_logger.info(
                f"SUCCESS | {func_name} | Invoice: {invoice_id} | "
                f"Status: {status}"
            )

            return result

        except Exception as e:
            audit_logger.error(
                f"FAILURE | {func_name} | Invoice: {invoice_id} | "
                f"Error: {str(e)}"
            )
            raise

    return wrapper


def measure_performance(func: Callable) -> Callable:
    """
    Decorator to measure and log function execution time.
    Results exposing processing_time_ms get the elapsed time attached.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)

            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if hasattr(result, 'processing_time_ms'):
                result.processing_time_ms = elapsed_ms

            perf_logger.debug(
                f"{func.__qualname__} completed in {elapsed_ms:.2f}ms"
            )

            return result

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            perf_logger.warning(
                f"{func.__qualname__} failed after {elapsed_ms:.2f}ms: {str(e)}"
            )
            raise

    return wrapper


@contextmanager
def performance_context(operation_name: str):
    """
    Context manager for measuring code block performance.

    Usage:
        with performance_context("directory load"):
            documents = list(invoice_generator(path))
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = (time.perf_counter() - start) * 1000
        perf_logger.debug(f"{operation_name}: {elapsed:.2f}ms")
