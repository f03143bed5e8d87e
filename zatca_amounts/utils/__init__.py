"""ZATCA Amount Validator - Utilities Package"""

from zatca_amounts.utils.decorators import (
    audit_log,
    measure_performance,
    performance_context
)

__all__ = [
    'audit_log',
    'measure_performance',
    'performance_context',
]
