"""ZATCA Amount Validator - Processing Package"""

from zatca_amounts.processing.batch import BatchProcessor
from zatca_amounts.processing.concurrent import ConcurrentValidator

__all__ = [
    'BatchProcessor',
    'ConcurrentValidator',
]
