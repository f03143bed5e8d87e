"""
Concurrent validation processing using ThreadPoolExecutor.
All worker threads share one validator: it holds nothing but its tolerance.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional

from zatca_amounts.core.models import BatchResult, InvoiceDocument, ValidationResult
from zatca_amounts.core.money import DEFAULT_TOLERANCE, Numeric
from zatca_amounts.core.parsers import invoice_generator
from zatca_amounts.core.validators import InvoiceAmountValidator
from zatca_amounts.utils.decorators import measure_performance, performance_context


logger = logging.getLogger(__name__)


class ConcurrentValidator:
    """
    Thread pool front-end for InvoiceAmountValidator.
    """

    def __init__(self, max_workers: Optional[int] = None,
                 tolerance: Numeric = DEFAULT_TOLERANCE):
        """
        Initialize concurrent validator.

        Args:
            max_workers: Maximum number of worker threads (default: executor default)
            tolerance: Amount tolerance shared by every thread
        """
        self.max_workers = max_workers
        self.validator = InvoiceAmountValidator(tolerance)

    def validate_one(self, document: InvoiceDocument) -> ValidationResult:
        """Check a single document in aggregating mode"""
        return self.validator.collect_violations(document)

    @staticmethod
    def _error_result(document: InvoiceDocument, error: Exception) -> ValidationResult:
        result = ValidationResult(
            invoice_number=str(getattr(document, 'id', None) or 'UNKNOWN'),
            is_compliant=False
        )
        result.add_violation(
            code='SYS_001',
            field='system',
            message=f'Validation error: {str(error)}',
            severity='ERROR'
        )
        return result

    @measure_performance
    def validate_batch(self, documents: List[InvoiceDocument]) -> List[ValidationResult]:
        """
        Validate multiple documents concurrently.

        Args:
            documents: Documents to check

        Returns:
            Validation results in input order
        """
        results: List[Optional[ValidationResult]] = [None] * len(documents)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self.validate_one, doc): index
                for index, doc in enumerate(documents)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.error(f"Validation failed for invoice {documents[index].id}: {e}")
                    results[index] = self._error_result(documents[index], e)

        return results

    @measure_performance
    def validate_directory(self,
                           directory: Path,
                           pattern: str = "*.xml",
                           callback: Optional[Callable[[ValidationResult], None]] = None) -> BatchResult:
        """
        Validate all invoices in a directory concurrently.

        Args:
            directory: Directory containing invoice files
            pattern: File pattern to match (e.g., "*.xml", "*.json")
            callback: Optional callback called after each invoice

        Returns:
            BatchResult with aggregated statistics
        """
        start_time = time.time()

        batch_result = BatchResult()

        with performance_context(f"load {directory}"):
            documents = list(invoice_generator(directory, pattern))
        logger.info(f"Found {len(documents)} invoices to validate")

        if not documents:
            logger.warning(f"No invoices found in {directory} matching {pattern}")
            return batch_result

        for result in self.validate_batch(documents):
            batch_result.add_result(result)
            if callback:
                callback(result)

        batch_result.processing_time_seconds = time.time() - start_time

        logger.info(
            f"Validation complete: {batch_result.compliant_count}/{batch_result.total} "
            f"compliant in {batch_result.processing_time_seconds:.2f}s"
        )

        return batch_result
