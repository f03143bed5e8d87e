"""
Batch processing utilities using generators for memory efficiency.
Checks large volumes of invoices without loading all into memory.
"""
import logging
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from zatca_amounts.core.models import BatchResult, InvoiceDocument, ValidationResult
from zatca_amounts.core.money import DEFAULT_TOLERANCE, Numeric
from zatca_amounts.core.parsers import invoice_generator
from zatca_amounts.core.validators import InvoiceAmountValidator
from zatca_amounts.utils.decorators import measure_performance


logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Sequential batch processor using generators.
    Memory-efficient but single-threaded.
    """

    def __init__(self, tolerance: Numeric = DEFAULT_TOLERANCE):
        """
        Initialize batch processor.

        Args:
            tolerance: Amount tolerance passed to the validator
        """
        self.validator = InvoiceAmountValidator(tolerance)

    @measure_performance
    def process_generator(self,
                          documents: Iterable[InvoiceDocument],
                          callback: Optional[Callable[[ValidationResult], None]] = None) -> BatchResult:
        """
        Check documents one by one in aggregating mode.

        Args:
            documents: Iterable (usually a generator) of InvoiceDocument
            callback: Optional function called after each document

        Returns:
            BatchResult with statistics
        """
        start_time = time.time()

        batch_result = BatchResult()

        for document in documents:
            try:
                result = self.validator.collect_violations(document)
            except Exception as e:
                logger.error(f"Error processing invoice: {e}")
                result = ValidationResult(
                    invoice_number=str(getattr(document, 'id', None) or 'UNKNOWN'),
                    is_compliant=False
                )
                result.add_violation(
                    code='SYS_001',
                    field='system',
                    message=f'Processing error: {str(e)}'
                )

            batch_result.add_result(result)

            if callback:
                callback(result)

            # Log progress every 100 invoices
            if batch_result.total % 100 == 0:
                logger.info(
                    f"Processed {batch_result.total} invoices "
                    f"({batch_result.compliant_count} compliant)"
                )

        batch_result.processing_time_seconds = time.time() - start_time

        logger.info(
            f"Batch complete: {batch_result.total} invoices in "
            f"{batch_result.processing_time_seconds:.2f}s"
        )

        return batch_result

    @measure_performance
    def process_directory(self,
                          directory: Path,
                          pattern: str = "*.xml",
                          output_dir: Optional[Path] = None,
                          save_reports: bool = False) -> BatchResult:
        """
        Process all invoices in a directory.

        Args:
            directory: Directory containing invoices
            pattern: File pattern to match
            output_dir: Directory to save per-invoice JSON results
            save_reports: Whether to save individual results

        Returns:
            BatchResult
        """
        logger.info(f"Starting batch processing: {directory}")

        if output_dir and save_reports:
            output_dir.mkdir(parents=True, exist_ok=True)

        def save_result(result: ValidationResult):
            report_file = output_dir / f"{result.invoice_number}.json"
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write(result.model_dump_json(indent=2))

        documents = invoice_generator(directory, pattern)
        callback = save_result if (output_dir and save_reports) else None

        return self.process_generator(documents, callback=callback)


def group_by_violation(results: Iterable[ValidationResult]) -> Dict[str, List[str]]:
    """
    Group non-compliant invoice numbers by violation code.

    Returns:
        Dictionary mapping violation codes to lists of invoice numbers
    """
    violations_map = {}

    for result in results:
        if not result.is_compliant:
            for violation in result.violations:
                violations_map.setdefault(violation.code, []).append(result.invoice_number)

    return violations_map
