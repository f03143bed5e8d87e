"""
Report generation utilities.
Creates human-readable amount validation reports.
"""
import csv
import json
from collections import Counter
from datetime import datetime
from typing import List

from zatca_amounts.core.models import BatchResult, ValidationResult


def _percent(part: int, total: int) -> float:
    return part / total * 100 if total else 0.0


def generate_summary_report(batch_result: BatchResult, max_listed: int = 20) -> str:
    """
    Generate text summary report from batch results.

    Args:
        batch_result: Batch processing results
        max_listed: Number of failing invoices to list in full

    Returns:
        Formatted text report
    """
    lines = []
    total = batch_result.total

    lines.append("=" * 70)
    lines.append("ZATCA INVOICE AMOUNT VALIDATION REPORT")
    lines.append("=" * 70)
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")

    lines.append("SUMMARY STATISTICS")
    lines.append("-" * 70)
    lines.append(f"Total Invoices Processed:  {total}")
    lines.append(f"Consistent:                {batch_result.compliant_count} "
                 f"({_percent(batch_result.compliant_count, total):.1f}%)")
    lines.append(f"Inconsistent:              {batch_result.failed_count} "
                 f"({_percent(batch_result.failed_count, total):.1f}%)")
    lines.append(f"Processing Time:           {batch_result.processing_time_seconds:.2f} seconds")
    lines.append("")

    failed_results = [r for r in batch_result.results if not r.is_compliant]

    if failed_results:
        lines.append("COMMON VIOLATIONS")
        lines.append("-" * 70)

        violation_counts = Counter()
        examples = {}
        for result in failed_results:
            for violation in result.violations:
                violation_counts[violation.code] += 1
                examples.setdefault(violation.code, violation.message)

        for code, count in violation_counts.most_common(10):
            lines.append(f"[{code}] {examples[code]}")
            lines.append(f"  Occurrences: {count}")
            lines.append("")

        lines.append("INCONSISTENT INVOICES")
        lines.append("-" * 70)

        for result in failed_results[:max_listed]:
            lines.append(f"Invoice: {result.invoice_number}")
            lines.append(f"  Violations: {len(result.violations)}")
            for violation in result.violations:
                lines.append(f"    - [{violation.code}] {violation.field}: {violation.message}")
            lines.append("")

        if len(failed_results) > max_listed:
            lines.append(f"... and {len(failed_results) - max_listed} more inconsistent invoices")
            lines.append("")

    lines.append("=" * 70)
    lines.append("END OF REPORT")
    lines.append("=" * 70)

    return "\n".join(lines)


def generate_csv_report(results: List[ValidationResult], output_path: str):
    """
    Generate CSV report of validation results.

    Args:
        results: List of validation results
        output_path: Path to output CSV file
    """
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)

        writer.writerow([
            'Invoice Number',
            'Consistent',
            'Violation Count',
            'Violation Codes',
            'Fields',
            'Processing Time (ms)'
        ])

        for result in results:
            writer.writerow([
                result.invoice_number,
                'Yes' if result.is_compliant else 'No',
                len(result.violations),
                ','.join(v.code for v in result.violations),
                ','.join(v.field for v in result.violations),
                result.processing_time_ms or ''
            ])


def generate_json_report(batch_result: BatchResult, output_path: str):
    """
    Generate JSON report.

    Args:
        batch_result: Batch results
        output_path: Output file path
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(batch_result.model_dump(mode='json'), f, indent=2)
