"""
Example usage of ZATCA Amount Validator.
Demonstrates various use cases and patterns.
"""
from datetime import date, time
from pathlib import Path

from zatca_amounts import DocumentReference, InvoiceAmountValidator, ValidationFailure, load_invoice
from zatca_amounts.core.document_reference import InvoiceTypeCode
from zatca_amounts.processing import BatchProcessor, ConcurrentValidator


SAMPLE_DOCUMENT = {
    'id': 'INV-2024-001',
    'legalMonetaryTotal': {
        'lineExtensionAmount': '100.00',
        'taxExclusiveAmount': '100.00',
        'taxInclusiveAmount': '115.00',
        'payableAmount': '115.00',
    },
    'taxTotal': {'taxAmount': '15.00'},
    'invoiceLines': [
        {
            'quantity': 2,
            'lineExtensionAmount': '100.00',
            'price': {'amount': '50.00'},
            'item': {'name': 'Laptop stand', 'taxPercent': 15},
            'taxTotal': {'taxAmount': '15.00', 'roundingAmount': '115.00'},
        }
    ],
}


def example_validate_document():
    """Example: Fail-fast validation of an in-memory document"""
    print("Example 1: Fail-fast Validation")
    print("-" * 50)

    validator = InvoiceAmountValidator(tolerance='0.01')

    try:
        validator.validate(SAMPLE_DOCUMENT)
        print("✓ Amounts are consistent")
    except ValidationFailure as failure:
        print(f"✗ [{failure.code}] {failure.message}")

    print()


def example_collect_violations():
    """Example: Report every broken line at once"""
    print("Example 2: Aggregating Mode")
    print("-" * 50)

    broken = dict(SAMPLE_DOCUMENT)
    broken['invoiceLines'] = [
        dict(SAMPLE_DOCUMENT['invoiceLines'][0], lineExtensionAmount='99.00'),
        dict(SAMPLE_DOCUMENT['invoiceLines'][0], item={'taxPercent': 150}),
    ]

    result = InvoiceAmountValidator().collect_violations(broken)
    for violation in result.violations:
        print(f"  - [{violation.code}] {violation.field}: {violation.message}")

    print()


def example_validate_file():
    """Example: Validate a UBL XML file"""
    print("Example 3: Single File Validation")
    print("-" * 50)

    document = load_invoice('sample_invoices/invoice_001.xml')
    result = InvoiceAmountValidator().collect_violations(document)

    status = "consistent" if result.is_compliant else f"{len(result.violations)} violation(s)"
    print(f"Invoice {result.invoice_number}: {status}")
    print()


def example_process_directory():
    """Example: Sequential and concurrent directory processing"""
    print("Example 4: Directory Processing")
    print("-" * 50)

    sequential = BatchProcessor().process_directory(Path('sample_invoices/'), pattern='*.xml')
    print(f"Sequential: {sequential.compliant_count}/{sequential.total} consistent")

    concurrent = ConcurrentValidator(max_workers=4).validate_directory(
        Path('sample_invoices/'), pattern='*.xml'
    )
    print(f"Concurrent: {concurrent.compliant_count}/{concurrent.total} consistent")
    print()


def example_document_reference():
    """Example: Validate-then-serialize a billing reference"""
    print("Example 5: Document Reference")
    print("-" * 50)

    reference = (DocumentReference()
                 .set_id('INV-2023-099')
                 .set_issue_date(date(2024, 1, 15))
                 .set_issue_time(time(14, 30, 0))
                 .set_document_type_code(InvoiceTypeCode.INVOICE))

    print(reference.to_xml(pretty=True))
    print()


if __name__ == '__main__':
    example_validate_document()
    example_collect_violations()
    example_document_reference()

    if Path('sample_invoices/').exists():
        example_validate_file()
        example_process_directory()
