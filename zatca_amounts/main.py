"""
ZATCA Amount Validator - Main Entry Point
Command-line interface for checking invoice amounts.
"""
import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from zatca_amounts.core.errors import ValidationFailure
from zatca_amounts.core.parsers import ParserError, load_invoice
from zatca_amounts.core.validators import InvoiceAmountValidator
from zatca_amounts.processing.batch import BatchProcessor
from zatca_amounts.processing.concurrent import ConcurrentValidator
from zatca_amounts.reports.generator import generate_json_report, generate_summary_report


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure application logging"""
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def validate_directory(args) -> int:
    """Handle directory validation command"""
    input_dir = Path(args.input)
    output_dir = Path(args.output) if args.output else None

    if not input_dir.exists():
        logging.error(f"Input directory not found: {input_dir}")
        return 1

    logging.info(f"Starting validation: {input_dir}")
    logging.info(f"Pattern: {args.pattern}")
    logging.info(f"Tolerance: {args.tolerance}")
    logging.info(f"Mode: {'concurrent' if args.concurrent else 'sequential'}")

    if args.concurrent:
        processor = ConcurrentValidator(
            max_workers=args.workers,
            tolerance=args.tolerance
        )
        result = processor.validate_directory(input_dir, args.pattern)
    else:
        processor = BatchProcessor(tolerance=args.tolerance)
        result = processor.process_directory(
            input_dir,
            pattern=args.pattern,
            output_dir=output_dir,
            save_reports=args.save_reports
        )

    print(generate_summary_report(result))

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        report_path = output_dir / f"summary_{stamp}.txt"

        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(generate_summary_report(result))
        generate_json_report(result, str(output_dir / f"summary_{stamp}.json"))

        logging.info(f"Summary report saved: {report_path}")

    return 0 if result.failed_count == 0 else 1


def validate_single(args) -> int:
    """Handle single file validation command"""
    file_path = Path(args.file)

    if not file_path.exists():
        logging.error(f"File not found: {file_path}")
        return 1

    logging.info(f"Validating: {file_path}")

    document = load_invoice(file_path)
    validator = InvoiceAmountValidator(tolerance=args.tolerance)

    print("\n" + "=" * 60)
    print(f"Invoice: {document.id}")
    print("=" * 60)

    if args.all:
        result = validator.collect_violations(document)
        if result.is_compliant:
            print("✓ AMOUNTS CONSISTENT")
        else:
            print(f"✗ {len(result.violations)} violation(s):\n")
            for i, violation in enumerate(result.violations, 1):
                print(f"{i}. [{violation.code}] {violation.message}")
                print(f"   Field: {violation.field}\n")
        print("=" * 60)
        return 0 if result.is_compliant else 1

    try:
        validator.validate(document)
    except ValidationFailure as failure:
        print(f"✗ [{failure.code}] {failure.message}")
        print(f"   Field: {failure.field_path}")
        print("=" * 60)
        return 1

    print("✓ AMOUNTS CONSISTENT")
    print("=" * 60)
    return 0


def _tolerance(value: str) -> Decimal:
    try:
        tolerance = Decimal(value)
    except ArithmeticError:
        raise argparse.ArgumentTypeError(f"invalid tolerance: {value!r}")
    if not tolerance.is_finite() or tolerance < 0:
        raise argparse.ArgumentTypeError(f"tolerance must be a non-negative number: {value!r}")
    return tolerance


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='ZATCA Amount Validator - check e-invoice amounts before UBL serialization'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--tolerance', '-t', type=_tolerance, default=Decimal('0.01'),
                        help='Allowed absolute difference between amounts (default: 0.01)')
    common.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')
    common.add_argument('--log-file', help='Also write logs to this file')

    dir_parser = subparsers.add_parser('directory', parents=[common],
                                       help='Validate all invoices in a directory')
    dir_parser.add_argument('--input', '-i', required=True, help='Input directory path')
    dir_parser.add_argument('--output', '-o', help='Output directory for reports')
    dir_parser.add_argument('--pattern', '-p', default='*.xml', help='File pattern (default: *.xml)')
    dir_parser.add_argument('--workers', '-w', type=int, default=None, help='Number of worker threads')
    dir_parser.add_argument('--concurrent', '-c', action='store_true', help='Use concurrent processing')
    dir_parser.add_argument('--save-reports', action='store_true', help='Save per-invoice results')

    file_parser = subparsers.add_parser('file', parents=[common],
                                        help='Validate a single invoice file')
    file_parser.add_argument('file', help='Path to invoice file (.xml or .json)')
    file_parser.add_argument('--all', '-a', action='store_true',
                             help='Report every line violation instead of stopping at the first')

    return parser


def main(argv=None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.log_file)

    try:
        if args.command == 'directory':
            return validate_directory(args)
        elif args.command == 'file':
            return validate_single(args)
    except KeyboardInterrupt:
        logging.info("Operation cancelled by user")
        return 130
    except ParserError as e:
        logging.error(str(e))
        return 1
    except Exception as e:
        logging.exception(f"Unexpected error: {e}")
        return 1

    return 1


if __name__ == '__main__':
    sys.exit(main())
