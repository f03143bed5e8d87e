"""
Invoice loaders for UBL 2.1 XML and JSON files.
Uses generators for memory-efficient batch processing.
"""
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Union
from xml.parsers.expat import ExpatError

import xmltodict
from pydantic import ValidationError as PydanticValidationError

from zatca_amounts.core.document_reference import CAC_NS, CBC_NS
from zatca_amounts.core.models import InvoiceDocument, InvoiceLine, TaxTotal
from zatca_amounts.utils.decorators import audit_log, measure_performance


logger = logging.getLogger(__name__)


class ParserError(Exception):
    """Raised when invoice parsing fails"""
    pass


class XMLInvoiceParser:
    """
    Parser for UBL 2.1 XML invoices.
    Reads only the monetary sections; amounts are kept as text.
    """

    INVOICE_NS = 'urn:oasis:names:specification:ubl:schema:xsd:Invoice-2'

    # Namespace URI -> prefix; None drops the prefix
    NAMESPACES = {
        INVOICE_NS: None,
        CAC_NS: 'cac',
        CBC_NS: 'cbc',
    }

    FORCE_LIST = ('cac:InvoiceLine', 'cac:TaxTotal')

    @staticmethod
    def _text(element: Any) -> Optional[str]:
        """Element text, ignoring attributes such as currencyID"""
        if isinstance(element, dict):
            return element.get('#text')
        return element

    @staticmethod
    def _first(elements: Any) -> Dict[str, Any]:
        if isinstance(elements, list):
            return elements[0] if elements and isinstance(elements[0], dict) else {}
        return elements if isinstance(elements, dict) else {}

    def _parse_line(self, line: Dict[str, Any]) -> InvoiceLine:
        price = self._first(line.get('cac:Price'))
        item = self._first(line.get('cac:Item'))
        category = self._first(item.get('cac:ClassifiedTaxCategory'))
        tax_total = self._first(line.get('cac:TaxTotal'))

        return InvoiceLine.model_validate({
            'id': self._text(line.get('cbc:ID')),
            'quantity': self._text(line.get('cbc:InvoicedQuantity')),
            'lineExtensionAmount': self._text(line.get('cbc:LineExtensionAmount')),
            'price': {'amount': self._text(price.get('cbc:PriceAmount'))},
            'item': {
                'name': self._text(item.get('cbc:Name')),
                'taxPercent': self._text(category.get('cbc:Percent')),
            },
            'taxTotal': {
                'taxAmount': self._text(tax_total.get('cbc:TaxAmount')),
                'roundingAmount': self._text(tax_total.get('cbc:RoundingAmount')),
            },
        })

    def parse_string(self, xml: Union[str, bytes]) -> InvoiceDocument:
        """
        Parse UBL XML text into an InvoiceDocument.

        Raises:
            ParserError: If the XML is malformed or not an Invoice
        """
        try:
            parsed = xmltodict.parse(
                xml,
                process_namespaces=True,
                namespaces=self.NAMESPACES,
                force_list=self.FORCE_LIST
            )
        except ExpatError as e:
            raise ParserError(f"Failed to parse XML invoice: {str(e)}") from e

        root = parsed.get('Invoice')
        if not isinstance(root, dict):
            raise ParserError(f"Expected an Invoice root element, got {list(parsed)}")

        totals = root.get('cac:LegalMonetaryTotal')
        document = {
            'id': self._text(root.get('cbc:ID')),
            'taxTotal': TaxTotal(
                tax_amount=self._text(self._first(root.get('cac:TaxTotal')).get('cbc:TaxAmount'))
            ),
            'invoiceLines': [self._parse_line(line) for line in root.get('cac:InvoiceLine', [])
                             if isinstance(line, dict)],
        }
        if isinstance(totals, dict):
            document['legalMonetaryTotal'] = {
                'lineExtensionAmount': self._text(totals.get('cbc:LineExtensionAmount')),
                'taxExclusiveAmount': self._text(totals.get('cbc:TaxExclusiveAmount')),
                'taxInclusiveAmount': self._text(totals.get('cbc:TaxInclusiveAmount')),
                'payableAmount': self._text(totals.get('cbc:PayableAmount')),
            }

        return InvoiceDocument.model_validate(document)

    @measure_performance
    @audit_log
    def parse(self, file_path: Union[str, Path]) -> InvoiceDocument:
        """
        Parse single XML invoice file.

        Args:
            file_path: Path to XML file

        Returns:
            InvoiceDocument

        Raises:
            ParserError: If parsing fails
        """
        try:
            with open(file_path, 'rb') as f:
                return self.parse_string(f.read())
        except OSError as e:
            raise ParserError(f"Failed to read XML invoice: {str(e)}") from e


class JSONInvoiceParser:
    """Parser for JSON invoices in the camelCase monetary layout"""

    @measure_performance
    @audit_log
    def parse(self, file_path: Union[str, Path]) -> InvoiceDocument:
        """
        Parse single JSON invoice file.

        Floats are read as Decimal so amounts never pass through binary floats.

        Raises:
            ParserError: If parsing fails
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f, parse_float=Decimal)

            return InvoiceDocument.model_validate(data)

        except (OSError, ValueError, PydanticValidationError) as e:
            raise ParserError(f"Failed to parse JSON invoice: {str(e)}") from e


def parse_invoice_file(file_path: Union[str, Path]) -> InvoiceDocument:
    """
    Auto-detect format and parse invoice file.
    Documents without an ID are labelled with the file name.

    Args:
        file_path: Path to invoice file (XML or JSON)

    Returns:
        Parsed InvoiceDocument
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Invoice file not found: {file_path}")

    suffix = path.suffix.lower()

    if suffix == '.xml':
        parser = XMLInvoiceParser()
    elif suffix == '.json':
        parser = JSONInvoiceParser()
    else:
        raise ParserError(f"Unsupported file format: {suffix}")

    document = parser.parse(path)
    if document.id is None:
        document.id = path.stem
    return document


def invoice_generator(directory: Union[str, Path],
                      pattern: str = "*") -> Generator[InvoiceDocument, None, None]:
    """
    Generator that yields parsed invoices from a directory.
    Files that fail to parse are logged and skipped.

    Args:
        directory: Directory containing invoice files
        pattern: Glob pattern for file matching (e.g., "*.xml")

    Yields:
        Parsed InvoiceDocument objects
    """
    dir_path = Path(directory)

    if not dir_path.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    for file_path in sorted(dir_path.glob(pattern)):
        if file_path.is_file():
            try:
                yield parse_invoice_file(file_path)
            except ParserError as e:
                logger.error(f"Failed to parse {file_path}: {e}")
                continue


def load_invoice(file_path: Union[str, Path]) -> InvoiceDocument:
    """
    Convenience function to load a single invoice.
    Alias for parse_invoice_file.
    """
    return parse_invoice_file(file_path)

