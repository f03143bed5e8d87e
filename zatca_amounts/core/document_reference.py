"""
Document reference (ID, issue date/time, type code) for UBL 2.1 invoices.
Validated before it is written; reading it back leaves missing values unset.
"""
from datetime import date, datetime, time
from enum import IntEnum
from typing import Any, Dict, Optional, Union

import xmltodict
from dateutil.parser import parse as parse_date
from pydantic import BaseModel

from zatca_amounts.core.errors import ValidationFailure


CAC_NS = 'urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2'
CBC_NS = 'urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2'

# Namespace URI -> prefix used when reading XML back
NAMESPACES = {
    CAC_NS: 'cac',
    CBC_NS: 'cbc',
}


class InvoiceTypeCode(IntEnum):
    """UN/CEFACT 1001 document types accepted by ZATCA"""
    INVOICE = 388
    DEBIT_NOTE = 383
    CREDIT_NOTE = 381
    PREPAYMENT = 386


DOCUMENT_TYPE_CODES = [code.value for code in InvoiceTypeCode]


class DocumentReference(BaseModel):
    """Reference to another invoice document, e.g. the one a credit note corrects"""
    id: Optional[str] = None
    issue_date: Optional[date] = None
    issue_time: Optional[time] = None
    document_type_code: Optional[int] = None

    def set_id(self, id: str) -> 'DocumentReference':
        self.id = id
        return self

    def set_issue_date(self, issue_date: Union[date, datetime]) -> 'DocumentReference':
        if isinstance(issue_date, datetime):
            issue_date = issue_date.date()
        self.issue_date = issue_date
        return self

    def set_issue_time(self, issue_time: Union[time, datetime]) -> 'DocumentReference':
        if isinstance(issue_time, datetime):
            issue_time = issue_time.time()
        self.issue_time = issue_time
        return self

    def set_document_type_code(self, code: Optional[int]) -> 'DocumentReference':
        self.document_type_code = int(code) if code is not None else None
        return self

    def validate_fields(self) -> None:
        """
        Validate required data before XML serialization.

        Raises:
            ValidationFailure: If a field is missing or the type code is unknown
        """
        if self.id is None or not str(self.id).strip():
            raise ValidationFailure('DocumentReference "ID" is required.',
                                    field='id', rule='required')
        if not isinstance(self.issue_date, date):
            raise ValidationFailure('DocumentReference "IssueDate" must be a valid date.',
                                    field='issue_date', rule='required')
        if not isinstance(self.issue_time, time):
            raise ValidationFailure('DocumentReference "IssueTime" must be a valid time.',
                                    field='issue_time', rule='required')
        if self.document_type_code is None:
            raise ValidationFailure('DocumentReference "DocumentTypeCode" is required.',
                                    field='document_type_code', rule='required')
        if self.document_type_code not in DOCUMENT_TYPE_CODES:
            allowed = ', '.join(str(code) for code in DOCUMENT_TYPE_CODES)
            raise ValidationFailure(
                f'DocumentTypeCode "{self.document_type_code}" is not valid. '
                f'Allowed values: {allowed}',
                field='document_type_code',
                rule='document_type_code'
            )

    def to_xml_elements(self) -> Dict[str, str]:
        """The four cbc elements, in schema order, after validation"""
        self.validate_fields()
        return {
            'cbc:ID': str(self.id),
            'cbc:IssueDate': self.issue_date.strftime('%Y-%m-%d'),
            'cbc:IssueTime': self.issue_time.strftime('%H:%M:%S'),
            'cbc:DocumentTypeCode': str(self.document_type_code),
        }

    def to_xml(self, root: str = 'cac:InvoiceDocumentReference', pretty: bool = False) -> str:
        """
        Render as a standalone XML fragment with the UBL namespaces declared.

        Raises:
            ValidationFailure: If the reference is incomplete
        """
        body = {
            '@xmlns:cac': CAC_NS,
            '@xmlns:cbc': CBC_NS,
        }
        body.update(self.to_xml_elements())
        return xmltodict.unparse({root: body}, full_document=False, pretty=pretty)

    @classmethod
    def from_elements(cls, elements: Dict[str, Any]) -> 'DocumentReference':
        """
        Build from keyed cbc values. Missing ID or code stays None so that
        validate_fields() rejects it later.
        """
        instance = cls()

        doc_id = elements.get('cbc:ID')
        if doc_id is not None:
            instance.set_id(_text(doc_id))

        if elements.get('cbc:IssueDate'):
            instance.set_issue_date(_parse_datetime(elements['cbc:IssueDate'], 'IssueDate'))
        if elements.get('cbc:IssueTime'):
            instance.set_issue_time(_parse_datetime(elements['cbc:IssueTime'], 'IssueTime'))

        code = elements.get('cbc:DocumentTypeCode')
        if code is not None:
            instance.set_document_type_code(_parse_code(code))

        return instance

    @classmethod
    def from_xml(cls, xml: str) -> 'DocumentReference':
        """Read a fragment produced by to_xml (any root element name)"""
        parsed = xmltodict.parse(xml, process_namespaces=True, namespaces=NAMESPACES)
        root = next(iter(parsed.values())) or {}
        return cls.from_elements(root)


def _text(value: Any) -> str:
    # xmltodict yields a dict when the element carries attributes
    if isinstance(value, dict):
        return value.get('#text', '')
    return str(value)


def _parse_datetime(value: Any, element: str) -> datetime:
    try:
        return parse_date(_text(value))
    except (ValueError, OverflowError) as e:
        raise ValidationFailure(
            f'DocumentReference "{element}" could not be parsed: {value}',
            field=element,
            rule='structure'
        ) from e


def _parse_code(value: Any) -> int:
    text = _text(value).strip()
    try:
        return int(text)
    except ValueError as e:
        raise ValidationFailure(
            f'DocumentReference "DocumentTypeCode" must be an integer, got {text!r}',
            field='document_type_code',
            rule='document_type_code'
        ) from e
