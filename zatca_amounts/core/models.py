"""
Data models for the monetary sections of a ZATCA invoice.
Using Pydantic for structure; amounts stay raw until the field guards parse them.
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from zatca_amounts.core.errors import ValidationFailure


class AmountModel(BaseModel):
    """Base for monetary sections: camelCase wire names, snake_case attributes"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class LegalMonetaryTotal(AmountModel):
    """Document-level summary amounts"""
    line_extension_amount: Optional[Any] = Field(default=None, alias='lineExtensionAmount')
    tax_exclusive_amount: Optional[Any] = Field(default=None, alias='taxExclusiveAmount')
    tax_inclusive_amount: Optional[Any] = Field(default=None, alias='taxInclusiveAmount')
    payable_amount: Optional[Any] = Field(default=None, alias='payableAmount')


class TaxTotal(AmountModel):
    """Aggregate tax amount of the whole document"""
    tax_amount: Optional[Any] = Field(default=None, alias='taxAmount')


class Price(AmountModel):
    amount: Optional[Any] = None


class Item(AmountModel):
    name: Optional[Any] = None
    tax_percent: Optional[Any] = Field(default=None, alias='taxPercent')


class LineTaxTotal(AmountModel):
    """Per-line tax; rounding_amount is the line total after tax"""
    tax_amount: Optional[Any] = Field(default=None, alias='taxAmount')
    rounding_amount: Optional[Any] = Field(default=None, alias='roundingAmount')


class InvoiceLine(AmountModel):
    """Single line item in invoice"""
    id: Optional[Any] = None
    quantity: Optional[Any] = None
    line_extension_amount: Optional[Any] = Field(default=None, alias='lineExtensionAmount')
    price: Optional[Price] = None
    item: Optional[Item] = None
    tax_total: Optional[LineTaxTotal] = Field(default=None, alias='taxTotal')


class InvoiceDocument(AmountModel):
    """
    Monetary view of an invoice: totals, aggregate tax and lines.
    Lines and the aggregate tax stay raw here; they are checked where they are read.
    """
    id: Optional[Any] = None
    legal_monetary_total: Optional[LegalMonetaryTotal] = Field(default=None, alias='legalMonetaryTotal')
    tax_total: Optional[Any] = Field(default=None, alias='taxTotal')
    invoice_lines: List[Any] = Field(default_factory=list, alias='invoiceLines')


class ValidationViolation(BaseModel):
    """Represents a single rule violation"""
    code: str
    severity: str  # ERROR, WARNING
    field: str
    message: str
    rule: str
    line_index: Optional[int] = None


class ValidationResult(BaseModel):
    """Result of collecting every line's first violation"""
    invoice_number: str
    timestamp: datetime = Field(default_factory=datetime.now)
    is_compliant: bool = True
    violations: List[ValidationViolation] = []
    processing_time_ms: Optional[float] = None

    def add_violation(self, code: str, field: str, message: str,
                      severity: str = "ERROR", rule: str = "",
                      line_index: Optional[int] = None):
        """Helper to add violation"""
        violation = ValidationViolation(
            code=code,
            severity=severity,
            field=field,
            message=message,
            rule=rule,
            line_index=line_index
        )
        self.violations.append(violation)
        if severity == "ERROR":
            self.is_compliant = False

    def add_failure(self, failure: ValidationFailure):
        """Record a raised ValidationFailure as an ERROR violation"""
        self.add_violation(
            code=failure.code,
            field=failure.field_path,
            message=failure.message,
            rule=failure.rule,
            line_index=failure.line_index
        )


class BatchResult(BaseModel):
    """Result of batch processing"""
    total: int = 0
    compliant_count: int = 0
    failed_count: int = 0
    processing_time_seconds: float = 0.0
    results: List[ValidationResult] = []

    def add_result(self, result: ValidationResult):
        self.results.append(result)
        self.total += 1
        if result.is_compliant:
            self.compliant_count += 1
        else:
            self.failed_count += 1
