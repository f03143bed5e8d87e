"""
Unit tests for the totals and line validators.
"""
import copy
import pytest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from conftest import make_document, make_line
from zatca_amounts.core.errors import ValidationFailure
from zatca_amounts.core.models import InvoiceDocument, LegalMonetaryTotal, TaxTotal
from zatca_amounts.core.money import DecimalComparator
from zatca_amounts.core.validators import InvoiceAmountValidator, LineValidator, TotalsValidator


TOTAL_FIELDS = ['lineExtensionAmount', 'taxExclusiveAmount', 'taxInclusiveAmount', 'payableAmount']


class TestTotalsValidator:
    """Document-level Legal Monetary Total checks"""

    def test_valid_document_passes(self, validator, valid_document):
        assert validator.validate_monetary_totals(valid_document) is None

    def test_missing_section_fails(self, validator, valid_document):
        del valid_document['legalMonetaryTotal']

        with pytest.raises(ValidationFailure, match='Legal Monetary Total section is missing') as excinfo:
            validator.validate_monetary_totals(valid_document)

        assert excinfo.value.code == 'AMT_001'

    def test_missing_payable_amount_fails(self, validator, valid_document):
        del valid_document['legalMonetaryTotal']['payableAmount']

        with pytest.raises(ValidationFailure,
                           match="field 'payableAmount' must be a numeric value") as excinfo:
            validator.validate_monetary_totals(valid_document)

        assert excinfo.value.field == 'payableAmount'

    @pytest.mark.parametrize('field', TOTAL_FIELDS)
    def test_negative_amount_fails(self, validator, field):
        document = make_document(**{field: '-1.00'})

        with pytest.raises(ValidationFailure, match=f"field '{field}' cannot be negative"):
            validator.validate_monetary_totals(document)

    @pytest.mark.parametrize('field', TOTAL_FIELDS)
    def test_non_numeric_amount_fails(self, validator, field):
        document = make_document(**{field: 'n/a'})

        with pytest.raises(ValidationFailure, match=f"field '{field}' must be a numeric value"):
            validator.validate_monetary_totals(document)

    def test_zero_amounts_pass(self, validator):
        document = make_document(
            lineExtensionAmount=0,
            taxExclusiveAmount=0,
            taxInclusiveAmount=0,
            payableAmount=0,
        )
        document['taxTotal']['taxAmount'] = 0

        validator.validate_monetary_totals(document)

    def test_tax_inclusive_mismatch_fails(self, validator):
        document = make_document(taxInclusiveAmount='116.00')

        expected = ('The taxInclusiveAmount (116.00) does not equal taxExclusiveAmount (100.00) '
                    'plus taxTotal (15.00) within tolerance 0.01.')
        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate_monetary_totals(document)

        assert str(excinfo.value) == expected
        assert excinfo.value.code == 'AMT_004'

    def test_difference_equal_to_tolerance_passes(self, validator):
        validator.validate_monetary_totals(make_document(taxInclusiveAmount='115.01'))
        validator.validate_monetary_totals(make_document(taxInclusiveAmount='114.99'))

    def test_difference_above_tolerance_fails(self, validator):
        with pytest.raises(ValidationFailure, match='does not equal'):
            validator.validate_monetary_totals(make_document(taxInclusiveAmount='115.011'))

    def test_missing_tax_total_defaults_to_zero(self, validator):
        document = make_document(taxInclusiveAmount='100.00')
        del document['taxTotal']

        validator.validate_monetary_totals(document)

    def test_missing_tax_total_still_checks_consistency(self, validator, valid_document):
        del valid_document['taxTotal']

        with pytest.raises(ValidationFailure, match=r'plus taxTotal \(0\)'):
            validator.validate_monetary_totals(valid_document)

    def test_non_numeric_tax_total_defaults_to_zero(self, validator):
        document = make_document(taxInclusiveAmount='100.00')
        document['taxTotal']['taxAmount'] = 'pending'

        validator.validate_monetary_totals(document)

    @pytest.mark.parametrize('tax_total', [[], '15.00', 15, None, {'taxAmount': None}])
    def test_unusable_tax_total_section_defaults_to_zero(self, validator, tax_total):
        document = make_document(taxInclusiveAmount='100.00')
        document['taxTotal'] = tax_total

        validator.validate_monetary_totals(document)

    def test_malformed_lines_do_not_affect_totals(self, validator, valid_document):
        valid_document['invoiceLines'] = [make_line(price=50), 'not a line']

        assert validator.validate_monetary_totals(valid_document) is None

    def test_accepts_models(self, validator):
        document = InvoiceDocument(
            legal_monetary_total=LegalMonetaryTotal(
                line_extension_amount=Decimal('100.00'),
                tax_exclusive_amount=Decimal('100.00'),
                tax_inclusive_amount=Decimal('115.00'),
                payable_amount=Decimal('115.00'),
            ),
            tax_total=TaxTotal(tax_amount=Decimal('15.00')),
        )

        validator.validate_monetary_totals(document)

    def test_standalone_validator_reads_plain_mappings(self, valid_document):
        TotalsValidator(DecimalComparator('0.01')).validate_monetary_totals(valid_document)


class TestLineValidator:
    """Per-line arithmetic checks"""

    def test_valid_lines_pass(self, validator, valid_line):
        assert validator.validate_invoice_lines([valid_line, make_line(id='2')]) is None

    def test_empty_lines_pass(self, validator):
        validator.validate_invoice_lines([])

    @pytest.mark.parametrize('field, message', [
        ('quantity', "Invoice Line [0] field 'quantity' must be a numeric value."),
        ('lineExtensionAmount', "Invoice Line [0] field 'lineExtensionAmount' must be a numeric value."),
    ])
    def test_missing_required_field_fails(self, validator, field, message):
        line = make_line()
        del line[field]

        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate_invoice_lines([line])

        assert str(excinfo.value) == message

    def test_missing_price_fails(self, validator):
        line = make_line()
        del line['price']

        with pytest.raises(ValidationFailure, match=r'Invoice Line \[0\] Price amount must be a numeric value'):
            validator.validate_invoice_lines([line])

    @pytest.mark.parametrize('overrides, message', [
        ({'quantity': -2}, "field 'quantity' cannot be negative"),
        ({'lineExtensionAmount': '-100.00'}, "field 'lineExtensionAmount' cannot be negative"),
        ({'price': {'amount': '-50.00'}}, 'Price amount cannot be negative'),
        ({'taxTotal': {'taxAmount': '-15.00', 'roundingAmount': '85.00'}},
         'TaxTotal taxAmount cannot be negative'),
    ])
    def test_negative_amount_fails(self, validator, overrides, message):
        with pytest.raises(ValidationFailure, match=message) as excinfo:
            validator.validate_invoice_lines([make_line(**overrides)])

        assert excinfo.value.rule == 'non_negative'

    def test_zero_amounts_pass(self, validator):
        line = make_line(
            quantity=0,
            lineExtensionAmount='0.00',
            price={'amount': '0.00'},
            taxTotal={'taxAmount': '0.00', 'roundingAmount': '0.00'},
        )

        validator.validate_invoice_lines([line])

    def test_negative_rounding_is_numeric_only(self, validator):
        line = make_line(
            quantity=0,
            lineExtensionAmount=0,
            taxTotal={'taxAmount': 0, 'roundingAmount': '-0.01'},
        )

        validator.validate_invoice_lines([line])

    def test_line_extension_mismatch_names_the_line(self, validator, valid_line):
        broken = make_line(lineExtensionAmount='99.00', taxTotal={'taxAmount': '15.00',
                                                                  'roundingAmount': '114.00'})

        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate_invoice_lines([valid_line, valid_line, broken])

        assert str(excinfo.value) == (
            'Invoice Line [2] lineExtensionAmount is incorrect. Expected 100.00, got 99.00.'
        )
        assert excinfo.value.line_index == 2
        assert excinfo.value.code == 'AMT_005'

    def test_stops_at_first_failing_line(self, validator):
        lines = [make_line(), make_line(quantity='x'), make_line(quantity=-1)]

        with pytest.raises(ValidationFailure, match=r'Invoice Line \[1\]'):
            validator.validate_invoice_lines(lines)

    def test_rounding_at_tolerance_boundary_passes(self, validator):
        line = make_line(taxTotal={'taxAmount': '15.00', 'roundingAmount': '114.99'})

        validator.validate_invoice_lines([line])

    def test_rounding_beyond_tolerance_fails(self, validator):
        line = make_line(taxTotal={'taxAmount': '15.00', 'roundingAmount': '114.98'})

        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate_invoice_lines([line])

        assert str(excinfo.value) == (
            'Invoice Line [0] roundingAmount is incorrect. Expected 115.00, got 114.98.'
        )
        assert excinfo.value.field_path == 'invoiceLines[0].taxTotal.roundingAmount'

    def test_missing_rounding_fails(self, validator):
        line = make_line(taxTotal={'taxAmount': '15.00'})

        with pytest.raises(ValidationFailure, match='TaxTotal roundingAmount must be a numeric value'):
            validator.validate_invoice_lines([line])

    @pytest.mark.parametrize('percent', [0, '0', 15, '15.00', 100, '100.00', Decimal('99.99')])
    def test_tax_percent_in_range_passes(self, validator, percent):
        validator.validate_invoice_lines([make_line(item={'taxPercent': percent})])

    @pytest.mark.parametrize('percent', ['-0.01', '100.01', -5, 150])
    def test_tax_percent_out_of_range_fails(self, validator, percent):
        with pytest.raises(ValidationFailure,
                           match=r'Invoice Line \[0\] item taxPercent must be between 0 and 100') as excinfo:
            validator.validate_invoice_lines([make_line(item={'taxPercent': percent})])

        assert excinfo.value.code == 'AMT_006'

    def test_non_numeric_tax_percent_fails(self, validator):
        with pytest.raises(ValidationFailure, match='item taxPercent must be a numeric value'):
            validator.validate_invoice_lines([make_line(item={'taxPercent': 'standard'})])

    def test_absent_tax_percent_is_skipped(self, validator):
        validator.validate_invoice_lines([make_line(item={'name': 'Service'})])
        validator.validate_invoice_lines([make_line(item=None)])

    def test_float_inputs_compare_as_decimals(self):
        validator = InvoiceAmountValidator(tolerance=0)
        line = make_line(
            quantity=3,
            lineExtensionAmount=0.3,
            price={'amount': 0.1},
            taxTotal={'taxAmount': 0.045, 'roundingAmount': 0.345},
        )

        validator.validate_invoice_lines([line])

    def test_invalid_structure_fails(self, validator):
        with pytest.raises(ValidationFailure, match=r'Invoice Line \[0\] has an invalid structure') as excinfo:
            validator.validate_invoice_lines([make_line(price=50)])

        assert excinfo.value.rule == 'structure'
        assert excinfo.value.line_index == 0

    def test_non_mapping_line_fails(self, validator):
        with pytest.raises(ValidationFailure, match=r'Invoice Line \[0\] must be a mapping'):
            validator.validate_invoice_lines(['2 x 50.00'])

    def test_earlier_violation_wins_over_later_malformed_line(self, validator):
        lines = [make_line(lineExtensionAmount='99.00'), make_line(price=50)]

        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate_invoice_lines(lines)

        assert excinfo.value.rule == 'line_extension'
        assert excinfo.value.line_index == 0

    def test_malformed_line_after_valid_lines_names_its_index(self, validator, valid_line):
        with pytest.raises(ValidationFailure, match=r'Invoice Line \[2\] has an invalid structure') as excinfo:
            validator.validate_invoice_lines([valid_line, valid_line, make_line(taxTotal='included')])

        assert excinfo.value.line_index == 2

    @pytest.mark.parametrize('overrides', [
        {'id': 1.5},
        {'id': {'scheme': 'internal', 'value': 'L-1'}},
        {'item': {'name': 123, 'taxPercent': 15}},
        {'item': {'name': ['Laptop', 'stand'], 'taxPercent': 15}},
    ])
    def test_fields_without_amounts_accept_any_value(self, validator, overrides):
        validator.validate_invoice_lines([make_line(**overrides)])

    @pytest.mark.parametrize('quantity', ['1_0', '2_000'])
    def test_digit_group_underscores_are_not_numeric(self, validator, quantity):
        line = make_line(
            quantity=quantity,
            lineExtensionAmount='500.00',
            taxTotal={'taxAmount': '75.00', 'roundingAmount': '575.00'},
        )

        with pytest.raises(ValidationFailure, match="field 'quantity' must be a numeric value"):
            validator.validate_invoice_lines([line])

    def test_standalone_validator_reads_plain_mappings(self, valid_line):
        LineValidator(DecimalComparator('0.01')).validate_invoice_lines([valid_line])


class TestInvoiceAmountValidator:
    """Orchestrator behaviour"""

    def test_validate_runs_totals_then_lines(self, validator, valid_document):
        valid_document['legalMonetaryTotal']['taxInclusiveAmount'] = '999.00'
        valid_document['invoiceLines'][0]['quantity'] = -1

        with pytest.raises(ValidationFailure, match='taxInclusiveAmount'):
            validator.validate(valid_document)

    def test_validate_reports_totals_before_malformed_line(self, validator, valid_document):
        valid_document['legalMonetaryTotal']['taxInclusiveAmount'] = '999.00'
        valid_document['invoiceLines'] = [make_line(price=50)]

        with pytest.raises(ValidationFailure) as excinfo:
            validator.validate(valid_document)

        assert excinfo.value.rule == 'tax_inclusive'

    def test_document_id_of_any_type_is_accepted(self, validator, valid_document):
        valid_document['id'] = 1.5

        result = validator.collect_violations(valid_document)

        assert result.is_compliant
        assert result.invoice_number == '1.5'

    def test_validate_checks_lines(self, validator, valid_document):
        valid_document['invoiceLines'][0]['quantity'] = -1

        with pytest.raises(ValidationFailure, match=r'Invoice Line \[0\]'):
            validator.validate(valid_document)

    def test_validate_valid_document(self, validator, valid_document):
        assert validator.validate(valid_document) is None

    def test_validate_does_not_mutate_input(self, validator, valid_document):
        snapshot = copy.deepcopy(valid_document)
        validator.validate(valid_document)
        assert valid_document == snapshot

    def test_rejects_non_mapping_document(self, validator):
        with pytest.raises(TypeError):
            validator.validate(['not', 'a', 'document'])

    def test_tolerance_is_exposed(self):
        assert InvoiceAmountValidator('0.05').tolerance == Decimal('0.05')

    def test_negative_tolerance_is_rejected(self):
        with pytest.raises(ValueError, match='cannot be negative'):
            InvoiceAmountValidator(tolerance='-0.01')

    def test_wider_tolerance_accepts_larger_difference(self, valid_document):
        valid_document['legalMonetaryTotal']['taxInclusiveAmount'] = '115.05'

        InvoiceAmountValidator(tolerance='0.05').validate(valid_document)
        with pytest.raises(ValidationFailure):
            InvoiceAmountValidator(tolerance='0.01').validate(valid_document)

    def test_shared_instance_across_threads(self, validator):
        documents = [make_document() for _ in range(50)]
        documents[7]['invoiceLines'][0]['lineExtensionAmount'] = '90.00'

        def run(document):
            try:
                validator.validate(document)
                return None
            except ValidationFailure as failure:
                return failure.rule

        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(executor.map(run, documents))

        assert outcomes[7] == 'line_extension'
        assert outcomes.count(None) == 49


class TestCollectViolations:
    """Aggregating mode"""

    def test_valid_document_is_compliant(self, validator, valid_document):
        result = validator.collect_violations(valid_document)

        assert result.is_compliant
        assert result.violations == []
        assert result.invoice_number == 'INV-2024-001'
        assert result.processing_time_ms is not None

    def test_records_totals_and_each_line(self, validator):
        document = make_document(taxInclusiveAmount='120.00')
        document['invoiceLines'] = [
            make_line(lineExtensionAmount='90.00'),
            make_line(),
            make_line(item={'taxPercent': 101}, quantity=-1),
        ]

        result = validator.collect_violations(document, document_id='batch-7')

        assert not result.is_compliant
        assert result.invoice_number == 'batch-7'
        assert [v.code for v in result.violations] == ['AMT_004', 'AMT_005', 'AMT_003']
        assert [v.line_index for v in result.violations] == [None, 0, 2]
        assert result.violations[2].field == 'invoiceLines[2].quantity'

    def test_line_structure_error_is_recorded_per_line(self, validator, valid_document):
        valid_document['invoiceLines'] = [
            make_line(taxTotal='included'),
            make_line(quantity=-1),
        ]

        result = validator.collect_violations(valid_document)

        assert not result.is_compliant
        assert result.invoice_number == 'INV-2024-001'
        assert [v.code for v in result.violations] == ['AMT_008', 'AMT_003']
        assert [v.line_index for v in result.violations] == [0, 1]

    def test_document_structure_error_is_recorded(self, validator, valid_document):
        valid_document['legalMonetaryTotal'] = ['115.00']

        result = validator.collect_violations(valid_document)

        assert not result.is_compliant
        assert result.invoice_number == 'UNKNOWN'
        assert result.violations[0].code == 'AMT_008'
