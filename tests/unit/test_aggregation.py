"""
Unit Tests for Balance Aggregation

Python 3.8 Compatible
"""

import os
import sys
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from app.ledger.aggregation import summarize
from app.ledger.errors import LedgerError
from app.ledger.models import ContractRecord

TEMPLATE = "tok:CIP56.Token:CIP56Holding"


def holding(contract_id: str, owner: str, amount: str) -> ContractRecord:
    return ContractRecord(contract_id, TEMPLATE, {"owner": owner, "amount": amount})


class TestSummarize:

    def test_empty_input(self) -> None:
        summary = summarize([])

        assert summary.total == Decimal("0")
        assert summary.count == 0
        assert summary.to_dict() == {
            "totalBalance": "0",
            "contracts": [],
            "count": 0,
            "totalChecked": 0,
            "filteredOut": 0,
        }

    def test_sum_without_filter(self) -> None:
        summary = summarize([holding("a", "x::1", "1.1"), holding("b", "y::1", "2.2")])

        assert summary.total == Decimal("3.3")
        assert summary.filtered_out == 0

    def test_owner_filter(self) -> None:
        records = [
            holding("a", "x::1", "1"),
            holding("b", "y::1", "2"),
            holding("c", "x::1", "3"),
        ]

        summary = summarize(records, owner="x::1")

        assert summary.total == Decimal("4")
        assert summary.total_checked == 3
        assert summary.filtered_out == 1
        assert [c.contract_id for c in summary.contracts] == ["a", "c"]

    def test_large_base_unit_amounts_keep_every_digit(self) -> None:
        records = [
            holding("a", "x::1", "123456789012345678901234567890"),
            holding("b", "x::1", "1"),
        ]

        summary = summarize(records)

        assert summary.to_dict()["totalBalance"] == "123456789012345678901234567891"

    def test_missing_amount_counts_as_zero(self) -> None:
        record = ContractRecord("a", TEMPLATE, {"owner": "x::1"})
        assert summarize([record]).total == Decimal("0")

    def test_malformed_amount_rejected(self) -> None:
        with pytest.raises(LedgerError) as exc_info:
            summarize([holding("a", "x::1", "lots")])

        assert exc_info.value.code == "LEDGER_MALFORMED_CONTRACT"

    def test_filtered_out_records_are_not_parsed(self) -> None:
        summary = summarize([holding("a", "y::1", "lots")], owner="x::1")
        assert summary.filtered_out == 1
