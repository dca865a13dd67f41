"""
Tests for transaction reference generation.
"""

import re
from datetime import datetime

import pytest

from fx_ledger.exceptions import PersistenceError
from fx_ledger.services import reference as reference_module
from fx_ledger.services.reference import generate_reference


def test_reference_format(db_session):
    reference = generate_reference(db_session, now=datetime(2024, 1, 15, 9, 30))
    assert re.fullmatch(r"TX20240115[A-Z0-9]{6}", reference)


def test_gives_up_when_every_candidate_is_taken(db_session, monkeypatch):
    monkeypatch.setattr(reference_module.secrets, "choice", lambda alphabet: "A")

    class TakenResult:
        def first(self):
            return (1,)

    monkeypatch.setattr(db_session, "execute", lambda statement: TakenResult())

    with pytest.raises(PersistenceError) as exc:
        generate_reference(db_session)
    assert exc.value.operation == "reference generation"
