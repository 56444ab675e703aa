from __future__ import annotations

import pytest

from document_flow.models import Relation

from .fakes import A, B, C, D, rel


@pytest.fixture
def lead_to_opportunity() -> list[Relation]:
    return [rel(A, "64", B, "72")]


@pytest.fixture
def opportunity_relations() -> list[Relation]:
    # B seen from its own side: A is its predecessor, C and D its successors.
    return [
        rel(B, "72", A, "64", role="PREDECESSOR"),
        rel(B, "72", C, "30"),
        rel(B, "72", D, "12"),
    ]
