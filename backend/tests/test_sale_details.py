# Overview: Pytest coverage for the sale details text.

import pytest

from shopledger.sale_details import (
    DetailFragment,
    DetailsParseError,
    check_item_name,
    parse_details,
    quantities_by_name,
    render_fragment,
)
from shopledger.validation import ValidationError


def test_render_marks_override_only():
    assert render_fragment("A", 2, 1000, 1000) == "A x2"
    assert render_fragment("A", 1, 900, 1000) == "A @900 x1"


def test_parse_fragments():
    assert parse_details("Trà sữa x2, Bánh 2 tầng @15000 x1") == [
        DetailFragment(name="Trà sữa", quantity=2),
        DetailFragment(name="Bánh 2 tầng", quantity=1, price=15000),
    ]


def test_parse_empty():
    assert parse_details("") == []


@pytest.mark.parametrize("details", ["A", "A x0", "A x"])
def test_parse_malformed(details):
    with pytest.raises(DetailsParseError):
        parse_details(details)


def test_quantities_sum_and_skip_malformed():
    assert quantities_by_name("A x2, B @5 x1, junk, A @900 x3") == {"A": 5, "B": 1}


@pytest.mark.parametrize("name", ["Trà sữa", "Box xl", "Mix@home"])
def test_accepted_names_parse_back(name):
    check_item_name(name)
    details = ", ".join([render_fragment(name, 2, 1000, 1000), render_fragment(name, 1, 900, 1000)])
    assert parse_details(details) == [
        DetailFragment(name=name, quantity=2),
        DetailFragment(name=name, quantity=1, price=900),
    ]


@pytest.mark.parametrize("name", ["Combo @2", "Tea, Cake", "Pack x3"])
def test_names_that_misparse_rejected(name):
    with pytest.raises(ValidationError):
        check_item_name(name)
