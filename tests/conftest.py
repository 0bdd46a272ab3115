import io
from typing import Any, Callable

import pytest
from lxml import etree


@pytest.fixture
def parse_xml() -> Callable[[str], Any]:
    """Parse a produced document into an lxml element tree root."""
    def _parse(xml: str):
        return etree.fromstring(xml.encode("utf-8"))
    return _parse


@pytest.fixture
def catalog_tree() -> dict:
    """Mid-sized tree exercising every part of the key dialect."""
    return {
        "_attributes": {"version": "2"},
        "title": "Spring catalog",
        "product": [
            {
                "_attributes": {"sku": "A-1"},
                "name": "Kettle",
                "price": 19.5,
                "notes": {"_cdata": "<b>new</b>"},
            },
            {
                "_attributes": {"sku": "B-2"},
                "name": "Toaster & grill",
                "price": 42,
                "notes": {"_mixed": "<i>sale</i>"},
            },
        ],
        "tags": ["kitchen", "home"],
        "shipping info": {"@value": "free"},
    }


@pytest.fixture
def sink() -> io.StringIO:
    return io.StringIO()

