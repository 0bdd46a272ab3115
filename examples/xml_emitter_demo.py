#!/usr/bin/env python3
"""
Demonstration of the tree to XML emitter.

This example shows how to:
1. Convert a nested dict/list tree to an XML string
2. Use the key dialect for attributes, CDATA and mixed content
3. Stream a large document to a file with periodic flushing
4. Produce deterministic output
"""

from pathlib import Path

from xml_emitter import ConverterConfig, TreeXMLConverter, convert
from xml_emitter.logging import configure_logging


def create_sample_catalog() -> dict:
    """Create sample catalog data for demonstration."""

    return {
        "_attributes": {"issue": "2024-03"},
        "title": "Spring catalog",
        "product": [
            {
                "_attributes": {"sku": "K-100", "stock": 12},
                "name": "Stovetop kettle",
                "price": 34.9,
                "description": {"_cdata": "Whistles when <em>ready</em>"},
            },
            {
                "_attributes": {"sku": "T-200", "stock": 0},
                "name": "Two-slot toaster",
                "price": 49,
                "description": {"_mixed": "Now with <b>bagel</b> mode"},
            },
        ],
        "tags": ["kitchen", "home", "spring sale"],
        "__numeric": {2023: "archived", 2024: "current"},
    }


def demo_in_memory_output():
    """Demonstrate converting to an XML string."""
    print("=== In-memory XML Output Demo ===")

    xml = convert(
        create_sample_catalog(),
        root_element={"rootElementName": "catalog", "@attributes": {"lang": "en"}},
        xml_encoding="UTF-8",
    )
    print(xml)


def demo_streamed_output():
    """Demonstrate streaming a large document to a file."""
    print("=== Streamed XML Output Demo ===")

    data = {
        "entry": [
            {"_attributes": {"id": i}, "label": f"Entry {i}", "score": i % 7}
            for i in range(20000)
        ]
    }

    output_path = Path("output") / "entries.xml"
    output_path.parent.mkdir(exist_ok=True)

    converter = TreeXMLConverter(
        data,
        output=output_path,
        root_element="entries",
        config=ConverterConfig.for_streaming(flush_threshold=500),
    )
    converter.to_xml()

    print(f"Streamed XML saved to: {output_path}")
    print(converter.stats.summary())
    print(f"Processing time: {converter.stats.conversion_time:.3f}s")
    print()


def demo_deterministic_output():
    """Demonstrate that repeated conversions produce identical XML."""
    print("=== Deterministic Output Demo ===")

    outputs = [convert(create_sample_catalog()) for _ in range(3)]
    all_identical = all(output == outputs[0] for output in outputs)
    print(f"Deterministic output test: {'PASSED' if all_identical else 'FAILED'}")
    print()


def main():
    configure_logging("INFO", "console")
    demo_in_memory_output()
    demo_streamed_output()
    demo_deterministic_output()


if __name__ == "__main__":
    main()
