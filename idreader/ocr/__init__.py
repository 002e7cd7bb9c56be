"""ocr subpackage."""
