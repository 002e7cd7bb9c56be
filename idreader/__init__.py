"""Identity Document Reader.

Turns OCR or PDF text recovered from national identity cards and passports
into structured field records, decoding the passport machine-readable zone
when one is present.
"""
