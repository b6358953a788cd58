"""Core parsing, key derivation, and index construction modules.

WHY: The core package contains the stable heart of the indexer — the
caption parser, the key folding rules, and the index document format.
Both the offline builder and the online readers depend on it.

HOW: captions.py parses timed-caption documents, keys.py derives
normalized keys, index.py defines the GlossIndex and its JSON form,
builder.py orchestrates a corpus run.

RULES:
- The index document format is the contract — change with care
- keys.py is the only place that decides what a key looks like
- No network access here; readers live in gloss_index.readers
"""
