"""Gloss video index — subtitle-driven lookup of LSF sign video fragments.

WHY: A French → LSF translation front-end produces gloss sequences
(MAISON, TRAVAIL, ...) and wants a playable video for each gloss. The
Matignon-LSF corpus has hours of interpreted speeches with timed subtitles,
but no per-sign clips. This package turns that corpus into a searchable
index and serves "gloss → video fragment" lookups from it.

HOW: Two halves share one JSON document:
  build  — parse captions, extract keys, write the index (offline, one-shot)
  read   — load the index (eagerly on a server, or lazily over the network
           with single-flight caching) and resolve glosses to media
           fragment URLs (``video.mp4#t=12.4,15.1``)

RULES:
- The index document is the stable contract between build and read
- Index-time and query-time keys go through the same folding function
- A missing video is a normal "not found", never an exception
"""

__version__ = "0.1.0"
