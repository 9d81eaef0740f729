"""Test helper modules for the aemctl test suite.

- clock: RecordingToken, a cancellation token that records sleeps instead of sleeping
- http: hand-built responses, a scripted session and a local HTTP server
- listings: sample process listings as printed by jps, ps and wmic
"""
from __future__ import annotations
