"""Bridge chunks spanning the boundary between adjacent base chunks."""

from __future__ import annotations

from kb_ingest.ingestion.models import PipelineConfig

BOUNDARY_MARKER = " [...] "


def build_bridge_chunks(chunks: list[str], config: PipelineConfig) -> list[str]:
    """Return one bridge chunk per adjacent pair in *chunks*, when it fits.

    A bridge is the tail (last ``overlap_size`` chars) of chunk *i* joined to
    the head (first ``overlap_size`` chars) of chunk *i + 1* with
    :data:`BOUNDARY_MARKER`. Shorter chunks contribute in full. Bridges
    outside ``[min_size, max_size]`` are discarded.
    """
    size = config.overlap_size
    if len(chunks) < 2 or size == 0:
        return []

    bridges: list[str] = []
    for left, right in zip(chunks, chunks[1:]):
        tail = left[-size:] if len(left) > size else left
        head = right[:size] if len(right) > size else right
        bridge = tail + BOUNDARY_MARKER + head
        if config.min_size <= len(bridge) <= config.max_size:
            bridges.append(bridge)
    return bridges
