"""One-vs-many alignment: rank database entries by alignment score.

Every entry is aligned independently against the query. The fill kernel
releases the GIL, so a ``ThreadPoolExecutor`` gives real parallelism without
copying the read-only database between processes. Results are merged and
sorted on the calling thread.

Examples
--------
>>> alphabet = Alphabet.standard()
>>> query = Sequence.from_symbols("AKTNLSHLGY", alphabet)
>>> database = [Sequence.from_symbols(s, alphabet, name=n) for n, s in entries]
>>> result = search(query, database, Topology.LOCAL, top_n=5)
>>> for hit in result:
...     print(hit.identifier, hit.score)
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence as TypingSequence

from ..constants import DEFAULT_TOP_N
from ..hits import SearchHit, SearchResult
from ..sequence import Sequence
from .engine import align_encoded, effective_max_run, encode_sequence
from .scoring import AlignScoring, ScoringMode, Topology

logger = logging.getLogger(__name__)


def search(
    query: Sequence,
    database: TypingSequence[Sequence],
    topology: Topology = Topology.LOCAL,
    mode: ScoringMode = ScoringMode.MASS,
    scoring: Optional[AlignScoring] = None,
    top_n: Optional[int] = DEFAULT_TOP_N,
    n_workers: Optional[int] = None,
) -> SearchResult:
    """Align ``query`` against every database entry and keep the best ``top_n``.

    Parameters
    ----------
    query : Sequence
        Sequence A of every alignment
    database : sequence of Sequence
        Entries, each used as sequence B. The hit identifier is the entry's
        ``name``, or its index when unnamed
    topology : Topology
        Alignment topology (default: local)
    mode : ScoringMode
        Scoring mode (default: mass)
    scoring : AlignScoring, optional
        Scoring parameters (default: ``AlignScoring()``)
    top_n : int or None
        Number of hits to keep, None keeps all (default: 10)
    n_workers : int, optional
        Worker threads (default: ``os.cpu_count()``), 1 runs inline

    Returns
    -------
    SearchResult
        Hits by descending score, ties in database order. ``truncated`` is
        True when more entries were aligned than kept.
    """
    scoring = scoring if scoring is not None else AlignScoring()
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n}")

    max_run = effective_max_run(mode, scoring)
    encoded_query = encode_sequence(query, max_run, scoring.mass_epsilon)

    def score_entry(entry: Sequence):
        encoded = encode_sequence(entry, max_run, scoring.mass_epsilon)
        return align_encoded(query, encoded_query, entry, encoded, topology, mode, scoring)

    n_workers = n_workers or os.cpu_count() or 1
    if n_workers == 1 or len(database) < 2:
        alignments = [score_entry(entry) for entry in database]
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            # map() keeps database order
            alignments = list(executor.map(score_entry, database))

    hits: List[SearchHit] = [
        SearchHit(
            identifier=entry.name if entry.name is not None else str(index),
            index=index,
            score=alignment.score,
            alignment=alignment,
            item=entry,
        )
        for index, (entry, alignment) in enumerate(zip(database, alignments))
    ]
    hits.sort(key=lambda hit: (-hit.score, hit.index))

    truncated = top_n is not None and len(hits) > top_n
    if truncated:
        hits = hits[:top_n]

    logger.info(
        f"Searched {len(database):,} entries ({topology.name.lower()}, {mode.value}), "
        f"kept {len(hits)} hits"
    )
    return SearchResult(tuple(hits), truncated)
