"""
Shared crawl counters: records saved and URLs already handled.

Detail pages may be processed concurrently, so every read-modify-write on
the counters happens under one lock.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set


@dataclass
class Reservation:
    """Outcome of reserving links found on one search page."""
    fresh: int = 0
    selected: List[str] = field(default_factory=list)


class CrawlBudget:
    def __init__(self, results_wanted: int):
        self.results_wanted = results_wanted
        self.saved = 0
        self.visited: Set[str] = set()
        self._duplicate_runs: Dict[str, int] = {}
        self._lock = threading.Lock()

    def is_exhausted(self) -> bool:
        with self._lock:
            return self.saved >= self.results_wanted

    def reserve_links(self, links: Iterable[str], count_as_saved: bool = False) -> Reservation:
        """
        Pick up to ``results_wanted - saved`` unvisited links and mark them visited.

        With ``count_as_saved`` the picked links are also counted as saved records,
        which is how link stubs are accounted for.
        """
        with self._lock:
            fresh = []
            for url in links:
                if url not in self.visited and url not in fresh:
                    fresh.append(url)
            remaining = max(0, self.results_wanted - self.saved)
            selected = fresh[:remaining]
            self.visited.update(selected)
            if count_as_saved:
                self.saved += len(selected)
            return Reservation(fresh=len(fresh), selected=selected)

    def claim_slot(self) -> Optional[int]:
        """Count one more saved record. Returns the new total, or None if the target was already met."""
        with self._lock:
            if self.saved >= self.results_wanted:
                return None
            self.saved += 1
            return self.saved

    def note_listing_page(self, seed: str, had_fresh_links: bool) -> int:
        """Track consecutive search pages of ``seed`` that produced nothing new. Returns the current run length."""
        with self._lock:
            run = 0 if had_fresh_links else self._duplicate_runs.get(seed, 0) + 1
            self._duplicate_runs[seed] = run
            return run
