"""Persistence layer for saving kernels found by a search."""

import csv
import json
from pathlib import Path
from datetime import datetime
from typing import List, Dict, Optional
from dataclasses import dataclass, asdict, field

import numpy as np

from .config import SearchConfig
from .errors import CorruptDatabase
from .kernels import as_kernel
from .metrics import TrialSummary


def kernel_key(kernel) -> str:
    """Compact row-major text form of a kernel, e.g. '0,1,0/1,0,1/0,1,0'."""
    return "/".join(",".join(str(int(v)) for v in row) for row in as_kernel(kernel))


def band_score(final_population: float, lower_bound: float, upper_bound: float) -> float:
    """1.0 at the band center, falling linearly to 0.0 at either bound."""
    half_width = (upper_bound - lower_bound) / 2
    center = lower_bound + half_width
    return max(0.0, 1.0 - abs(final_population - center) / half_width)


@dataclass
class DiscoveredKernel:
    """A kernel of interest with the metrics of the trial that found it."""
    kernel_string: str
    score: float
    metrics: Dict
    config: Dict
    discovered_at: str
    notes: str = ""
    kernel_rows: List[List[int]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "DiscoveredKernel":
        return cls(**data)

    @property
    def kernel(self) -> np.ndarray:
        return as_kernel(self.kernel_rows)


class KernelDatabase:
    """JSON file of kernels of interest, keyed by `kernel_key`.

    A missing file is an empty database. A file that exists but cannot be
    parsed raises CorruptDatabase and is left untouched on disk.
    """

    def __init__(self, filepath: str = "discovered_kernels.json"):
        self.filepath = Path(filepath)
        self._entries: Dict[str, DiscoveredKernel] = {}
        self._load()

    @property
    def kernels(self) -> List[DiscoveredKernel]:
        return list(self._entries.values())

    def _load(self):
        if not self.filepath.exists():
            return
        try:
            with open(self.filepath, "r") as f:
                records = json.load(f)["kernels"]
            entries = [DiscoveredKernel.from_dict(r) for r in records]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise CorruptDatabase(f"cannot read kernel database {self.filepath}: {e}") from e
        self._entries = {entry.kernel_string: entry for entry in entries}

    def save(self):
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": "1.0",
            "updated_at": datetime.now().isoformat(),
            "kernels": [entry.to_dict() for entry in self._entries.values()],
        }
        with open(self.filepath, "w") as f:
            json.dump(payload, f, indent=2)

    def add(
        self,
        kernel,
        summary: TrialSummary,
        config: SearchConfig,
        notes: str = "",
    ) -> DiscoveredKernel:
        """Add a kernel to the database, keeping the better score for duplicates."""
        key = kernel_key(kernel)
        score = band_score(summary.final_population, config.lower_bound, config.upper_bound)

        existing = self._entries.get(key)
        if existing is not None:
            if score > existing.score:
                existing.score = score
                existing.metrics = summary.to_dict()
                existing.config = config.to_dict()
                existing.discovered_at = datetime.now().isoformat()
                self.save()
            return existing

        discovered = DiscoveredKernel(
            kernel_string=key,
            score=score,
            metrics=summary.to_dict(),
            config=config.to_dict(),
            discovered_at=datetime.now().isoformat(),
            notes=notes,
            kernel_rows=as_kernel(kernel).tolist(),
        )
        self._entries[key] = discovered
        self.save()
        return discovered

    def get_leaderboard(self, top_n: int = 20) -> List[DiscoveredKernel]:
        """Best-scoring kernels first."""
        return sorted(self._entries.values(), key=lambda entry: entry.score, reverse=True)[:top_n]

    def get_by_kernel(self, kernel_string: str) -> Optional[DiscoveredKernel]:
        return self._entries.get(kernel_string)

    def remove(self, kernel_string: str) -> bool:
        """Drop one kernel; returns False when it was not stored."""
        if self._entries.pop(kernel_string, None) is None:
            return False
        self.save()
        return True

    def clear(self):
        self._entries.clear()
        self.save()

    def export_csv(self, filepath: str):
        """Export kernels to CSV format."""
        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "kernel", "score", "final_population", "peak_population",
                "population_variation", "activity_lifespan", "final_density",
                "cluster_count", "rule", "discovered_at", "notes"
            ])
            for k in self.get_leaderboard(len(self._entries)):
                m = k.metrics
                writer.writerow([
                    k.kernel_string,
                    f"{k.score:.4f}",
                    m.get("final_population", 0),
                    m.get("peak_population", 0),
                    f"{m.get('population_variation', 0):.4f}",
                    f"{m.get('activity_lifespan', 0):.4f}",
                    f"{m.get('final_density', 0):.4f}",
                    m.get("cluster_count", 0),
                    k.config.get("rule", ""),
                    k.discovered_at,
                    k.notes,
                ])

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())
