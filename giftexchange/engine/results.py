from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AssignmentSet:
    """Validated santa -> recipient edges for one group."""

    group_id: object
    pairs: frozenset
    seed: int
    strategy: str

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self):
        return iter(sorted(self.pairs))

    def __contains__(self, pair) -> bool:
        return tuple(pair) in self.pairs

    def as_mapping(self) -> dict:
        return dict(self.pairs)

    def recipient_of(self, santa):
        return self.as_mapping()[santa]

    def cycles(self) -> list[tuple]:
        """Gift cycles, each starting at its smallest member, in sorted order."""
        successor = self.as_mapping()
        seen = set()
        out = []
        for start in sorted(successor):
            if start in seen:
                continue
            cycle = []
            node = start
            while node not in seen:
                seen.add(node)
                cycle.append(node)
                node = successor[node]
            out.append(tuple(cycle))
        return out

    def cycle_type(self) -> tuple[int, ...]:
        return tuple(sorted((len(c) for c in self.cycles()), reverse=True))
