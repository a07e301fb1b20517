""" Ordered, append-only registries for validation rules and governance policies. """

from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from .models import Policy, PolicySeverity, Rule, Severity

T = TypeVar("T", Rule, Policy)


class RuleRegistry(Generic[T]):
    """
    Keeps catalog entries in registration order. Entries can be added but
    never replaced or removed, so evaluation order is fixed once the
    catalog module has been imported.
    """

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[str, T] = {}

    def add(self, entry: T) -> T:
        if entry.id in self._entries:
            raise ValueError(f"Duplicate id '{entry.id}' in {self.name} catalog")
        self._entries[entry.id] = entry
        return entry

    def get(self, entry_id: str) -> T:
        if entry_id not in self._entries:
            raise KeyError(f"Not in {self.name} catalog: {entry_id}")
        return self._entries[entry_id]

    def find(self, entry_id: str) -> Optional[T]:
        return self._entries.get(entry_id)

    def by_severity(self, severity) -> List[T]:
        return [e for e in self._entries.values() if e.severity == severity]

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._entries


def rule(registry: "RuleRegistry[Rule]", rule_id: str, severity: Severity,
         message: str, fix: str, impact: Optional[str] = None):
    """Register the decorated predicate as a validation rule."""
    def _wrap(fn: Callable) -> Callable:
        registry.add(Rule(id=rule_id, severity=severity, predicate=fn,
                          message=message, fix=fix, impact=impact))
        return fn
    return _wrap


def policy(registry: "RuleRegistry[Policy]", policy_id: str, name: str,
           severity: PolicySeverity, requirement: str):
    """Register the decorated check as a governance policy."""
    def _wrap(fn: Callable) -> Callable:
        registry.add(Policy(id=policy_id, name=name, severity=severity,
                            check=fn, requirement=requirement))
        return fn
    return _wrap
