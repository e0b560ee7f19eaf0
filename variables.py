"""
Janus variable environment
Bindings produced by destructuring one rule and consumed by its constructor
"""

from collections import deque
from typing import Deque, Dict, List, Optional

from error_handling import JanusValueError, PatternMismatchError
from values import Value, describe


class Variables:
  """Per-rule binding store.

  `idents` maps a name to the single value it matched; binding it again to an
  unequal value fails, which is how a name repeated in a pattern asserts
  equality. `polyidents` maps a name to the queue of every value it matched,
  drained in order by the constructor.
  """

  def __init__(self):
    self.idents: Dict[str, Value] = {}
    self.polyidents: Dict[str, Deque[Value]] = {}

  def insert(self, name: str, value: Value) -> None:
    existing = self.idents.get(name)
    if existing is not None and existing != value:
      raise PatternMismatchError(
        f"Conflicting binding for `{name}`",
        expected=describe(existing),
        found=describe(value)
      )
    self.idents[name] = value

  def get(self, name: str) -> Optional[Value]:
    return self.idents.get(name)

  def insert_polyident(self, name: str, value: Value) -> None:
    self.polyidents.setdefault(name, deque()).append(value)

  def take_polyident(self, name: str) -> Optional[Value]:
    """Pop the oldest captured value; None if `name` never captured anything"""
    queue = self.polyidents.get(name)
    if queue is None:
      return None
    if not queue:
      raise JanusValueError(f"Polyident ${name} used more times than it was captured")
    return queue.popleft()

  def unconsumed_polyidents(self) -> List[str]:
    return [name for name, queue in self.polyidents.items() if queue]

  def __repr__(self) -> str:
    return f"Variables(idents={self.idents!r}, polyidents={dict(self.polyidents)!r})"
