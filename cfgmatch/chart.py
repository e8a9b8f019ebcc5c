from typing import List, Dict, Optional, Iterable, Tuple, Iterator

import networkx as nx

from cfgmatch.errors import MalformedStateError, ChartIndexError
from cfgmatch.grammar import Symbol, Production

# Left side of the seed state. Its character is empty, so it never equals a grammar non-terminal.
AUGMENTED_START = Symbol('', is_terminal=False)

DOT_CHAR = '•'


class ParseState:
  """
  A dotted rule [A -> alpha . beta, origin]. Immutable.
  Back-pointers are not part of the state, the Chart owns them.
  """

  def __init__(self, lhs, alt, dot, origin):
    """
    :param Symbol lhs: A
    :param Alternative alt: alpha beta
    :param int dot: length of alpha, i.e. index of the next symbol to scan
    :param int origin: input position where matching alpha beta began
    """
    if not 0 <= dot <= len(alt):
      raise MalformedStateError('Dot position %i out of bounds for %s' % (
        dot, Production(lhs, alt).format() if lhs.ch else alt.format()))
    self.lhs = lhs
    self.alt = alt
    self.dot = dot
    self.origin = origin

  def __eq__(self, other):
    if not isinstance(other, ParseState):
      return False
    return (
      self.lhs == other.lhs and self.alt == other.alt and self.dot == other.dot and self.origin == other.origin)

  def __hash__(self):
    return hash((self.lhs, self.alt, self.dot, self.origin))

  def __repr__(self) -> str:
    return 'ParseState%s' % self.format()

  def is_complete(self) -> bool:
    return self.dot == len(self.alt)

  def is_complete_parse(self) -> bool:
    """
    Whether this is the completed seed state, i.e. the start symbol was matched.
    """
    return self.lhs == AUGMENTED_START and self.is_complete()

  def get_next_symbol(self) -> Optional[Symbol]:
    if self.is_complete():
      return None
    return self.alt[self.dot]

  def has_next(self, symbol: Symbol) -> bool:
    return self.get_next_symbol() == symbol

  def make_advanced(self) -> 'ParseState':
    return ParseState(self.lhs, self.alt, self.dot + 1, self.origin)

  def format(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals:
    :rtype: str
    """
    before = ''.join([symbol.format(mark_non_terminals) for symbol in self.alt[:self.dot]])
    after = ''.join([symbol.format(mark_non_terminals) for symbol in self.alt[self.dot:]])
    if self.alt.is_epsilon():
      before = self.alt.format()
    return '(%s -> %s%s%s ; %i)' % (self.lhs.format(mark_non_terminals), before, DOT_CHAR, after, self.origin)


class Chart:
  """
  All Earley sets S(0), ..., S(N) for an input word of length N.

  States are kept in an arena, their index there is their id, assigned in creation order.
  Each position holds the ids of its states, no two of them structurally equal.
  For each id, the chart keeps the ids of the states it was derived from (its back-pointers).
  """

  def __init__(self, word: str):
    self.word = word
    self._states: List[ParseState] = []
    self._prev: List[List[int]] = []
    self._positions: List[List[int]] = [[] for _ in range(len(word) + 1)]
    self._ids_by_state: List[Dict[ParseState, int]] = [{} for _ in range(len(word) + 1)]

  def __repr__(self):
    return 'Chart[%r, %i states]' % (self.word, len(self._states))

  @property
  def num_positions(self) -> int:
    return len(self._positions)

  @property
  def num_states(self) -> int:
    return len(self._states)

  def get_state(self, state_id: int) -> ParseState:
    return self._states[state_id]

  def get_prev(self, state_id: int) -> Tuple[int, ...]:
    return tuple(self._prev[state_id])

  def _check_position(self, position: int):
    if not 0 <= position <= len(self.word):
      raise ChartIndexError('Position %i out of range, chart has positions 0 to %i' % (position, len(self.word)))

  def get_state_ids(self, position: int) -> List[int]:
    """
    The ids at `position`. This is the live list, it grows while states are inserted.
    """
    self._check_position(position)
    return self._positions[position]

  def iter_states(self, position: int) -> Iterator[Tuple[int, ParseState]]:
    self._check_position(position)
    return ((state_id, self._states[state_id]) for state_id in self._positions[position])

  def find_equal(self, state, position):
    """
    :param ParseState state:
    :param int position:
    :returns: id of the structurally equal state at `position`, if any
    :rtype: int|None
    """
    self._check_position(position)
    return self._ids_by_state[position].get(state)

  def insert(self, state, position, prev=()):
    """
    Adds `state` at `position`, or merges the back-pointers `prev` into the equal state already there.

    :param ParseState state:
    :param int position: 0 <= position <= N + 1. Insertions at N + 1 are ignored.
    :param Iterable[int] prev: ids of the states `state` was derived from
    :returns: whether the chart changed
    :rtype: bool
    """
    if not 0 <= position <= len(self.word) + 1:
      raise ChartIndexError('Cannot insert %s at position %i, chart has positions 0 to %i' % (
        state.format(), position, len(self.word)))
    if position == len(self.word) + 1:
      return False
    prev = list(prev)
    assert all(0 <= prev_id < len(self._states) for prev_id in prev), 'back-pointers must refer to existing states'
    state_id = self.find_equal(state, position)
    if state_id is None:
      state_id = len(self._states)
      self._states.append(state)
      self._prev.append([])
      self._positions[position].append(state_id)
      self._ids_by_state[position][state] = state_id
      self._merge_prev(state_id, prev)
      return True
    return self._merge_prev(state_id, prev)

  def _merge_prev(self, state_id: int, prev: Iterable[int]) -> bool:
    existing = self._prev[state_id]
    added = False
    for prev_id in prev:
      if prev_id not in existing:
        existing.append(prev_id)
        added = True
    return added

  def make_back_pointer_graph(self) -> nx.DiGraph:
    """
    Graph over all state ids, with an edge from each state to each of its back-pointers.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(range(len(self._states)))
    graph.add_edges_from((state_id, prev_id) for state_id, prev in enumerate(self._prev) for prev_id in prev)
    return graph

  def format_state(self, state_id, mark_non_terminals=False):
    """
    :param int state_id:
    :param bool mark_non_terminals:
    :rtype: str
    """
    text = '%i %s' % (state_id, self._states[state_id].format(mark_non_terminals))
    if len(self._prev[state_id]) > 0:
      text += ' Prev: [%s]' % ','.join(map(str, self._prev[state_id]))
    return text

  def format(self, mark_non_terminals=False):
    """
    One block per position.

    :param bool mark_non_terminals:
    :rtype: str
    """
    return '\n'.join(
      'S(%i): {\n%s}' % (position, ''.join(
        '  %s\n' % self.format_state(state_id, mark_non_terminals) for state_id in state_ids))
      for position, state_ids in enumerate(self._positions))
