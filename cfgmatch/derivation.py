import logging
from collections import deque, namedtuple
from typing import List, Optional, Tuple, Deque

from cfgmatch.chart import Chart, ParseState
from cfgmatch.errors import DerivationLimitExceeded
from cfgmatch.grammar import Alternative, Production, Symbol

logger = logging.getLogger(__name__)

DERIVATION_LIMIT = 50000


class DerivationStep(namedtuple('DerivationStep', 'lhs alt result')):
  """
  Application of lhs -> alt to the right-most lhs of the previous sentential form, giving `result`.
  """

  def format_rule(self, mark_non_terminals=False) -> str:
    return Production(self.lhs, self.alt).format(mark_non_terminals)


class Derivation:
  """
  A right-most derivation of a word, witnessing that it matches the grammar.
  """

  def __init__(self, word, start, states, steps):
    """
    :param str word:
    :param Symbol start: start non-terminal
    :param list[ParseState] states: the witness path, from the completed seed state backwards
    :param list[DerivationStep] steps:
    """
    self.word = word
    self.start = start
    self.states: Tuple[ParseState, ...] = tuple(states)
    self.steps: Tuple[DerivationStep, ...] = tuple(steps)

  def __repr__(self):
    return 'Derivation[%r: %s]' % (self.word, ', '.join([step.format_rule() for step in self.steps]))

  def __len__(self):
    return len(self.steps)

  def get_sentential_forms(self) -> List[Alternative]:
    return [Alternative(self.start)] + [step.result for step in self.steps]

  def get_display_rows(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals:
    :returns: pairs (rule, resulting sentential form), starting with the start symbol
    :rtype: list[tuple[str,str]]
    """
    return [('Start', self.start.format(mark_non_terminals))] + [
      (step.format_rule(mark_non_terminals), step.result.format(mark_non_terminals)) for step in self.steps]

  def format(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals:
    :rtype: str
    """
    rows = self.get_display_rows(mark_non_terminals)
    rule_width = max(len(rule) for rule, _ in rows)
    return '\n'.join(['%s  %s' % (rule.rjust(rule_width), result) for rule, result in rows])


def find_derivation(chart, match_id, limit=DERIVATION_LIMIT, debug=False):
  """
  Breadth-first search over back-pointer paths starting at the completed seed state.
  Every completed state on a path rewrites the right-most occurrence of its left side in the sentential form of
  the path so far. Back-pointers to completed states whose left side is not in the form are not followed.
  The first path whose sentential form is the input word wins.

  :param Chart chart:
  :param int match_id: id of the completed seed state at the last position
  :param int limit: maximal number of search nodes
  :param bool debug: log each search node
  :returns: state ids of the witness path, or None if there is none
  :rtype: list[int]|None
  :raises: DerivationLimitExceeded
  """
  match = chart.get_state(match_id)
  assert match.is_complete_parse()
  target = Alternative.from_str(chart.word)
  queue: Deque[Tuple[Tuple[int, ...], Alternative]] = deque([((match_id,), match.alt)])
  num_nodes = 0
  while len(queue) >= 1:
    path, form = queue.popleft()
    if debug:
      logger.debug('Dequeue %s %s', [chart.get_state(state_id).format() for state_id in path], form.format())
    for prev_id in chart.get_prev(path[-1]):
      prev_state = chart.get_state(prev_id)
      next_form = form
      if prev_state.is_complete():
        if prev_state.lhs not in form.get_non_terminals():
          # completes a parent the path did not come from
          continue
        next_form = form.replace_last(prev_state.lhs, prev_state.alt)
      next_path = path + (prev_id,)
      if next_form == target:
        return list(next_path)
      queue.append((next_path, next_form))
      num_nodes += 1
      if num_nodes > limit:
        raise DerivationLimitExceeded(chart.word, limit)
  return None


def make_derivation(chart, path):
  """
  :param Chart chart:
  :param list[int] path: witness path as returned by `find_derivation`
  :rtype: Derivation
  """
  states = [chart.get_state(state_id) for state_id in path]
  completed = [state for state in states if state.is_complete()]
  assert len(completed) >= 1 and completed[0].is_complete_parse()
  assert len(completed[0].alt) == 1
  start: Symbol = completed[0].alt[0]
  form = completed[0].alt
  steps: List[DerivationStep] = []
  for state in completed[1:]:
    assert state.lhs in form.get_non_terminals(), '%s does not apply to %s' % (state.format(), form.format())
    form = form.replace_last(state.lhs, state.alt)
    steps.append(DerivationStep(state.lhs, state.alt, form))
  assert form == Alternative.from_str(chart.word), 'witness path does not derive %r' % chart.word
  return Derivation(chart.word, start=start, states=states, steps=steps)


def derive(chart, match_id, limit=DERIVATION_LIMIT, debug=False):
  """
  :param Chart chart:
  :param int match_id:
  :param int limit:
  :param bool debug:
  :rtype: Derivation|None
  :raises: DerivationLimitExceeded
  """
  path: Optional[List[int]] = find_derivation(chart, match_id, limit=limit, debug=debug)
  if path is None:
    return None
  return make_derivation(chart, path)
