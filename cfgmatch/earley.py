import logging
from typing import Optional

from cfgmatch.chart import Chart, ParseState, AUGMENTED_START
from cfgmatch.derivation import Derivation, DERIVATION_LIMIT, derive
from cfgmatch.errors import DerivationLimitExceeded
from cfgmatch.grammar import Alternative

logger = logging.getLogger(__name__)


class ParseResult:
  """
  Outcome of matching a word against a grammar.
  """

  matches = False

  def __init__(self, word: str, chart: Chart):
    self.word = word
    self.chart = chart

  def __bool__(self):
    return self.matches

  def format_verdict(self) -> str:
    raise NotImplementedError


class Match(ParseResult):
  """
  The word matches. `derivation` is None iff no witness derivation could be reconstructed.
  """

  matches = True

  def __init__(self, word: str, chart: Chart, derivation: Optional[Derivation]):
    super().__init__(word, chart)
    self.derivation = derivation

  def __repr__(self):
    return 'Match[%r, %r]' % (self.word, self.derivation)

  @property
  def derivation_available(self) -> bool:
    return self.derivation is not None

  def format_verdict(self) -> str:
    return 'match' if self.derivation_available else 'match (derivation unavailable)'


class NoMatch(ParseResult):
  """
  The word does not match.
  """

  def __repr__(self):
    return 'NoMatch[%r]' % self.word

  def format_verdict(self) -> str:
    return 'no match'


class EarleyParser:
  """
  Earley parser for arbitrary context free grammars, including left-recursive, ambiguous and epsilon grammars.
  """

  def __init__(self, grammar, derivation_limit=DERIVATION_LIMIT, debug=False):
    """
    :param Grammar grammar: is validated, and must not be changed afterwards
    :param int derivation_limit: maximal number of search nodes when reconstructing a derivation
    :param bool debug: log the chart construction and the derivation search
    :raises: GrammarError
    """
    grammar.validate()
    assert derivation_limit >= 0
    self.grammar = grammar
    self.derivation_limit = derivation_limit
    self.debug = debug

  def __repr__(self):
    return 'EarleyParser[%r]' % self.grammar

  def make_chart(self, word):
    """
    :param str word:
    :rtype: Chart
    """
    chart = Chart(word)
    chart.insert(ParseState(AUGMENTED_START, Alternative(self.grammar.start), 0, 0), 0)
    for position in range(len(word) + 1):
      self._close(chart, position)
      if self.debug:
        logger.debug('Chart after closing position %i:\n%s', position, chart.format())
      self._scan(chart, position)
    return chart

  def _close(self, chart, position):
    """
    Applies prediction and completion at `position` until the chart does not change anymore.

    :param Chart chart:
    :param int position:
    """
    state_ids = chart.get_state_ids(position)
    changes = True
    while changes:
      changes = False
      # Note state_ids is growing!
      pos = 0
      while pos < len(state_ids):
        state_id = state_ids[pos]
        state = chart.get_state(state_id)
        if self.debug:
          logger.debug('Examining %s', chart.format_state(state_id))
        next_symbol = state.get_next_symbol()
        if next_symbol is not None and not next_symbol.is_terminal:
          # Prediction
          for alt in self.grammar.get_production(next_symbol.ch).rhs:
            if chart.insert(ParseState(next_symbol, alt, 0, position), position, prev=[state_id]):
              changes = True
        elif state.is_complete():
          # Completion
          for waiting_id in list(chart.get_state_ids(state.origin)):
            waiting = chart.get_state(waiting_id)
            if waiting.has_next(state.lhs):
              if chart.insert(waiting.make_advanced(), position, prev=[state_id]):
                changes = True
        pos += 1

  def _scan(self, chart, position):
    """
    :param Chart chart:
    :param int position:
    """
    if position >= len(chart.word):
      return
    for state_id, state in list(chart.iter_states(position)):
      next_symbol = state.get_next_symbol()
      if next_symbol is not None and next_symbol.is_terminal and next_symbol.ch == chart.word[position]:
        chart.insert(state.make_advanced(), position + 1, prev=[state_id])

  def find_match(self, chart):
    """
    :param Chart chart:
    :returns: id of the completed seed state at the last position, if the word matches
    :rtype: int|None
    """
    return next(
      (state_id for state_id, state in chart.iter_states(len(chart.word)) if state.is_complete_parse()), None)

  def parse(self, word):
    """
    :param str word:
    :rtype: ParseResult
    """
    chart = self.make_chart(word)
    match_id = self.find_match(chart)
    if match_id is None:
      return NoMatch(word, chart)
    try:
      derivation = derive(chart, match_id, limit=self.derivation_limit, debug=self.debug)
    except DerivationLimitExceeded as exc:
      logger.warning('%s, reporting match without derivation', exc)
      return Match(word, chart, derivation=None)
    return Match(word, chart, derivation=derivation)


def parse(grammar, word, derivation_limit=DERIVATION_LIMIT, debug=False):
  """
  :param Grammar grammar:
  :param str word:
  :param int derivation_limit:
  :param bool debug:
  :rtype: ParseResult
  :raises: GrammarError
  """
  return EarleyParser(grammar, derivation_limit=derivation_limit, debug=debug).parse(word)
