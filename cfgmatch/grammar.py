"""
Model of a context free grammar whose symbols are single characters.
Use an empty Alternative as the empty word (epsilon).
"""
from typing import Tuple, Dict, List, Set

import networkx as nx

from cfgmatch.errors import UndefinedNonterminalError, GrammarError, GrammarSyntaxError

EPSILON_CHAR = 'ε'
ARROWS = ('->', '→')
ALTERNATIVE_SEPARATOR = '|'
COMMENT_CHAR = '#'


class Symbol:
  """
  A single character, either a terminal or a non-terminal.
  """

  def __init__(self, ch, is_terminal):
    """
    :param str ch: the character, must be of length 1 for all grammar symbols
    :param bool is_terminal:
    """
    assert isinstance(ch, str) and len(ch) <= 1
    self.ch = ch
    self.is_terminal = is_terminal

  def __repr__(self):
    return 'Symbol[%r, %s]' % (self.ch, 'terminal' if self.is_terminal else 'non-terminal')

  def __str__(self):
    return self.format()

  def __hash__(self):
    return hash((self.ch, self.is_terminal))

  def __eq__(self, other):
    if not isinstance(other, Symbol):
      return False
    return self.ch == other.ch and self.is_terminal == other.is_terminal

  def format(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals: wrap non-terminals in parentheses
    :rtype: str
    """
    if mark_non_terminals and not self.is_terminal:
      return '(%s)' % self.ch
    return self.ch


def terminal(ch: str) -> Symbol:
  return Symbol(ch, is_terminal=True)


def non_terminal(ch: str) -> Symbol:
  return Symbol(ch, is_terminal=False)


class Alternative:
  """
  One right side X_1 X_2 ... X_n of a production. Empty iff it derives epsilon.
  """

  def __init__(self, *symbols):
    """
    :param Symbol symbols: X_1 ... X_n
    """
    assert all(isinstance(symbol, Symbol) for symbol in symbols)
    self.symbols: Tuple[Symbol, ...] = symbols

  def __len__(self):
    return len(self.symbols)

  def __getitem__(self, item):
    return self.symbols[item]

  def __iter__(self):
    return iter(self.symbols)

  def __repr__(self):
    return 'Alternative[%s]' % ' '.join([repr(symbol) for symbol in self.symbols])

  def __str__(self):
    return self.format()

  def __hash__(self):
    return hash(self.symbols)

  def __eq__(self, other):
    if not isinstance(other, Alternative):
      return False
    return self.symbols == other.symbols

  def is_epsilon(self) -> bool:
    return len(self.symbols) == 0

  def get_non_terminals(self) -> List[Symbol]:
    return [symbol for symbol in self.symbols if not symbol.is_terminal]

  def replace_last(self, non_terminal_symbol, replacement):
    """
    Replaces the right-most occurrence of `non_terminal_symbol` by the symbols of `replacement`.
    Returns `self` if there is no such occurrence.

    :param Symbol non_terminal_symbol:
    :param Alternative replacement:
    :rtype: Alternative
    """
    assert not non_terminal_symbol.is_terminal
    for pos in range(len(self.symbols) - 1, -1, -1):
      if self.symbols[pos] == non_terminal_symbol:
        return Alternative(*(self.symbols[:pos] + replacement.symbols + self.symbols[pos + 1:]))
    return self

  def format(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals:
    :rtype: str
    """
    if self.is_epsilon():
      return EPSILON_CHAR
    return ''.join([symbol.format(mark_non_terminals) for symbol in self.symbols])

  @classmethod
  def from_str(cls, word: str) -> 'Alternative':
    """
    All terminals, e.g. the sentential form of an input word.
    """
    return Alternative(*[terminal(ch) for ch in word])


class Production:
  """
  All rules A -> alpha_1 | alpha_2 | ... of one non-terminal A.
  The alternatives alpha_i are pairwise distinct.
  """

  def __init__(self, lhs, *rhs):
    """
    :param Symbol lhs: A
    :param Alternative rhs: alpha_1 ... alpha_n, duplicates are dropped
    """
    assert isinstance(lhs, Symbol) and not lhs.is_terminal
    self.lhs = lhs
    self.rhs: List[Alternative] = []
    for alt in rhs:
      self.add_alternative(alt)

  def __repr__(self):
    return 'Production[%r -> %s]' % (self.lhs.ch, ' | '.join([repr(alt) for alt in self.rhs]))

  def __str__(self):
    return self.format()

  def contains(self, alt: Alternative) -> bool:
    return alt in self.rhs

  def add_alternative(self, alt):
    """
    :param Alternative alt:
    :returns: whether `alt` was not contained before
    :rtype: bool
    """
    assert isinstance(alt, Alternative)
    if self.contains(alt):
      return False
    self.rhs.append(alt)
    return True

  def format(self, mark_non_terminals=False):
    """
    :param bool mark_non_terminals:
    :rtype: str
    """
    return '%s -> %s' % (
      self.lhs.format(mark_non_terminals), ' | '.join([alt.format(mark_non_terminals) for alt in self.rhs]))


class Grammar:
  """
  A context free grammar. Productions are kept in the order they were first added.
  """

  def __init__(self, start):
    """
    :param Symbol start: start non-terminal
    """
    assert isinstance(start, Symbol) and not start.is_terminal
    self.start = start
    self.productions: Dict[str, Production] = {}

  def __repr__(self):
    return 'Grammar[start=%r, %s]' % (self.start.ch, ', '.join([repr(prod) for prod in self.productions.values()]))

  def __str__(self):
    return self.format()

  @property
  def non_terminals(self) -> Tuple[str, ...]:
    """
    Characters of all non-terminals with a production, in insertion order.
    """
    return tuple(self.productions.keys())

  def add_production(self, production):
    """
    Adds `production`, or merges its alternatives into the production already present for the same non-terminal.

    :param Production production:
    """
    if production.lhs.ch == '':
      raise GrammarError('The empty character is reserved and cannot be used as non-terminal')
    current = self.productions.get(production.lhs.ch)
    if current is None:
      self.productions[production.lhs.ch] = production
      return
    for alt in production.rhs:
      current.add_alternative(alt)

  def get_production(self, ch):
    """
    :param str ch: non-terminal character
    :rtype: Production
    :raises: UndefinedNonterminalError
    """
    production = self.productions.get(ch)
    if production is None:
      raise UndefinedNonterminalError([ch])
    return production

  def get_undefined_non_terminals(self) -> Set[str]:
    referenced = {self.start.ch} | {
      symbol.ch for prod in self.productions.values() for alt in prod.rhs for symbol in alt.get_non_terminals()}
    return referenced - set(self.productions.keys())

  def validate(self):
    """
    Checks that the grammar can be used for parsing.

    :raises: GrammarError
    """
    for prod in self.productions.values():
      for alt in prod.rhs:
        for symbol in alt:
          if len(symbol.ch) != 1:
            raise GrammarError('%s: symbols must be single characters, got %r' % (prod.format(), symbol.ch))
    undefined = self.get_undefined_non_terminals()
    if len(undefined) > 0:
      raise UndefinedNonterminalError(undefined)

  def make_dependency_graph(self) -> nx.DiGraph:
    """
    Graph with an edge A -> B iff B occurs in some alternative of A.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(self.productions.keys())
    for prod in self.productions.values():
      for alt in prod.rhs:
        for symbol in alt.get_non_terminals():
          graph.add_edge(prod.lhs.ch, symbol.ch)
    return graph

  def get_unreachable_non_terminals(self) -> List[str]:
    graph = self.make_dependency_graph()
    if self.start.ch not in graph:
      return list(self.non_terminals)
    reachable = nx.descendants(graph, self.start.ch) | {self.start.ch}
    return [ch for ch in self.non_terminals if ch not in reachable]

  def format(self, mark_non_terminals=False):
    """
    First line is the start symbol, then one line per production.

    :param bool mark_non_terminals:
    :rtype: str
    """
    return '\n'.join(
      ['Start symbol: %s' % self.start.format(mark_non_terminals)] +
      [prod.format(mark_non_terminals) for prod in self.productions.values()])


def build_grammar(start, productions):
  """
  :param Symbol|str|None start: start non-terminal, by default left of first production
  :param list[Production]|tuple[Production] productions:
  :rtype: Grammar
  :raises: GrammarError
  """
  productions = list(productions)
  if start is None:
    if len(productions) == 0:
      raise GrammarError('Need at least one production to determine the start symbol')
    start = productions[0].lhs
  elif isinstance(start, str):
    start = non_terminal(start)
  grammar = Grammar(start)
  for production in productions:
    grammar.add_production(production)
  grammar.validate()
  return grammar


def _find_arrow(line: str) -> Tuple[int, str]:
  found = [(line.find(arrow), arrow) for arrow in ARROWS if arrow in line]
  if len(found) == 0:
    return -1, ''
  return min(found)


def make_grammar_from_str(text):
  """
  Reads a grammar with one production per line, e.g.::

    S -> 0XX
    X -> | 1

  A character is a non-terminal iff it occurs on the left of some line, the first line gives the start symbol.
  Whitespace is ignored, an empty alternative (or just the epsilon character) derives the empty word.

  :param str text:
  :rtype: Grammar
  :raises: GrammarSyntaxError
  """
  rows: List[Tuple[int, str, List[Tuple[int, str]]]] = []
  line_pos = 0
  for line in text.splitlines(keepends=True):
    row_pos, row = line_pos, line.rstrip('\r\n')
    line_pos += len(line)
    if row.strip() == '' or row.lstrip().startswith(COMMENT_CHAR):
      continue
    arrow_pos, arrow = _find_arrow(row)
    if arrow_pos < 0:
      raise GrammarSyntaxError(text, row_pos, 'Expected %s in production' % ' or '.join(map(repr, ARROWS)))
    left = row[:arrow_pos].strip()
    if left == '':
      continue
    if len(left) != 1:
      left_pos = row_pos + row.find(left)
      raise GrammarSyntaxError(
        text, left_pos, 'Left side must be a single non-terminal character, got %r' % left,
        to_pos=left_pos + len(left))
    if left in (ALTERNATIVE_SEPARATOR, EPSILON_CHAR):
      raise GrammarSyntaxError(text, row_pos + row.find(left), 'Character %r is reserved' % left)
    alternatives = []
    alt_pos = row_pos + arrow_pos + len(arrow)
    for alt_str in row[arrow_pos + len(arrow):].split(ALTERNATIVE_SEPARATOR):
      alternatives.append((alt_pos, ''.join(alt_str.split())))
      alt_pos += len(alt_str) + len(ALTERNATIVE_SEPARATOR)
    rows.append((row_pos, left, alternatives))

  if len(rows) == 0:
    raise GrammarSyntaxError(text, 0, 'Grammar does not contain any production')

  non_terminals = {left for _, left, _ in rows}
  grammar = Grammar(non_terminal(rows[0][1]))
  for _, left, alternatives in rows:
    production = Production(non_terminal(left))
    for alt_pos, alt_str in alternatives:
      if alt_str == EPSILON_CHAR:
        alt_str = ''
      elif EPSILON_CHAR in alt_str:
        raise GrammarSyntaxError(
          text, alt_pos, 'Epsilon %r must be the only symbol of its alternative' % EPSILON_CHAR)
      production.add_alternative(Alternative(*[Symbol(ch, is_terminal=ch not in non_terminals) for ch in alt_str]))
    grammar.add_production(production)
  grammar.validate()
  return grammar
