from typing import Optional, Iterable, List, Dict


class CfgError(Exception):
  """
  Base class of all errors raised for bad grammars and internal parser failures.
  """


def get_line_col_from_pos(word, error_pos, num_before_context_lines=1, num_after_context_lines=1):
  """
  :param str word:
  :param int error_pos: 0 <= error_pos <= len(word)
  :param int num_before_context_lines:
  :param int num_after_context_lines:
  :returns: line and column (both 1-based), and the context lines around it by line number
  :rtype: tuple[int,int,dict[int,str]]
  """
  assert 0 <= error_pos <= len(word)
  lines = [line.rstrip('\r') for line in word.split('\n')]
  line_idx = word.count('\n', 0, error_pos)
  col_idx = error_pos - (word.rfind('\n', 0, error_pos) + 1)
  first, last = max(0, line_idx - num_before_context_lines), min(len(lines) - 1, line_idx + num_after_context_lines)
  context_lines: Dict[int, str] = {idx + 1: lines[idx] for idx in range(first, last + 1)}
  return line_idx + 1, col_idx + 1, context_lines


def make_error_message(word: str, from_pos: int, error_name: str, message: str, to_pos: Optional[int] = None) -> str:
  """
  Message with the offending line marked, e.g.::

    Grammar syntax error on line 2:1

    001: S -> 0X
    002: X 1
         ^

    Expected '->' or '→' in production
  """
  line, from_col, context_lines = get_line_col_from_pos(
    word, from_pos, num_before_context_lines=2, num_after_context_lines=2)
  marker_len = 1
  if to_pos is not None:
    assert from_pos <= to_pos
    to_line, to_col, _ = get_line_col_from_pos(word, to_pos, num_before_context_lines=0, num_after_context_lines=0)
    # only the first line of a multi-line range is marked
    end_col = to_col if to_line == line else len(context_lines[line]) + 1
    marker_len = max(1, end_col - from_col)
  shown: List[str] = []
  for line_num, text in context_lines.items():
    shown.append('%03i: %s' % (line_num, text))
    if line_num == line:
      shown.append(' ' * (len('000: ') + from_col - 1) + '^' * marker_len)
  return '%s on line %i:%i\n\n%s\n\n%s' % (error_name, line, from_col, '\n'.join(shown), message)


class GrammarError(CfgError):
  """
  A grammar that cannot be used for parsing.
  """


class UndefinedNonterminalError(GrammarError):
  """
  Some non-terminal is referenced in an alternative (or as start symbol), but has no production.
  """

  def __init__(self, non_terminals: Iterable[str]):
    self.non_terminals: List[str] = sorted(set(non_terminals))
    assert len(self.non_terminals) >= 1
    super().__init__('Undefined non-terminal%s: %s' % (
      's' if len(self.non_terminals) > 1 else '', ', '.join(['%r' % ch for ch in self.non_terminals])))


class GrammarSyntaxError(GrammarError):
  """
  A textual grammar description that could not be read.
  """

  def __init__(self, word, pos, message, to_pos=None):
    """
    :param str word: the grammar text
    :param int pos: position where the error occurred
    :param str message:
    :param int|None to_pos: up to which position
    """
    self.pos = pos
    super().__init__(make_error_message(word, pos, error_name='Grammar syntax error', message=message, to_pos=to_pos))


class MalformedStateError(CfgError):
  """
  A parse state whose dot is outside of its alternative.
  Always an internal error of the parser.
  """


class ChartIndexError(CfgError):
  """
  An insertion into the chart at a position it does not have.
  Always an internal error of the parser.
  """


class DerivationLimitExceeded(CfgError):
  """
  The witness derivation search gave up after expanding too many nodes.
  """

  def __init__(self, word: str, limit: int):
    self.word = word
    self.limit = limit
    super().__init__('Derivation limit of %i reached for %r' % (limit, word))
