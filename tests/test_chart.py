import _setup_test_env  # noqa
import sys
import unittest
import better_exchook
import networkx as nx
from nose.tools import assert_equal, assert_raises

from cfgmatch.chart import ParseState, Chart, AUGMENTED_START
from cfgmatch.earley import EarleyParser
from cfgmatch.errors import MalformedStateError, ChartIndexError
from cfgmatch.grammar import Alternative, terminal, non_terminal, make_grammar_from_str

S, X = non_terminal('S'), non_terminal('X')
ALT_0XX = Alternative(terminal('0'), X, X)
PALINDROMES = 'S -> 0S0 | 1S1 | 0 | 1 | ε'


def test_ParseState():
  state = ParseState(S, ALT_0XX, 1, 0)
  assert_equal(state, ParseState(S, ALT_0XX, 1, 0))
  assert_equal(hash(state), hash(ParseState(S, ALT_0XX, 1, 0)))
  assert state != ParseState(S, ALT_0XX, 2, 0)
  assert state != ParseState(S, ALT_0XX, 1, 1)
  assert state != ParseState(X, ALT_0XX, 1, 0)
  assert_equal(state.get_next_symbol(), X)
  assert state.has_next(X)
  assert not state.is_complete()
  assert_equal(state.make_advanced(), ParseState(S, ALT_0XX, 2, 0))
  complete = ParseState(S, ALT_0XX, 3, 0)
  assert complete.is_complete()
  assert_equal(complete.get_next_symbol(), None)
  assert not complete.is_complete_parse()
  assert ParseState(AUGMENTED_START, Alternative(S), 1, 0).is_complete_parse()
  assert not ParseState(AUGMENTED_START, Alternative(S), 0, 0).is_complete_parse()


def test_ParseState_malformed():
  with assert_raises(MalformedStateError):
    ParseState(S, ALT_0XX, 4, 0)
  with assert_raises(MalformedStateError):
    ParseState(S, ALT_0XX, -1, 0)
  with assert_raises(MalformedStateError):
    ParseState(X, Alternative(), 0, 0).make_advanced()


def test_ParseState_format():
  assert_equal(ParseState(S, ALT_0XX, 1, 2).format(), '(S -> 0•XX ; 2)')
  assert_equal(ParseState(S, ALT_0XX, 3, 0).format(mark_non_terminals=True), '((S) -> 0(X)(X)• ; 0)')
  assert_equal(ParseState(X, Alternative(), 0, 1).format(), '(X -> ε• ; 1)')


def test_Chart_insert():
  chart = Chart('01')
  assert_equal(chart.num_positions, 3)
  seed = ParseState(AUGMENTED_START, Alternative(S), 0, 0)
  assert chart.insert(seed, 0)
  assert not chart.insert(seed, 0)
  predicted = ParseState(S, ALT_0XX, 0, 0)
  assert chart.insert(predicted, 0, prev=[0])
  assert_equal(chart.find_equal(ParseState(S, ALT_0XX, 0, 0), 0), 1)
  assert_equal(chart.find_equal(predicted, 1), None)
  assert not chart.insert(ParseState(S, ALT_0XX, 0, 0), 0, prev=[0])
  assert_equal(chart.num_states, 2)
  # the same dotted rule at another position is a different state
  assert chart.insert(predicted, 1, prev=[1])
  assert_equal(chart.get_state_ids(0), [0, 1])
  assert_equal(chart.get_state_ids(1), [2])
  assert_equal(chart.get_prev(1), (0,))


def test_Chart_insert_merges_back_pointers():
  chart = Chart('0')
  chart.insert(ParseState(AUGMENTED_START, Alternative(S), 0, 0), 0)
  chart.insert(ParseState(S, ALT_0XX, 0, 0), 0, prev=[0])
  chart.insert(ParseState(S, ALT_0XX, 1, 0), 1, prev=[1])
  assert chart.insert(ParseState(S, ALT_0XX, 0, 0), 0, prev=[2])
  assert_equal(chart.get_prev(1), (0, 2))
  assert not chart.insert(ParseState(S, ALT_0XX, 0, 0), 0, prev=[2, 0])
  assert_equal(chart.get_prev(1), (0, 2))
  assert_equal(chart.num_states, 3)
  assert_equal(chart.format_state(1), '1 (S -> •0XX ; 0) Prev: [0,2]')


def test_Chart_insert_out_of_range():
  chart = Chart('01')
  state = ParseState(S, ALT_0XX, 0, 0)
  assert not chart.insert(state, 3)
  assert_equal(chart.num_states, 0)
  with assert_raises(ChartIndexError):
    chart.insert(state, 4)
  with assert_raises(ChartIndexError):
    chart.insert(state, -1)


def test_Chart_position_out_of_range():
  chart = Chart('01')
  assert_equal(chart.get_state_ids(2), [])
  for position in [-1, 3]:
    with assert_raises(ChartIndexError):
      chart.get_state_ids(position)
    with assert_raises(ChartIndexError):
      chart.iter_states(position)
    with assert_raises(ChartIndexError):
      chart.find_equal(ParseState(S, ALT_0XX, 0, 0), position)


def test_Chart_format():
  chart = Chart('0')
  chart.insert(ParseState(AUGMENTED_START, Alternative(S), 0, 0), 0)
  chart.insert(ParseState(S, ALT_0XX, 0, 0), 0, prev=[0])
  assert_equal(chart.format(), 'S(0): {\n  0 ( -> •S ; 0)\n  1 (S -> •0XX ; 0) Prev: [0]\n}\nS(1): {\n}')


def _check_chart_invariants(chart):
  """
  :param Chart chart:
  """
  for position in range(chart.num_positions):
    states = [state for _, state in chart.iter_states(position)]
    assert_equal(len(set(states)), len(states))
    for state_id, state in chart.iter_states(position):
      assert_equal(chart.find_equal(state, position), state_id)
  graph = chart.make_back_pointer_graph()
  assert_equal(graph.number_of_nodes(), chart.num_states)
  assert_equal(chart.get_prev(0), ())
  for state_id in range(1, chart.num_states):
    assert len(chart.get_prev(state_id)) >= 1
    assert nx.has_path(graph, state_id, 0), 'state %s does not lead back to the seed' % chart.format_state(state_id)


def test_Chart_invariants_after_parse():
  grammars = [
    make_grammar_from_str(PALINDROMES), make_grammar_from_str('S -> 0XX\nX -> ε | 1'),
    make_grammar_from_str('S -> SS | a | '), make_grammar_from_str('S -> Sa | a')]
  for grammar in grammars:
    earley = EarleyParser(grammar)
    for word in ['', '0', '01', '101', '0110', 'aaa', '10a01']:
      chart = earley.make_chart(word)
      print(chart.format())
      _check_chart_invariants(chart)


if __name__ == "__main__":
  try:
    better_exchook.install()
    if len(sys.argv) <= 1:
      for k, v in sorted(globals().items()):
        if k.startswith("test_"):
          print("-" * 40)
          print("Executing: %s" % k)
          try:
            v()
          except unittest.SkipTest as exc:
            print("SkipTest:", exc)
          print("-" * 40)
      print("Finished all tests.")
    else:
      assert len(sys.argv) >= 2
      for arg in sys.argv[1:]:
        print("Executing: %s" % arg)
        if arg in globals():
          globals()[arg]()  # assume function and execute
        else:
          eval(arg)  # assume Python code and execute
  finally:
    pass
