#!/usr/bin/env python3

"""
Main entry point: Check which strings match a context free grammar, and show how they are derived.
"""
import argparse
import logging
import sys
from pathlib import Path

import better_exchook

import _setup_cfgmatch_env  # noqa
from cfgmatch.derivation import DERIVATION_LIMIT
from cfgmatch.earley import EarleyParser
from cfgmatch.errors import CfgError
from cfgmatch.grammar import make_grammar_from_str


def _read_test_strings(args) -> list:
  test_strings = list(args.strings)
  if args.input is not None:
    with open(args.input) as input_file:
      test_strings += input_file.read().splitlines()
  return test_strings


def main(argv=None):
  """
  Main entry point.

  :param list[str]|None argv: command line arguments, by default `sys.argv[1:]`
  :returns: exit status
  :rtype: int
  """
  parser = argparse.ArgumentParser(description='Check strings against a context free grammar.')
  parser.add_argument('grammar', help='Path to grammar, one production like "S -> 0S0 | 1S1 | " per line')
  parser.add_argument('strings', nargs='*', help='Strings to test')
  parser.add_argument('--input', default=None, help='File with one string to test per line')
  parser.add_argument(
    '--derivation-limit', dest='derivation_limit', type=int, default=DERIVATION_LIMIT,
    help='Maximal number of search nodes when reconstructing a derivation.')
  parser.add_argument(
    '--show-non-terminals', dest='show_non_terminals', action='store_true', help='Put non-terminals in parentheses.')
  parser.add_argument('--debug', default=False, action='store_true', help='Log chart construction.')
  parser.add_argument('--verbose', dest='verbose', action='store_true', help='Print full stacktrace for all errors.')
  args = parser.parse_args(argv)

  logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format='%(levelname)s %(name)s: %(message)s')

  try:
    grammar = make_grammar_from_str(Path(args.grammar).read_text())
    earley = EarleyParser(grammar, derivation_limit=args.derivation_limit, debug=args.debug)
  except CfgError as ce:
    if args.verbose:
      raise ce
    print(str(ce))
    return 1

  print(grammar.format(mark_non_terminals=args.show_non_terminals))
  unreachable = grammar.get_unreachable_non_terminals()
  if len(unreachable) > 0:
    print('Warning: unreachable non-terminals: %s' % ', '.join(unreachable))

  for test_string in _read_test_strings(args):
    result = earley.parse(test_string)
    print('\n%r: %s' % (test_string, result.format_verdict()))
    if result.matches and result.derivation_available:
      print(result.derivation.format(mark_non_terminals=args.show_non_terminals))
  return 0


if __name__ == '__main__':
  better_exchook.install()
  sys.exit(main())
