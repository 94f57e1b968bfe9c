# encoding: utf8

import argparse
import json
import logging
import sys

from pkmsave import defaults, detect, gen3, gen4
from pkmsave.records import (
    BoxMapping, ParserOptions, dump_yaml, result_as_dict,
)
from pkmsave.savefile import SaveFileError

log = logging.getLogger(__name__)

GAMES = gen3.GAMES + gen4.GAMES + (detect.AUTO,)


def main(junk, *argv):
    parser = create_parser()

    if len(argv) <= 0:
        parser.print_help()
        sys.exit()

    args = parser.parse_args(argv)
    configure_logging(args)
    args.func(parser, args)


def setuptools_entry():
    main(*sys.argv)


def box_mapping(value):
    """Parses BOX=STATUS, as given to `parse -b`"""
    key, sep, status = value.partition('=')
    try:
        key = int(key)
    except ValueError:
        key = None
    if not sep or key is None or key < 1 or not status:
        raise argparse.ArgumentTypeError(
            "expected BOX=STATUS with a box number from 1, got %r" % value)
    return BoxMapping(key=key, status=status)


def create_parser():
    """Build and return an ArgumentParser.
    """
    # Slightly clumsy workaround to make both `parse -v` and `-v parse` work
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument(
        '-q', '--quiet', dest='verbose', action='store_false',
        help=u'Only print warnings and errors.  This is the default.',
    )
    common_parser.add_argument(
        '-v', '--verbose', dest='verbose', default=False, action='store_true',
        help=u'Print what the parser is doing.',
    )

    parser = argparse.ArgumentParser(
        prog='pkmsave', description=u'Read Pokémon save files',
        parents=[common_parser],
    )

    cmds = parser.add_subparsers(title='commands', metavar='<command>', help='commands')
    cmd_help = cmds.add_parser(
        'help', help=u'Display this message',
        parents=[common_parser])
    cmd_help.set_defaults(func=command_help)

    cmd_parse = cmds.add_parser(
        'parse', help=u'Print the trainer and Pokémon in a save file',
        parents=[common_parser])
    cmd_parse.set_defaults(func=command_parse)
    cmd_parse.add_argument(
        'file', help=u'the save file; gen 3 and 4 are told apart by size')
    cmd_parse.add_argument(
        '-g', '--game', dest='game', default=None, choices=GAMES,
        help=u'the game the save is from (default: work it out)')
    cmd_parse.add_argument(
        '-b', '--box', dest='box_mappings', default=[], action='append',
        type=box_mapping, metavar='BOX=STATUS',
        help=u'status for Pokémon in the given box (default: Boxed); '
            u'may be repeated')
    cmd_parse.add_argument(
        '-f', '--format', dest='format', default='yaml',
        choices=('yaml', 'json'),
        help=u'output format (default: yaml)')
    cmd_parse.add_argument(
        '-d', '--debug', dest='debug', default=None, action='store_true',
        help=u'include diagnostics in the output.  Also set by a '
            u'PKMSAVE_DEBUG environment variable.')

    return parser


def configure_logging(args):
    if getattr(args, 'debug', None):
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def get_options(args):
    """Builds parser options from the command line, noting where the debug
    setting came from.
    """
    debug = args.debug
    got_from = 'command line'

    if debug is None:
        debug, got_from = defaults.get_default_debug_with_origin()

    if args.verbose:
        csvdir, csv_from = defaults.get_default_csv_dir_with_origin()
        print("Using CSV directory %(csvdir)s (from %(got_from)s)"
            % dict(csvdir=csvdir, got_from=csv_from), file=sys.stderr)
        print("Debug output is %(state)s (from %(got_from)s)"
            % dict(state='on' if debug else 'off', got_from=got_from),
            file=sys.stderr)

    return ParserOptions(
        box_mappings=args.box_mappings,
        selected_game=args.game,
        debug=debug,
    )


### User-facing commands

def command_parse(parser, args):
    options = get_options(args)

    with open(args.file, 'rb') as f:
        data = f.read()

    try:
        result = detect.parse_save(data, options)
    except SaveFileError as e:
        print(u"%s: %s" % (args.file, e), file=sys.stderr)
        sys.exit(1)

    log.info('Read %d Pokémon from %s', len(result.pokemon), args.file)
    if args.format == 'json':
        print(json.dumps(result_as_dict(result), indent=2, sort_keys=True,
                         ensure_ascii=False))
    else:
        print(dump_yaml(result), end='')


def command_help(parser, args):
    parser.print_help()


if __name__ == '__main__':
    main(*sys.argv)
