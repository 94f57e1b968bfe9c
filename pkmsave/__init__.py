# encoding: utf8
u"""Read-only decoder for gen 3 and gen 4 Pokémon save files."""

from pkmsave.detect import parse_save
from pkmsave.gen3 import parse_gen3_save
from pkmsave.gen4 import parse_gen4_save
from pkmsave.records import BoxMapping, ParserOptions
from pkmsave.savefile import SaveFileError
