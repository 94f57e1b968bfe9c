""" pkmsave.defaults - logic for finding default settings """

import os

TRUTHY = ('1', 'true', 'yes', 'on')


def get_default_debug_with_origin():
    value = os.environ.get('PKMSAVE_DEBUG', None)
    origin = 'environment'

    if value is None:
        return False, 'default'

    return value.strip().lower() in TRUTHY, origin

def get_default_csv_dir_with_origin():
    csv_dir = os.environ.get('PKMSAVE_CSV_DIR', None)
    origin = 'environment'

    if csv_dir is None:
        csv_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                               'data', 'csv')
        origin = 'default'

    return csv_dir, origin


def get_default_debug():
    return get_default_debug_with_origin()[0]

def get_default_csv_dir():
    return get_default_csv_dir_with_origin()[0]
